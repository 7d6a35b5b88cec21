from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from blog_pages.config import SiteConfig, build_site_config

BASE_LAYOUT = """\
<!doctype html>
<html lang="en">
<head>
  <title>{{ title }} | {{ site.title }}</title>
</head>
<body>
  <!-- page body -->
  <main>
    {{ content }}
  </main>
</body>
</html>
"""

POST_LAYOUT = """\
<!doctype html>
<html lang="en">
<head>
  <title>{{ title }} | {{ site.title }}</title>
</head>
<body>
  <article class="post">
    <h1>{{ title }}</h1>
    <time datetime="{{ page.date | iso_date }}">{{ page.date | format_date }}</time>
    {{ content }}
  </article>
</body>
</html>
"""

DEFAULT_FILES = {
    "src/_includes/layouts/base.jinja": BASE_LAYOUT,
    "src/_includes/layouts/post.jinja": POST_LAYOUT,
}


def write_files(root: Path, files: typ.Mapping[str, str]) -> None:
    for relative, text in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")


def _article(title: str, date: str, body: str, **extra: str) -> str:
    lines = ["---", f"title: {title}", f"date: {date}"]
    lines.extend(f"{key}: {value}" for key, value in extra.items())
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def make_site(site_root: Path) -> typ.Callable[..., SiteConfig]:
    """Return a factory writing a site tree and building its configuration."""

    def _make(
        files: typ.Mapping[str, str] | None = None, **raw: typ.Any
    ) -> SiteConfig:
        write_files(site_root, {**DEFAULT_FILES, **(files or {})})
        payload: dict[str, typ.Any] = {
            "site": {"title": "Test Blog"},
            "layout_aliases": {"post": "layouts/post.jinja"},
            "default_layout": "layouts/base.jinja",
        }
        payload.update(raw)
        return build_site_config(payload, base_dir=site_root)

    return _make


@pytest.fixture
def article() -> typ.Callable[..., str]:
    """Return a helper producing Markdown articles with front matter."""
    return _article
