from __future__ import annotations

import logging
import typing as typ

import pytest
from bs4 import BeautifulSoup

from blog_pages.errors import FrontMatterError, RenderError
from blog_pages.generator import BuildState, SiteBuilder

if typ.TYPE_CHECKING:
    from pathlib import Path

    from blog_pages.config import SiteConfig

INDEX_PAGE = """\
---
title: Home
---
<ul class="posts">
{% for post in collections.posts %}
  <li><a href="{{ post.url }}">{{ post.title }}</a></li>
{% endfor %}
</ul>
"""

POST_BODY = """\
Hello *world*.

```ts
const answer: number = 42;
```

```chart
width: 700, height: 300
Operator, Requests
mergeMap, 5
switchMap, 1
```
"""


@pytest.fixture
def blog(
    make_site: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
) -> typ.Callable[..., SiteConfig]:
    """Return a factory for a small two-post blog."""

    def _make(extra: dict[str, str] | None = None, **raw: typ.Any) -> SiteConfig:
        files = {
            "src/posts/posts.yaml": "layout: post\ntags: [posts]\n",
            "src/posts/flattening.md": article(
                "Flattening operators", "2020-03-14", POST_BODY, tags="[rxjs]"
            ),
            "src/posts/marbles.md": article(
                "Marble testing", "2020-05-02", "Marbles.\n", tags="[rxjs, testing]"
            ),
            "src/index.jinja": INDEX_PAGE,
            "src/assets/site.css": "body { color: #333; }\n",
            "src/_data/navigation.yaml": "links: [home, tags]\n",
            **(extra or {}),
        }
        raw.setdefault("passthrough", ["assets"])
        raw.setdefault("highlight", {"stylesheet": "assets/highlight.css"})
        return make_site(files, **raw)

    return _make


def _read(config: SiteConfig, relative: str) -> str:
    return (config.output_dir / relative).read_text(encoding="utf-8")


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def test_build_writes_every_page_and_asset(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog()

    result = SiteBuilder(config).build()

    out = config.output_dir
    assert sorted(path.relative_to(out).as_posix() for path in result.written) == [
        "index.html",
        "posts/flattening/index.html",
        "posts/marbles/index.html",
    ]
    assert result.copied == [out / "assets" / "site.css"]
    assert ".codehilite" in _read(config, "assets/highlight.css")
    assert len(result.documents) == 3


def test_post_is_wrapped_in_its_aliased_layout(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog()
    SiteBuilder(config).build()

    soup = BeautifulSoup(_read(config, "posts/flattening/index.html"), "html.parser")

    assert soup.title.get_text() == "Flattening operators | Test Blog"
    assert soup.find("article", class_="post").find("h1").get_text() == "Flattening operators"
    time = soup.find("time")
    assert time["datetime"] == "2020-03-14"
    assert time.get_text() == "March 14, 2020"
    assert soup.find("em").get_text() == "world"
    assert soup.find("div", class_="codehilite")["data-language"] == "ts"


def test_chart_blocks_become_sized_svg(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog()
    SiteBuilder(config).build()

    soup = BeautifulSoup(_read(config, "posts/flattening/index.html"), "html.parser")

    svg = soup.find("figure", class_="chart").find("svg")
    assert (svg["width"], svg["height"]) == ("700", "300")
    assert len(svg.find_all("rect")) == 2


def test_output_is_minified(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog()
    SiteBuilder(config).build()

    html = _read(config, "index.html")

    assert html.startswith("<!DOCTYPE html><html lang=\"en\">")
    assert "page body" not in html
    assert "\n" not in html


def test_transforms_can_be_disabled(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog(transforms=[])
    SiteBuilder(config).build()

    assert "<!-- page body -->" in _read(config, "index.html")


def test_template_pages_see_collections(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog()
    SiteBuilder(config).build()

    soup = BeautifulSoup(_read(config, "index.html"), "html.parser")

    links = [(a["href"], a.get_text()) for a in soup.select("ul.posts a")]
    assert links == [
        ("/posts/flattening/", "Flattening operators"),
        ("/posts/marbles/", "Marble testing"),
    ]


def test_global_data_is_available_to_templates(
    blog: typ.Callable[..., SiteConfig],
) -> None:
    config = blog(
        {"src/nav.jinja": "---\ntitle: Nav\n---\n{{ navigation.links | join(',') }}\n"}
    )
    SiteBuilder(config).build()

    assert "home,tags" in _read(config, "nav/index.html")


def test_builds_are_deterministic(blog: typ.Callable[..., SiteConfig]) -> None:
    config = blog()

    SiteBuilder(config).build()
    first = _snapshot(config.output_dir)
    SiteBuilder(config).build()

    assert _snapshot(config.output_dir) == first


def test_permalink_false_documents_are_not_written(
    blog: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
) -> None:
    config = blog(
        {"src/posts/draft.md": article("Draft", "2020-06-01", "Soon.\n", permalink="false")}
    )

    result = SiteBuilder(config).build()

    assert not (config.output_dir / "posts" / "draft").exists()
    assert any(doc.title == "Draft" for doc in result.documents)
    assert "/posts/draft/" not in _read(config, "index.html")


def test_undefined_template_variable_is_fatal(
    blog: typ.Callable[..., SiteConfig],
) -> None:
    config = blog({"src/broken.jinja": "---\ntitle: Broken\n---\n{{ no_such_value }}\n"})

    with pytest.raises(RenderError) as excinfo:
        SiteBuilder(config).build()

    assert excinfo.value.path == config.input_dir / "broken.jinja"
    assert "no_such_value" in str(excinfo.value)


def test_lenient_templates_render_undefined_as_empty(
    blog: typ.Callable[..., SiteConfig],
) -> None:
    config = blog(
        {"src/lenient.jinja": "---\ntitle: Lenient\n---\n<p>[{{ no_such_value }}]</p>\n"},
        template={"strict": False},
    )
    SiteBuilder(config).build()

    assert "<p>[]</p>" in _read(config, "lenient/index.html")


def test_missing_layout_is_reported(
    blog: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
) -> None:
    config = blog({"src/odd.md": article("Odd", "2020-01-01", "x\n", layout="nope")})

    with pytest.raises(RenderError, match="layout 'nope' not found"):
        SiteBuilder(config).build()


def test_unclosed_front_matter_aborts_before_writing(
    blog: typ.Callable[..., SiteConfig],
) -> None:
    config = blog({"src/posts/broken.md": "---\ntitle: Broken\ndate: 2020-01-01\n\nBody\n"})
    builder = SiteBuilder(config)

    with pytest.raises(FrontMatterError) as excinfo:
        builder.build()

    assert excinfo.value.path == config.input_dir / "posts" / "broken.md"
    assert not config.output_dir.exists()
    assert builder.state is BuildState.IDLE


def test_pages_without_layout_are_emitted_bare(
    make_site: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
) -> None:
    config = make_site(
        {"src/plain.md": article("Plain", "2020-01-01", "Just *text*.\n")},
        default_layout=None,
        transforms=[],
    )
    SiteBuilder(config).build()

    assert _read(config, "plain/index.html") == "<p>Just <em>text</em>.</p>"


def test_missing_passthrough_entry_is_logged(
    blog: typ.Callable[..., SiteConfig],
    caplog: pytest.LogCaptureFixture,
) -> None:
    config = blog(passthrough=["assets", "fonts"])

    with caplog.at_level(logging.WARNING, logger="blog_pages"):
        result = SiteBuilder(config).build()

    assert len(result.copied) == 1
    assert "does not exist" in caplog.text


def test_state_transitions_are_logged(
    blog: typ.Callable[..., SiteConfig],
    caplog: pytest.LogCaptureFixture,
) -> None:
    config = blog()
    builder = SiteBuilder(config)

    with caplog.at_level(logging.DEBUG, logger="blog_pages.generator.site_builder"):
        builder.build()

    messages = caplog.text
    for state in ("scanning", "rendering", "post-processing", "written", "idle"):
        assert f"build state -> {state}" in messages
    assert builder.state is BuildState.IDLE


def test_nested_passthrough_entries_keep_their_full_path(
    blog: typ.Callable[..., SiteConfig],
) -> None:
    config = blog({"src/assets/img/logo.png": "png\n"}, passthrough=["assets/img"])

    result = SiteBuilder(config).build()

    assert result.copied == [config.output_dir / "assets" / "img" / "logo.png"]
    assert _read(config, "assets/img/logo.png") == "png\n"


def test_render_failure_leaves_previous_output_untouched(
    blog: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
) -> None:
    config = blog()
    SiteBuilder(config).build()
    before = _snapshot(config.output_dir)
    config = blog(
        {
            "src/posts/flattening.md": article(
                "Flattening operators", "2020-03-14", "Edited.\n", tags="[rxjs]"
            ),
            "src/zz-broken.jinja": "---\ntitle: Broken\n---\n{{ no_such_value }}\n",
        }
    )

    with pytest.raises(RenderError):
        SiteBuilder(config).build()

    assert _snapshot(config.output_dir) == before


def test_render_failure_on_first_build_writes_nothing(
    blog: typ.Callable[..., SiteConfig],
) -> None:
    config = blog({"src/zz-broken.jinja": "---\ntitle: Broken\n---\n{{ nope }}\n"})

    with pytest.raises(RenderError):
        SiteBuilder(config).build()

    assert not config.output_dir.exists()
