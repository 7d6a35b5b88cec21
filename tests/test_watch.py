from __future__ import annotations

import logging
import os
import threading
import typing as typ
import urllib.request

import pytest

from blog_pages.config import load_site_config
from blog_pages.generator import SiteBuilder
from blog_pages.watch import (
    SiteWatcher,
    diff_snapshots,
    snapshot,
    start_preview_server,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from blog_pages.config import SiteConfig


def _touch(path: Path, text: str) -> None:
    """Rewrite ``path`` and move its mtime forward by a full second."""
    previous = path.stat().st_mtime_ns if path.exists() else 0
    path.write_text(text, encoding="utf-8")
    bumped = max(previous, path.stat().st_mtime_ns) + 1_000_000_000
    os.utime(path, ns=(bumped, bumped))


@pytest.fixture
def builder(
    make_site: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
) -> SiteBuilder:
    config = make_site(
        {"src/posts/first.md": article("First", "2020-01-01", "One.\n", layout="post")}
    )
    site = SiteBuilder(config)
    site.build()
    return site


def test_diff_snapshots_reports_added_removed_and_modified(tmp_path: Path) -> None:
    a, b, c = tmp_path / "a", tmp_path / "b", tmp_path / "c"

    changed = diff_snapshots({a: 1, b: 1}, {b: 2, c: 1})

    assert changed == {a, b, c}


def test_snapshot_covers_nested_files_and_single_files(tmp_path: Path) -> None:
    (tmp_path / "src" / "posts").mkdir(parents=True)
    nested = tmp_path / "src" / "posts" / "a.md"
    nested.write_text("a", encoding="utf-8")
    config = tmp_path / "site.yaml"
    config.write_text("{}", encoding="utf-8")

    stamps = snapshot([tmp_path / "src", config, tmp_path / "missing"])

    assert set(stamps) == {nested.resolve(), config.resolve()}


def test_step_without_changes_does_nothing(builder: SiteBuilder) -> None:
    assert SiteWatcher(builder).step() is None


def test_step_rebuilds_the_changed_article(
    builder: SiteBuilder, article: typ.Callable[..., str]
) -> None:
    watcher = SiteWatcher(builder)
    source = builder.config.input_dir / "posts" / "first.md"
    _touch(source, article("First", "2020-01-01", "Edited.\n", layout="post"))

    result = watcher.step()

    assert result is not None
    assert [page.source for page in result.pages] == [source]
    assert watcher.step() is None


def test_step_logs_build_errors_and_keeps_watching(
    builder: SiteBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    watcher = SiteWatcher(builder)
    source = builder.config.input_dir / "posts" / "first.md"
    _touch(source, "---\ntitle: Broken\n")

    with caplog.at_level(logging.ERROR, logger="blog_pages.watch"):
        assert watcher.step() is None

    assert "build failed" in caplog.text
    assert "never closed" in caplog.text


def test_run_stops_when_the_event_is_set(builder: SiteBuilder) -> None:
    stop = threading.Event()
    stop.set()

    SiteWatcher(builder).run(0.01, stop=stop)


def test_preview_server_serves_the_output(builder: SiteBuilder) -> None:
    server, thread = start_preview_server(builder.config.output_dir, "127.0.0.1", 0)
    try:
        port = server.server_address[1]
        with urllib.request.urlopen(
            f"http://127.0.0.1:{port}/posts/first/", timeout=5
        ) as response:
            body = response.read().decode("utf-8")
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)

    assert "First" in body


def test_step_reloads_a_changed_configuration_file(
    make_site: typ.Callable[..., SiteConfig],
    article: typ.Callable[..., str],
    site_root: Path,
) -> None:
    make_site({"src/posts/first.md": article("First", "2020-01-01", "One.\n")})
    config_file = site_root / "site.yaml"
    config_file.write_text(
        "site:\n  title: Old Name\ndefault_layout: layouts/base.jinja\n",
        encoding="utf-8",
    )
    site = SiteBuilder(load_site_config(config_file))
    site.build()
    watcher = SiteWatcher(site)
    _touch(
        config_file, "site:\n  title: New Name\ndefault_layout: layouts/base.jinja\n"
    )

    assert watcher.step() is not None

    page = site.config.output_dir / "posts" / "first" / "index.html"
    assert site.config.site.title == "New Name"
    assert "New Name" in page.read_text(encoding="utf-8")


def test_step_logs_configuration_errors(
    make_site: typ.Callable[..., SiteConfig],
    site_root: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    make_site()
    config_file = site_root / "site.yaml"
    config_file.write_text("site:\n  title: Notes\n", encoding="utf-8")
    site = SiteBuilder(load_site_config(config_file))
    site.build()
    watcher = SiteWatcher(site)
    _touch(config_file, "- not\n- a mapping\n")

    with caplog.at_level(logging.ERROR, logger="blog_pages.watch"):
        assert watcher.step() is None

    assert "must be a mapping" in caplog.text
    assert site.config.site.title == "Notes"
