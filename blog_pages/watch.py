"""Rebuild the site when sources change and serve it for local preview.

The watcher polls modification times under the input directory (and the
configuration file) and hands the changed paths to
:meth:`~blog_pages.generator.SiteBuilder.rebuild`. The preview server is a
plain threaded HTTP server rooted at the output directory.

Example
-------
>>> from blog_pages.watch import SiteWatcher
>>> watcher = SiteWatcher(builder)  # doctest: +SKIP
>>> watcher.poll()  # doctest: +SKIP
set()
"""

from __future__ import annotations

import functools
import logging
import threading
import typing as typ
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

from blog_pages.config import SiteConfigError, load_site_config
from blog_pages.errors import BuildError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from blog_pages.generator import BuildResult, SiteBuilder

logger = logging.getLogger(__name__)

Snapshot = dict["Path", int]


def snapshot(roots: cabc.Iterable[Path]) -> Snapshot:
    """Return modification times for every file under ``roots``."""
    stamps: Snapshot = {}
    for root in roots:
        if root.is_file():
            stamps[root.resolve()] = root.stat().st_mtime_ns
            continue
        if not root.is_dir():
            continue
        for path in root.rglob("*"):
            if path.is_file():
                try:
                    stamps[path.resolve()] = path.stat().st_mtime_ns
                except FileNotFoundError:
                    continue
    return stamps


def diff_snapshots(before: Snapshot, after: Snapshot) -> set[Path]:
    """Return paths that were added, removed, or modified between snapshots."""
    changed = set(before.keys() ^ after.keys())
    changed |= {path for path in before.keys() & after.keys() if before[path] != after[path]}
    return changed


class SiteWatcher:
    """Poll the content tree and rebuild whatever changed."""

    def __init__(self, builder: SiteBuilder) -> None:
        self.builder = builder
        config = builder.config
        self.roots = [config.input_dir]
        if config.config_path is not None:
            self.roots.append(config.config_path)
        self._snapshot = snapshot(self.roots)

    def poll(self) -> set[Path]:
        """Return paths changed since the previous poll."""
        current = snapshot(self.roots)
        changed = diff_snapshots(self._snapshot, current)
        self._snapshot = current
        return changed

    def step(self) -> BuildResult | None:
        """Rebuild once if anything changed.

        A changed configuration file is loaded again before the rebuild. Build
        and configuration errors are logged and leave the previous output in
        place, so a typo in an article does not stop the watch loop.
        """
        changed = self.poll()
        if not changed:
            return None
        logger.info("%d file(s) changed; rebuilding", len(changed))
        try:
            config_path = self.builder.config.config_path
            if config_path is not None and config_path.resolve() in changed:
                self.builder.config = load_site_config(config_path)
            return self.builder.rebuild(changed)
        except (BuildError, SiteConfigError) as exc:
            logger.error("build failed: %s", exc)
            return None

    def run(
        self,
        interval: float,
        *,
        on_rebuild: cabc.Callable[[BuildResult], None] | None = None,
        stop: threading.Event | None = None,
    ) -> None:
        """Poll every ``interval`` seconds until ``stop`` is set."""
        stop = stop or threading.Event()
        while not stop.wait(interval):
            result = self.step()
            if result is not None and on_rebuild is not None:
                on_rebuild(result)


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: typ.Any) -> None:  # noqa: A002
        logger.debug("preview: " + format, *args)


def start_preview_server(
    directory: Path, host: str, port: int
) -> tuple[ThreadingHTTPServer, threading.Thread]:
    """Serve ``directory`` over HTTP from a daemon thread.

    Returns
    -------
    tuple[ThreadingHTTPServer, Thread]
        The running server (call ``shutdown()`` to stop it) and its thread.
    """
    handler = functools.partial(_QuietHandler, directory=str(directory))
    server = ThreadingHTTPServer((host, port), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, thread


__all__ = [
    "SiteWatcher",
    "diff_snapshots",
    "snapshot",
    "start_preview_server",
]
