"""Cyclopts CLI entrypoint for building and previewing the blog.

The ``blog`` console script defined here renders every article and template
page under the configured input directory into static HTML. ``blog build``
runs one full build, suitable for CI; ``blog watch`` builds once, serves the
output over HTTP, and rebuilds whatever changes until interrupted.

Examples
--------
Build the site described by ``site.yaml`` in the current directory:

>>> from blog_pages.cli import main
>>> main(["build"])  # doctest: +SKIP

Preview the site on another port without rebuilding assets by hand:

>>> main(["watch", "--port", "4000"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import threading
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG
from .config import SiteConfigError, load_site_config
from .errors import BuildError
from .generator import SiteBuilder
from .watch import SiteWatcher, start_preview_server

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .generator import BuildResult

logger = logging.getLogger(__name__)

app = App(name="blog", config=cyclopts.config.Env("BLOG_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _report(result: BuildResult) -> None:
    for path in result.written:
        print(f"wrote {_format_path(path)}")
    for path in result.copied:
        print(f"copied {_format_path(path)}")
    for path in result.removed:
        print(f"removed {_format_path(path)}")


@app.command(help="Build the whole site into the output directory.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="BLOG_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="BLOG_OUTPUT_DIR"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every build step", env_var="BLOG_VERBOSE")
    ] = False,
) -> None:
    """Render every document and copy passthrough assets once.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``BLOG_CONFIG``).
    output_dir : Path or None, optional
        Write the site here instead of the configured ``output_dir``.
    verbose : bool, optional
        Emit debug logging for each build state transition.

    Raises
    ------
    BuildError
        If any document fails to parse or render; nothing further is written.
    """
    _configure_logging(verbose=verbose)
    site_config = load_site_config(config)
    if output_dir is not None:
        site_config = site_config.with_output_dir(output_dir)
    _report(SiteBuilder(site_config).build())


@app.command(help="Build, serve the output, and rebuild on every change.")
def watch(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="BLOG_CONFIG")
    ] = DEFAULT_CONFIG,
    host: typ.Annotated[
        str | None, Parameter(help="Preview server host", env_var="BLOG_HOST")
    ] = None,
    port: typ.Annotated[
        int | None, Parameter(help="Preview server port", env_var="BLOG_PORT")
    ] = None,
    serve: typ.Annotated[
        bool, Parameter(help="Serve the output directory over HTTP")
    ] = True,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every build step", env_var="BLOG_VERBOSE")
    ] = False,
) -> None:
    """Keep the output directory in sync with the sources until interrupted.

    Host, port, and the polling interval default to the ``watch`` section of
    the configuration file. Errors raised while rebuilding are logged and the
    previous output is kept; only the initial build is fatal.
    """
    _configure_logging(verbose=verbose)
    site_config = load_site_config(config)
    options = site_config.watch
    builder = SiteBuilder(site_config)
    _report(builder.build())

    server = None
    if serve:
        bind_host = host or options.host
        bind_port = options.port if port is None else port
        server, _thread = start_preview_server(
            site_config.output_dir, bind_host, bind_port
        )
        print(f"serving http://{bind_host}:{bind_port}/")

    stop = threading.Event()
    try:
        SiteWatcher(builder).run(options.interval, on_rebuild=_report, stop=stop)
    except KeyboardInterrupt:
        stop.set()
    finally:
        if server is not None:
            server.shutdown()
            server.server_close()


def main(argv: cabc.Sequence[str] | None = None) -> None:
    """Invoke the Cyclopts application that powers the ``blog`` console command.

    Build and configuration errors are reported as ``error: <message>`` on
    stderr and turn into exit status 1.

    Examples
    --------
    >>> main(["build", "--output-dir", "dist"])  # doctest: +SKIP
    """
    try:
        app(argv)
    except (BuildError, SiteConfigError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
