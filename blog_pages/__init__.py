"""Static site builder for the blog's Markdown articles.

This package exposes the CLI entry points used by ``uv run blog`` to turn the
Markdown posts under ``src/`` into a minified static site.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from blog_pages import main
>>> main(["build"])  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
