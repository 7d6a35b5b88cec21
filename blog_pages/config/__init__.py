"""Load and validate the blog's ``site.yaml`` build configuration.

This subpackage parses the project's ``site.yaml`` file, applies defaults for
directories, plugins, and the minifier, resolves relative paths against the
file's location, and produces strongly typed dataclasses (:class:`SiteConfig`
and its option blocks) that the site builder consumes. The primary entry
point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from blog_pages.config import load_site_config
>>> site = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> site.output_dir.name  # doctest: +SKIP
'_site'
"""

from .loader import build_site_config, load_site_config
from .models import (
    PLUGIN_NAMES,
    TRANSFORM_NAMES,
    ChartOptions,
    HighlightOptions,
    MinifyOptions,
    SiteConfig,
    SiteConfigError,
    SiteMetadata,
    TemplateOptions,
    WatchOptions,
)

__all__ = [
    "PLUGIN_NAMES",
    "TRANSFORM_NAMES",
    "ChartOptions",
    "HighlightOptions",
    "MinifyOptions",
    "SiteConfig",
    "SiteConfigError",
    "SiteMetadata",
    "TemplateOptions",
    "WatchOptions",
    "build_site_config",
    "load_site_config",
]
