"""Closed registry of content plugins and output transforms.

Plugins change how Markdown bodies render (code highlighting, chart blocks);
transforms rewrite finished output (HTML minification). Both are chosen by
name in ``site.yaml`` and resolved here into concrete objects once per build,
so the set of active behaviours is explicit and cannot grow at runtime.
"""

from __future__ import annotations

import enum
import typing as typ

from .minify import htmlmin_transform
from .renderer import HtmlContentRenderer

if typ.TYPE_CHECKING:
    from blog_pages.config import SiteConfig

Transform = typ.Callable[[str, str], str]


class Plugin(enum.Enum):
    """Content plugins applied while rendering Markdown."""

    CHARTS = "charts"
    HIGHLIGHT = "highlight"


class TransformKind(enum.Enum):
    """Whole-document transforms applied to rendered output."""

    HTMLMIN = "htmlmin"


def select_plugins(config: SiteConfig) -> frozenset[Plugin]:
    """Return the plugins enabled in ``config``."""
    return frozenset(plugin for plugin in Plugin if config.plugin_enabled(plugin.value))


def build_renderer(config: SiteConfig) -> HtmlContentRenderer:
    """Return a Markdown renderer wired with the enabled content plugins."""
    plugins = select_plugins(config)
    return HtmlContentRenderer(
        config.highlight.style,
        highlight_code=Plugin.HIGHLIGHT in plugins,
        chart_defaults=config.charts if Plugin.CHARTS in plugins else None,
    )


def build_transforms(config: SiteConfig) -> list[Transform]:
    """Return the output transforms enabled in ``config``, in declared order."""
    transforms: list[Transform] = []
    for name in config.transforms:
        match TransformKind(name):
            case TransformKind.HTMLMIN:
                transforms.append(htmlmin_transform(config.minify))
    return transforms


__all__ = [
    "Plugin",
    "Transform",
    "TransformKind",
    "build_renderer",
    "build_transforms",
    "select_plugins",
]
