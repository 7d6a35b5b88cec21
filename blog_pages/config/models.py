"""Typed dataclasses describing the blog's build configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from blog_pages._constants import DEFAULT_CHART_SIZE

PLUGIN_NAMES = ("charts", "highlight")
TRANSFORM_NAMES = ("htmlmin",)


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SiteMetadata:
    """Site-wide values exposed to every template as ``site``."""

    title: str = "Blog"
    url: str = ""
    description: str = ""
    author: str = ""


@dc.dataclass(slots=True)
class TemplateOptions:
    """Jinja environment switches and injected globals."""

    trim_blocks: bool = True
    strict: bool = True
    globals: dict[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(slots=True)
class HighlightOptions:
    """Pygments settings for fenced code blocks."""

    style: str = "monokai"
    stylesheet: Path | None = None


@dc.dataclass(slots=True)
class ChartOptions:
    """Fallback dimensions for chart blocks without explicit sizing."""

    width: int = DEFAULT_CHART_SIZE[0]
    height: int = DEFAULT_CHART_SIZE[1]


@dc.dataclass(slots=True)
class MinifyOptions:
    """HTML minifier switches mirroring the usual html-minifier flags."""

    remove_comments: bool = True
    collapse_whitespace: bool = True
    use_short_doctype: bool = True
    minify_js: bool = True
    minify_css: bool = False


@dc.dataclass(slots=True)
class WatchOptions:
    """Preview server and polling settings for ``blog watch``."""

    host: str = "127.0.0.1"
    port: int = 8080
    interval: float = 0.5


@dc.dataclass(slots=True)
class SiteConfig:
    """A fully resolved build configuration sourced from ``site.yaml``.

    Attributes
    ----------
    config_path : Path | None
        File the configuration was loaded from; ``None`` when built in code.
    input_dir : Path
        Root of the Markdown and template content tree.
    output_dir : Path
        Directory receiving the generated site.
    layouts_dir : Path
        Directory holding Jinja layouts; usually inside ``input_dir``.
    data_dir : Path
        Directory of global data files exposed to templates by file stem.
    passthrough : list[Path]
        Files or directories copied verbatim into ``output_dir``.
    layout_aliases : dict[str, str]
        Short layout names mapped to template paths under ``layouts_dir``.
    default_layout : str | None
        Layout applied to documents that do not name one.
    required_fields : list[str]
        Front-matter keys every Markdown document must define.
    plugins : list[str]
        Enabled content plugins, a subset of ``PLUGIN_NAMES``.
    transforms : list[str]
        Enabled output transforms, a subset of ``TRANSFORM_NAMES``.
    """

    input_dir: Path
    output_dir: Path
    layouts_dir: Path
    data_dir: Path
    config_path: Path | None = None
    site: SiteMetadata = dc.field(default_factory=SiteMetadata)
    passthrough: list[Path] = dc.field(default_factory=list)
    layout_aliases: dict[str, str] = dc.field(default_factory=dict)
    default_layout: str | None = None
    required_fields: list[str] = dc.field(default_factory=lambda: ["title", "date"])
    template: TemplateOptions = dc.field(default_factory=TemplateOptions)
    plugins: list[str] = dc.field(default_factory=lambda: list(PLUGIN_NAMES))
    transforms: list[str] = dc.field(default_factory=lambda: list(TRANSFORM_NAMES))
    highlight: HighlightOptions = dc.field(default_factory=HighlightOptions)
    charts: ChartOptions = dc.field(default_factory=ChartOptions)
    minify: MinifyOptions = dc.field(default_factory=MinifyOptions)
    watch: WatchOptions = dc.field(default_factory=WatchOptions)

    def plugin_enabled(self, name: str) -> bool:
        """Return whether the content plugin ``name`` is active."""
        return name in self.plugins

    def with_output_dir(self, output_dir: Path) -> SiteConfig:
        """Return a copy of this configuration writing into ``output_dir``.

        A highlight stylesheet placed inside the old output directory moves
        along with it.
        """
        highlight = self.highlight
        stylesheet = highlight.stylesheet
        if stylesheet is not None and stylesheet.is_relative_to(self.output_dir):
            moved = output_dir / stylesheet.relative_to(self.output_dir)
            highlight = dc.replace(highlight, stylesheet=moved)
        return dc.replace(self, output_dir=output_dir, highlight=highlight)


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
]
