"""Rendering, transforms, and orchestration for the static site build."""

from .charts import ChartExtension, ChartSpec, parse_chart_spec
from .layouts import LayoutEngine
from .minify import minify_html
from .models import BuildResult, BuildState, RenderedPage
from .plugins import Plugin, TransformKind, build_renderer, build_transforms
from .renderer import HtmlContentRenderer
from .site_builder import SiteBuilder

__all__ = [
    "BuildResult",
    "BuildState",
    "ChartExtension",
    "ChartSpec",
    "HtmlContentRenderer",
    "LayoutEngine",
    "Plugin",
    "RenderedPage",
    "SiteBuilder",
    "TransformKind",
    "build_renderer",
    "build_transforms",
    "minify_html",
    "parse_chart_spec",
]
