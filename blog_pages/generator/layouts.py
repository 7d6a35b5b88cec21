"""Jinja environment that renders template pages and wraps content in layouts.

A :class:`LayoutEngine` is created once per build. It owns the Jinja
``Environment`` (loader over the layouts and input directories, autoescape,
whitespace trimming, strict undefined handling) plus the helpers every
template can call, such as ``format_date``. Rendering never mutates the
environment, so one engine serves every document in the build.
"""

from __future__ import annotations

import datetime as dt
import re
import typing as typ

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    Undefined,
    select_autoescape,
)
from markupsafe import Markup

from blog_pages._constants import DEFAULT_DATE_FORMAT
from blog_pages.documents import TEMPLATE
from blog_pages.errors import RenderError

if typ.TYPE_CHECKING:
    from jinja2 import Template

    from blog_pages.config import SiteConfig
    from blog_pages.documents import Document

    from .renderer import HtmlContentRenderer

LAYOUT_SUFFIXES = ("", ".jinja", ".html")


def format_date(value: object, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date, datetime, or ISO string with ``strftime`` syntax.

    Examples
    --------
    >>> import datetime as dt
    >>> format_date(dt.date(2020, 3, 14))
    'March 14, 2020'
    >>> format_date("2020-03-14", "%Y/%m/%d")
    '2020/03/14'
    """
    match value:
        case None:
            return ""
        case dt.datetime() | dt.date():
            return value.strftime(fmt)
        case str() as text:
            try:
                parsed = dt.datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
            except ValueError:
                return text
            return parsed.strftime(fmt)
        case _:
            return str(value)


def iso_date(value: object) -> str:
    """Return ``value`` as an ISO 8601 string, suitable for ``<time datetime>``."""
    if isinstance(value, dt.date):
        return value.isoformat()
    return "" if value is None else str(value)


def slugify(value: object) -> str:
    """Convert a string into a lowercase hyphen-separated slug."""
    return re.sub(r"[^a-z0-9]+", "-", str(value).lower()).strip("-")


class LayoutEngine:
    """Render documents through Jinja templates and named layouts."""

    def __init__(self, config: SiteConfig, renderer: HtmlContentRenderer) -> None:
        """Initialize the Jinja environment for one build.

        Parameters
        ----------
        config : SiteConfig
            Build configuration supplying template directories, whitespace
            and strictness switches, layout aliases, and injected globals.
        renderer : HtmlContentRenderer
            Markdown renderer exposed to templates through the ``markdown``
            and ``highlight`` filters.
        """
        self.config = config
        self.renderer = renderer
        options = config.template
        self.env = Environment(
            loader=FileSystemLoader([str(config.layouts_dir), str(config.input_dir)]),
            autoescape=select_autoescape(["html", "xml", "jinja"], default=True),
            trim_blocks=options.trim_blocks,
            lstrip_blocks=options.trim_blocks,
            undefined=StrictUndefined if options.strict else Undefined,
            keep_trailing_newline=False,
        )
        self.env.filters.update(
            {
                "format_date": format_date,
                "iso_date": iso_date,
                "slugify": slugify,
                "markdown": lambda text: Markup(renderer.markdown(str(text))),
                "highlight": lambda code, lang=None: Markup(
                    renderer.code_block(str(code), lang)
                ),
            }
        )
        self.env.globals.update(
            {
                "format_date": format_date,
                "site": config.site,
                "highlight_css": Markup(renderer.stylesheet),
            }
        )
        self.env.globals.update(options.globals)

    def resolve_layout(self, document: Document) -> Template | None:
        """Return the layout template for ``document`` or ``None`` for bare output.

        Raises
        ------
        RenderError
            If the document names a layout that cannot be found or parsed.
        """
        name = document.layout or self.config.default_layout
        if not name:
            return None
        target = self.config.layout_aliases.get(name, name)
        for suffix in LAYOUT_SUFFIXES:
            candidate = target if target.endswith(suffix) else f"{target}{suffix}"
            try:
                return self.env.get_template(candidate)
            except TemplateNotFound:
                continue
            except TemplateError as exc:
                raise RenderError(document.path, f"layout '{name}': {exc}") from exc
        msg = f"layout '{name}' not found (looked for '{target}')"
        raise RenderError(document.path, msg)

    def render(
        self,
        document: Document,
        content: str,
        context: typ.Mapping[str, typ.Any],
    ) -> str:
        """Render ``document`` and wrap it in its layout.

        Parameters
        ----------
        document : Document
            Page being rendered.
        content : str
            Markdown output for articles; ignored for template pages, whose
            body is rendered by Jinja with ``context`` instead.
        context : Mapping[str, Any]
            Variables shared by the page body and the layout.

        Raises
        ------
        RenderError
            If a template references an undefined variable, contains a syntax
            error, or names a missing layout.
        """
        try:
            if document.kind == TEMPLATE:
                body = self.env.from_string(document.body).render(**context)
            else:
                body = content
            layout = self.resolve_layout(document)
            if layout is None:
                return body
            return layout.render(**{**context, "content": Markup(body)})
        except RenderError:
            raise
        except TemplateError as exc:
            raise RenderError(document.path, f"template error: {exc}") from exc


__all__ = ["LayoutEngine", "format_date", "iso_date", "slugify"]
