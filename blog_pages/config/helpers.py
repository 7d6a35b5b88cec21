"""Utility helpers shared by the site configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import (
    ChartOptions,
    HighlightOptions,
    MinifyOptions,
    SiteConfigError,
    SiteMetadata,
    TemplateOptions,
    WatchOptions,
)


def _as_mapping(value: object, field: str) -> typ.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping, treating ``None`` as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"'{field}' must be a mapping, got {type(value).__name__}."
        raise SiteConfigError(msg)
    return value


def _as_str_list(value: object, field: str) -> list[str]:
    """Normalize a string or list of strings into a list of non-empty strings."""
    match value:
        case None:
            return []
        case str() as text:
            return [text.strip()] if text.strip() else []
        case list() as items:
            normalized: list[str] = []
            for item in items:
                text = str(item).strip()
                if text:
                    normalized.append(text)
            return normalized
        case _:
            msg = f"'{field}' must be a string or a list of strings."
            raise SiteConfigError(msg)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _positive_int(value: object, field: str) -> int:
    """Coerce ``value`` into a strictly positive integer."""
    if isinstance(value, bool):
        msg = f"'{field}' must be a positive integer."
        raise SiteConfigError(msg)
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        msg = f"'{field}' must be a positive integer, got {value!r}."
        raise SiteConfigError(msg) from exc
    if number <= 0:
        msg = f"'{field}' must be a positive integer, got {value!r}."
        raise SiteConfigError(msg)
    return number


def _resolve_path(base: Path, value: object, field: str) -> Path:
    """Resolve ``value`` against ``base`` unless it is already absolute."""
    text = _optional_str(value)
    if text is None:
        msg = f"'{field}' must be a non-empty path."
        raise SiteConfigError(msg)
    path = Path(text).expanduser()
    return path if path.is_absolute() else base / path


def _check_names(names: list[str], allowed: tuple[str, ...], field: str) -> list[str]:
    """Reject names outside the closed ``allowed`` set."""
    unknown = [name for name in names if name not in allowed]
    if unknown:
        known = ", ".join(allowed)
        msg = f"Unknown {field}: {', '.join(unknown)}. Known {field}: {known}"
        raise SiteConfigError(msg)
    return names


def _build_site_metadata(payload: typ.Mapping[str, typ.Any]) -> SiteMetadata:
    """Build SiteMetadata from the ``site`` mapping."""
    base = SiteMetadata()
    return SiteMetadata(
        title=str(payload.get("title", base.title)),
        url=str(payload.get("url", base.url)).rstrip("/"),
        description=str(payload.get("description", base.description)),
        author=str(payload.get("author", base.author)),
    )


def _build_template_options(payload: typ.Mapping[str, typ.Any]) -> TemplateOptions:
    """Build TemplateOptions from the ``template`` mapping."""
    base = TemplateOptions()
    globals_ = _as_mapping(payload.get("globals"), "template.globals")
    return TemplateOptions(
        trim_blocks=bool(payload.get("trim_blocks", base.trim_blocks)),
        strict=bool(payload.get("strict", base.strict)),
        globals=dict(globals_),
    )


def _build_highlight_options(
    payload: typ.Mapping[str, typ.Any], output_dir: Path
) -> HighlightOptions:
    """Build HighlightOptions; the stylesheet path is relative to the output."""
    base = HighlightOptions()
    stylesheet = _optional_str(payload.get("stylesheet"))
    return HighlightOptions(
        style=str(payload.get("style", base.style)),
        stylesheet=output_dir / stylesheet.lstrip("/") if stylesheet else None,
    )


def _build_chart_options(payload: typ.Mapping[str, typ.Any]) -> ChartOptions:
    """Build ChartOptions with validated default dimensions."""
    base = ChartOptions()
    return ChartOptions(
        width=_positive_int(payload.get("width", base.width), "charts.width"),
        height=_positive_int(payload.get("height", base.height), "charts.height"),
    )


def _build_minify_options(payload: typ.Mapping[str, typ.Any]) -> MinifyOptions:
    """Build MinifyOptions from the ``minify`` mapping."""
    base = MinifyOptions()
    return MinifyOptions(
        remove_comments=bool(payload.get("remove_comments", base.remove_comments)),
        collapse_whitespace=bool(
            payload.get("collapse_whitespace", base.collapse_whitespace)
        ),
        use_short_doctype=bool(
            payload.get("use_short_doctype", base.use_short_doctype)
        ),
        minify_js=bool(payload.get("minify_js", base.minify_js)),
        minify_css=bool(payload.get("minify_css", base.minify_css)),
    )


def _build_watch_options(payload: typ.Mapping[str, typ.Any]) -> WatchOptions:
    """Build WatchOptions for the preview server and file poller."""
    base = WatchOptions()
    try:
        interval = float(payload.get("interval", base.interval))
    except (TypeError, ValueError) as exc:
        msg = "'watch.interval' must be a number of seconds."
        raise SiteConfigError(msg) from exc
    if interval <= 0:
        msg = "'watch.interval' must be greater than zero."
        raise SiteConfigError(msg)
    return WatchOptions(
        host=str(payload.get("host", base.host)),
        port=_positive_int(payload.get("port", base.port), "watch.port"),
        interval=interval,
    )


__all__ = [
    "_as_mapping",
    "_as_str_list",
    "_build_chart_options",
    "_build_highlight_options",
    "_build_minify_options",
    "_build_site_metadata",
    "_build_template_options",
    "_build_watch_options",
    "_check_names",
    "_optional_str",
    "_positive_int",
    "_resolve_path",
]
