"""Load the site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .helpers import (
    _as_mapping,
    _as_str_list,
    _build_chart_options,
    _build_highlight_options,
    _build_minify_options,
    _build_site_metadata,
    _build_template_options,
    _build_watch_options,
    _check_names,
    _optional_str,
    _resolve_path,
)
from .models import PLUGIN_NAMES, TRANSFORM_NAMES, SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the blog build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``site.yaml``). Relative directories inside the file resolve against
        the file's parent directory.

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied for every omitted key.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the top-level structure is not a mapping, a plugin or transform
        name is unknown, or a value has the wrong shape.
        Also raised, prefixed with ``path``, when the YAML cannot be parsed.

    Examples
    --------
    >>> from pathlib import Path
    >>> from blog_pages.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> config.layout_aliases["post"]  # doctest: +SKIP
    'layouts/post.jinja'
    """
    if not path.exists():
        msg = f"{path}: configuration file not found"
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"{path}: invalid YAML: {exc}"
        raise SiteConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"{path}: top-level YAML structure must be a mapping."
        raise SiteConfigError(msg)
    try:
        return build_site_config(
            loaded, base_dir=path.resolve().parent, config_path=path
        )
    except SiteConfigError as exc:
        msg = f"{path}: {exc}"
        raise SiteConfigError(msg) from exc


def build_site_config(
    raw: typ.Mapping[str, typ.Any],
    *,
    base_dir: Path,
    config_path: Path | None = None,
) -> SiteConfig:
    """Build a SiteConfig from an already parsed mapping.

    Parameters
    ----------
    raw : Mapping[str, Any]
        Parsed configuration payload.
    base_dir : Path
        Directory that relative ``input_dir`` and ``output_dir`` values
        resolve against.
    config_path : Path, optional
        Source file, recorded so watch mode can poll it for changes.
    """
    input_dir = _resolve_path(base_dir, raw.get("input_dir", "src"), "input_dir")
    output_dir = _resolve_path(base_dir, raw.get("output_dir", "_site"), "output_dir")
    layouts_dir = _resolve_path(
        input_dir, raw.get("layouts_dir", "_includes"), "layouts_dir"
    )
    data_dir = _resolve_path(input_dir, raw.get("data_dir", "_data"), "data_dir")
    passthrough = [
        _resolve_path(input_dir, entry, "passthrough")
        for entry in _as_str_list(raw.get("passthrough"), "passthrough")
    ]

    aliases_raw = _as_mapping(raw.get("layout_aliases"), "layout_aliases")
    layout_aliases = {str(key): str(value) for key, value in aliases_raw.items()}

    required_raw = raw.get("required_fields", ["title", "date"])
    plugins_raw = raw.get("plugins", list(PLUGIN_NAMES))
    transforms_raw = raw.get("transforms", list(TRANSFORM_NAMES))
    plugins = _check_names(_as_str_list(plugins_raw, "plugins"), PLUGIN_NAMES, "plugins")
    transforms = _check_names(
        _as_str_list(transforms_raw, "transforms"), TRANSFORM_NAMES, "transforms"
    )

    if output_dir.resolve() == input_dir.resolve():
        msg = "'output_dir' must differ from 'input_dir'."
        raise SiteConfigError(msg)

    return SiteConfig(
        config_path=config_path,
        input_dir=input_dir,
        output_dir=output_dir,
        layouts_dir=layouts_dir,
        data_dir=data_dir,
        site=_build_site_metadata(_as_mapping(raw.get("site"), "site")),
        passthrough=passthrough,
        layout_aliases=layout_aliases,
        default_layout=_optional_str(raw.get("default_layout")),
        required_fields=_as_str_list(required_raw, "required_fields"),
        template=_build_template_options(_as_mapping(raw.get("template"), "template")),
        plugins=plugins,
        transforms=transforms,
        highlight=_build_highlight_options(
            _as_mapping(raw.get("highlight"), "highlight"), output_dir
        ),
        charts=_build_chart_options(_as_mapping(raw.get("charts"), "charts")),
        minify=_build_minify_options(_as_mapping(raw.get("minify"), "minify")),
        watch=_build_watch_options(_as_mapping(raw.get("watch"), "watch")),
    )


__all__ = ["build_site_config", "load_site_config"]
