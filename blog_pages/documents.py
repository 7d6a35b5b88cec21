"""Discover content files and turn them into immutable documents.

This module walks the input tree, parses each Markdown article or template
page with :func:`~blog_pages.front_matter.parse_front_matter`, merges
directory data files underneath the front matter, and derives the output path
and URL each document is published at. It also computes the tag index that
templates see as ``collections``.

Example
-------
>>> from pathlib import Path
>>> from blog_pages.documents import discover_documents
>>> documents = discover_documents(config)  # doctest: +SKIP
>>> documents[0].url  # doctest: +SKIP
'/posts/angular-signals/'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ
from pathlib import Path, PurePosixPath

import msgspec.json as msgspec_json
from msgspec import DecodeError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from blog_pages._constants import DATA_SUFFIXES, MARKDOWN_SUFFIXES, TEMPLATE_SUFFIXES
from blog_pages.errors import BuildError, FrontMatterError
from blog_pages.front_matter import parse_front_matter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from blog_pages.config import SiteConfig

MARKDOWN = "markdown"
TEMPLATE = "template"


@dc.dataclass(frozen=True, slots=True)
class Document:
    """One content file parsed at build time.

    Attributes
    ----------
    path : Path
        Source file on disk; identifies the document.
    relative_path : PurePosixPath
        Location of the file below the input directory.
    metadata : dict[str, Any]
        Front matter merged over directory data, in declaration order.
    body : str
        Raw text following the front matter.
    kind : str
        ``"markdown"`` for articles, ``"template"`` for Jinja pages.
    """

    path: Path
    relative_path: PurePosixPath
    metadata: dict[str, typ.Any]
    body: str
    kind: str = MARKDOWN

    @property
    def title(self) -> str | None:
        value = self.metadata.get("title")
        return None if value is None else str(value)

    @property
    def date(self) -> dt.date | None:
        return _coerce_date(self.metadata.get("date"))

    @property
    def tags(self) -> list[str]:
        return _normalize_tags(self.metadata.get("tags"))

    @property
    def layout(self) -> str | None:
        value = self.metadata.get("layout")
        return str(value) if value else None

    @property
    def permalink(self) -> str | bool | None:
        """Return the explicit output location, ``False`` to skip writing."""
        value = self.metadata.get("permalink")
        if value is False:
            return False
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @property
    def file_slug(self) -> str:
        """Return the file stem, or the parent name for ``index`` files."""
        stem = self.relative_path.stem
        if stem == "index" and self.relative_path.parent.name:
            return self.relative_path.parent.name
        return stem

    @property
    def output_relative_path(self) -> PurePosixPath | None:
        """Return the output location below the output directory.

        ``permalink: false`` returns ``None``; such documents appear in
        collections but are never written.
        """
        permalink = self.permalink
        if permalink is False:
            return None
        if isinstance(permalink, str):
            target = permalink.lstrip("/")
            if not target or target.endswith("/"):
                return PurePosixPath(target) / "index.html"
            return PurePosixPath(target)
        parent = self.relative_path.parent
        stem = self.relative_path.stem
        if stem == "index":
            return parent / "index.html"
        return parent / stem / "index.html"

    @property
    def url(self) -> str | None:
        """Return the site-relative URL, using directory style for index pages."""
        output = self.output_relative_path
        if output is None:
            return None
        if output.name == "index.html":
            parent = output.parent.as_posix()
            return "/" if parent == "." else f"/{parent}/"
        return f"/{output.as_posix()}"

    @property
    def sort_key(self) -> tuple[dt.date, str]:
        return (self.date or dt.date.min, self.relative_path.as_posix())


def _coerce_date(value: object) -> dt.date | None:
    """Return ``value`` as a date, accepting YAML dates and ISO strings."""
    match value:
        case dt.datetime():
            return value.date()
        case dt.date():
            return value
        case str() as text if text.strip():
            sanitized = text.strip()
            if sanitized.endswith("Z"):
                sanitized = sanitized[:-1] + "+00:00"
            try:
                return dt.datetime.fromisoformat(sanitized).date()
            except ValueError:
                return None
        case _:
            return None


def _normalize_tags(value: object) -> list[str]:
    """Return tags as a de-duplicated list; a bare string is a single tag."""
    if value is None:
        return []
    items = [value] if isinstance(value, str) else value
    if not isinstance(items, list | tuple):
        return []
    tags: list[str] = []
    for item in items:
        text = str(item).strip()
        if text and text not in tags:
            tags.append(text)
    return tags


def deep_merge(
    base: typ.Mapping[str, typ.Any], override: typ.Mapping[str, typ.Any]
) -> dict[str, typ.Any]:
    """Merge ``override`` onto ``base``.

    Mappings merge recursively, lists concatenate without duplicates, and any
    other value from ``override`` replaces the one in ``base``.
    """
    merged: dict[str, typ.Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + [item for item in value if item not in current]
        else:
            merged[key] = value
    return merged


def load_data_file(path: Path) -> typ.Any:
    """Decode a YAML or JSON data file, raising BuildError on bad content."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise BuildError(path, f"cannot read data file: {exc}") from exc
    if path.suffix == ".json":
        try:
            return msgspec_json.decode(raw)
        except DecodeError as exc:
            raise BuildError(path, f"invalid JSON data: {exc}") from exc
    try:
        return YAML(typ="safe").load(raw.decode("utf-8"))
    except (YAMLError, UnicodeDecodeError) as exc:
        raise BuildError(path, f"invalid YAML data: {exc}") from exc


def load_global_data(data_dir: Path) -> dict[str, typ.Any]:
    """Return every data file under ``data_dir`` keyed by its stem."""
    if not data_dir.is_dir():
        return {}
    data: dict[str, typ.Any] = {}
    for path in sorted(data_dir.iterdir()):
        if path.is_file() and path.suffix in DATA_SUFFIXES:
            data[path.stem] = load_data_file(path)
    return data


def _directory_data(directory: Path) -> dict[str, typ.Any]:
    """Return the ``<dir>/<dir>.yaml`` or ``.json`` defaults for ``directory``."""
    for suffix in (".yaml", ".yml", ".json"):
        candidate = directory / f"{directory.name}{suffix}"
        if candidate.is_file():
            loaded = load_data_file(candidate)
            if loaded is None:
                return {}
            if not isinstance(loaded, dict):
                raise BuildError(candidate, "directory data must be a mapping")
            return loaded
    return {}


def _is_ignored(relative: PurePosixPath) -> bool:
    return any(part.startswith(("_", ".")) for part in relative.parts)


def iter_content_files(config: SiteConfig) -> cabc.Iterator[Path]:
    """Yield content files under the input directory in a stable order."""
    root = config.input_dir
    if not root.is_dir():
        raise BuildError(root, "input directory does not exist")
    passthrough = [entry.resolve() for entry in config.passthrough]
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        relative = PurePosixPath(path.relative_to(root).as_posix())
        if _is_ignored(relative):
            continue
        resolved = path.resolve()
        if any(resolved == entry or entry in resolved.parents for entry in passthrough):
            continue
        if path.suffix in MARKDOWN_SUFFIXES or path.suffix in TEMPLATE_SUFFIXES:
            yield path


def load_document(
    path: Path,
    config: SiteConfig,
    *,
    directory_data: cabc.Callable[[Path], dict[str, typ.Any]] | None = None,
) -> Document:
    """Read ``path`` and return its Document.

    Parameters
    ----------
    path : Path
        Content file inside ``config.input_dir``.
    config : SiteConfig
        Build configuration supplying the input root and required fields.
    directory_data : Callable[[Path], dict], optional
        Lookup for directory data defaults; defaults to reading the files
        from disk on every call.

    Raises
    ------
    FrontMatterError
        If the front matter is malformed or a Markdown document lacks one of
        the configured required fields.
    BuildError
        If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise BuildError(path, f"cannot read content file: {exc}") from exc
    front_matter, body = parse_front_matter(text, source=path)

    lookup = directory_data or _directory_data
    relative = PurePosixPath(path.relative_to(config.input_dir).as_posix())
    defaults: dict[str, typ.Any] = {}
    current = config.input_dir
    for part in relative.parent.parts:
        current = current / part
        defaults = deep_merge(defaults, lookup(current))
    metadata = deep_merge(defaults, front_matter)

    kind = MARKDOWN if path.suffix in MARKDOWN_SUFFIXES else TEMPLATE
    if kind == MARKDOWN:
        missing = [
            name
            for name in config.required_fields
            if metadata.get(name) in (None, "")
        ]
        if missing:
            msg = f"missing required front matter: {', '.join(missing)}"
            raise FrontMatterError(path, msg)
    return Document(
        path=path, relative_path=relative, metadata=metadata, body=body, kind=kind
    )


def discover_documents(config: SiteConfig) -> list[Document]:
    """Parse every content file under ``config.input_dir``.

    Directory data files are read once per directory. Any malformed document
    aborts discovery with :class:`~blog_pages.errors.FrontMatterError`.
    """
    cache: dict[Path, dict[str, typ.Any]] = {}

    def _cached(directory: Path) -> dict[str, typ.Any]:
        if directory not in cache:
            cache[directory] = _directory_data(directory)
        return cache[directory]

    return [
        load_document(path, config, directory_data=_cached)
        for path in iter_content_files(config)
    ]


def build_tag_index(
    documents: cabc.Iterable[Document],
) -> dict[str, tuple[Document, ...]]:
    """Group documents by tag, ordered by date and then path.

    Every document carrying a tag appears under that tag and no other
    document does.
    """
    grouped: dict[str, list[Document]] = {}
    for document in documents:
        for tag in document.tags:
            grouped.setdefault(tag, []).append(document)
    return {
        tag: tuple(sorted(members, key=lambda doc: doc.sort_key))
        for tag, members in sorted(grouped.items())
    }


def build_collections(
    documents: cabc.Iterable[Document],
) -> dict[str, tuple[Document, ...]]:
    """Return the tag index plus an ``all`` collection of every document."""
    ordered = tuple(sorted(documents, key=lambda doc: doc.sort_key))
    return {**build_tag_index(ordered), "all": ordered}


__all__ = [
    "MARKDOWN",
    "TEMPLATE",
    "Document",
    "build_collections",
    "build_tag_index",
    "deep_merge",
    "discover_documents",
    "iter_content_files",
    "load_data_file",
    "load_document",
    "load_global_data",
]
