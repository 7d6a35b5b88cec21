r"""Split content files into YAML front matter and body text.

Every article starts with a ``---`` delimited YAML block holding its title,
date, tags, and other metadata. This module separates that block from the
Markdown body, parses it with ``ruamel.yaml``, and can serialise metadata back
into the same shape.

Example
-------
>>> from blog_pages.front_matter import parse_front_matter
>>> metadata, body = parse_front_matter("---\ntitle: Hello\n---\nBody\n")
>>> metadata["title"], body
('Hello', 'Body\n')
"""

from __future__ import annotations

import io
import re
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from blog_pages._constants import FRONT_MATTER_DELIMITER
from blog_pages.errors import FrontMatterError

if typ.TYPE_CHECKING:
    from pathlib import Path

OPENING_PATTERN = re.compile(r"\A\ufeff?---[ \t]*\r?\n")
CLOSING_PATTERN = re.compile(r"^---[ \t]*(?:\r?\n|\Z)", re.MULTILINE)


def _yaml() -> YAML:
    loader = YAML(typ="safe")
    loader.default_flow_style = False
    return loader


def parse_front_matter(
    text: str, *, source: Path | str | None = None
) -> tuple[dict[str, typ.Any], str]:
    """Return the front-matter mapping and the remaining body of ``text``.

    Parameters
    ----------
    text : str
        Full file contents.
    source : Path or str, optional
        File the text came from; used in error messages.

    Returns
    -------
    tuple[dict[str, Any], str]
        Parsed metadata (empty when the file has no front matter) and the body
        that follows the closing delimiter.

    Raises
    ------
    FrontMatterError
        If the opening delimiter is never closed, the header is not valid
        YAML, or the header is not a mapping.
    """
    opening = OPENING_PATTERN.match(text)
    if opening is None:
        return {}, text

    closing = CLOSING_PATTERN.search(text, opening.end())
    if closing is None:
        msg = f"front matter opened with '{FRONT_MATTER_DELIMITER}' is never closed"
        raise FrontMatterError(source, msg)

    header = text[opening.end() : closing.start()]
    try:
        loaded = _yaml().load(header)
    except YAMLError as exc:
        msg = f"invalid YAML front matter: {exc}"
        raise FrontMatterError(source, msg) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        msg = f"front matter must be a mapping, got {type(loaded).__name__}"
        raise FrontMatterError(source, msg)
    return dict(loaded), text[closing.end() :]


def dump_front_matter(metadata: typ.Mapping[str, typ.Any], body: str) -> str:
    """Serialise ``metadata`` and ``body`` back into a front-matter document."""
    if not metadata:
        return body
    buffer = io.StringIO()
    _yaml().dump(dict(metadata), buffer)
    header = buffer.getvalue()
    if not header.endswith("\n"):
        header += "\n"
    return f"{FRONT_MATTER_DELIMITER}\n{header}{FRONT_MATTER_DELIMITER}\n{body}"


__all__ = ["dump_front_matter", "parse_front_matter"]
