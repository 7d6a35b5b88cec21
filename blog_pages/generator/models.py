"""Shared dataclasses used by the site build pipeline."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from blog_pages.documents import Document


class BuildState(enum.Enum):
    """Stages a build moves through; per-file stages repeat for every page."""

    IDLE = "idle"
    SCANNING = "scanning"
    RENDERING = "rendering"
    POST_PROCESSING = "post-processing"
    WRITTEN = "written"


@dc.dataclass(frozen=True, slots=True)
class RenderedPage:
    """Final output for one document.

    Attributes
    ----------
    source : Path
        Document the page was rendered from.
    output_path : Path
        File the page is written to.
    html : str
        Content after every output transform ran.
    """

    source: Path
    output_path: Path
    html: str


@dc.dataclass(slots=True)
class BuildResult:
    """Summary of a build or rebuild.

    Attributes
    ----------
    pages : list[RenderedPage]
        Pages written during this run, in render order.
    copied : list[Path]
        Passthrough assets copied into the output directory.
    removed : list[Path]
        Output files deleted because their source disappeared.
    documents : list[Document]
        Every document known after the run.
    """

    pages: list[RenderedPage] = dc.field(default_factory=list)
    copied: list[Path] = dc.field(default_factory=list)
    removed: list[Path] = dc.field(default_factory=list)
    documents: list[Document] = dc.field(default_factory=list)

    @property
    def written(self) -> list[Path]:
        return [page.output_path for page in self.pages]


__all__ = ["BuildResult", "BuildState", "RenderedPage"]
