"""Exceptions raised when the site build cannot continue."""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Raised when a document or asset makes the whole build fail.

    Attributes
    ----------
    path : Path | None
        File that caused the failure, when one is known.
    reason : str
        Human-readable description of the problem.
    """

    def __init__(self, path: Path | str | None, reason: str) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path is None:
            return self.reason
        return f"{self.path}: {self.reason}"


class FrontMatterError(BuildError):
    """Raised when a front-matter block is unterminated or not a mapping."""


class RenderError(BuildError):
    """Raised when a template or layout fails to render a document."""


__all__ = ["BuildError", "FrontMatterError", "RenderError"]
