"""High-level orchestration for building the blog into static HTML.

This module coordinates scanning the content tree, parsing front matter,
rendering Markdown through the enabled plugins, wrapping pages in their Jinja
layouts, running output transforms such as HTML minification, and writing the
results next to copied passthrough assets. It exposes :class:`SiteBuilder`,
which consumes a :class:`~blog_pages.config.SiteConfig` and performs either a
full build or an incremental rebuild driven by changed paths.

Example
-------
>>> from pathlib import Path
>>> from blog_pages.config import load_site_config
>>> from blog_pages.generator import SiteBuilder
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> result = SiteBuilder(config).build()  # doctest: +SKIP
>>> result.written[0]  # doctest: +SKIP
PosixPath('_site/index.html')
"""

from __future__ import annotations

import logging
import shutil
import typing as typ
from pathlib import Path

from blog_pages._constants import DATA_SUFFIXES
from blog_pages.documents import (
    MARKDOWN,
    Document,
    build_collections,
    discover_documents,
    iter_content_files,
    load_document,
    load_global_data,
)
from blog_pages.errors import BuildError

from .layouts import LayoutEngine
from .models import BuildResult, BuildState, RenderedPage
from .plugins import build_renderer, build_transforms

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from blog_pages.config import SiteConfig

logger = logging.getLogger(__name__)


class SiteBuilder:
    """Render every content document into the output directory."""

    def __init__(self, config: SiteConfig) -> None:
        """Initialize the builder with configuration.

        Parameters
        ----------
        config : SiteConfig
            Resolved build configuration. Renderer, layouts, and transforms
            are created from it on every full build so edits to layouts are
            always picked up.
        """
        self.config = config
        self.state = BuildState.IDLE
        self._documents: dict[Path, Document] = {}
        self._global_data: dict[str, typ.Any] = {}
        self._collections: dict[str, tuple[Document, ...]] = {}
        self._setup()

    def _setup(self) -> None:
        self.renderer = build_renderer(self.config)
        self.layouts = LayoutEngine(self.config, self.renderer)
        self.transforms = build_transforms(self.config)

    def _enter(self, state: BuildState, target: Path | None = None) -> None:
        self.state = state
        if target is None:
            logger.debug("build state -> %s", state.value)
        else:
            logger.debug("build state -> %s (%s)", state.value, target)

    @property
    def documents(self) -> list[Document]:
        return list(self._documents.values())

    def build(self) -> BuildResult:
        """Run a complete build and return what was written.

        Returns
        -------
        BuildResult
            Written pages, copied assets, and the parsed documents.

        Raises
        ------
        BuildError
            Raised for malformed front matter, template errors, and any
            filesystem failure; nothing further is written once raised.
        """
        try:
            self._setup()
            self._enter(BuildState.SCANNING)
            self._global_data = load_global_data(self.config.data_dir)
            documents = discover_documents(self.config)
            self._documents = {document.path: document for document in documents}
            self._collections = build_collections(documents)

            pages = self._render_all(documents)
            self._ensure_output_dir()
            for page in pages:
                self._write(page)
            result = BuildResult(
                pages=pages,
                copied=self._copy_passthrough(),
                documents=documents,
            )
            self._write_stylesheet()
            return result
        finally:
            self._enter(BuildState.IDLE)

    def rebuild(self, changed: cabc.Iterable[Path]) -> BuildResult:
        """Bring the output up to date after ``changed`` paths were modified.

        Configuration, layout, and global data changes trigger a full build.
        A changed article is re-rendered alone unless its metadata changed or
        documents were added or removed, in which case the collections are
        recomputed and every page is rendered again. Outputs of deleted
        documents are removed; changed passthrough files are copied again.
        """
        paths = {path.resolve() for path in changed}
        if not self._documents or any(self._needs_full_build(path) for path in paths):
            return self.build()

        try:
            self._enter(BuildState.SCANNING)
            result = BuildResult()
            refreshed: list[Document] = []
            deleted: list[Document] = []
            assets: list[tuple[Path, Path]] = []
            metadata_changed = False
            content_paths = {
                path.resolve(): path for path in iter_content_files(self.config)
            }
            for path in sorted(paths):
                root = self._passthrough_root(path)
                if root is not None:
                    if path.is_file():
                        assets.append((path, root))
                    continue
                previous = self._find_document(path)
                if path not in content_paths:
                    if previous is not None:
                        del self._documents[previous.path]
                        deleted.append(previous)
                        metadata_changed = True
                    continue
                source = previous.path if previous else content_paths[path]
                document = load_document(source, self.config)
                self._documents[document.path] = document
                refreshed.append(document)
                if previous is None or previous.metadata != document.metadata:
                    metadata_changed = True

            if metadata_changed:
                self._collections = build_collections(self._documents.values())
                targets = self.documents
            else:
                targets = refreshed
            result.pages = self._render_all(targets)
            self._ensure_output_dir()
            for page in result.pages:
                self._write(page)
            for document in deleted:
                result.removed.extend(self._remove_output(document))
            result.copied = [self._copy_asset(path, root) for path, root in assets]
            result.documents = self.documents
            return result
        finally:
            self._enter(BuildState.IDLE)

    def render(self, document: Document) -> RenderedPage | None:
        """Render ``document`` through its layout and every output transform.

        Returns ``None`` for documents with ``permalink: false``.
        """
        output_relative = document.output_relative_path
        if output_relative is None:
            return None
        output_path = self.config.output_dir / Path(*output_relative.parts)
        self._enter(BuildState.RENDERING, document.path)
        content = ""
        if document.kind == MARKDOWN:
            content = self.renderer.markdown(document.body, source=document.path)
        html = self.layouts.render(document, content, self._context(document))
        self._enter(BuildState.POST_PROCESSING, document.path)
        for transform in self.transforms:
            html = transform(html, output_path.as_posix())
        return RenderedPage(source=document.path, output_path=output_path, html=html)

    def _render_all(self, documents: cabc.Iterable[Document]) -> list[RenderedPage]:
        """Render every document before anything is written.

        A failure on any document raises before the output directory is
        touched, so a broken article never leaves a half-updated site.
        """
        pages: list[RenderedPage] = []
        for document in documents:
            page = self.render(document)
            if page is not None:
                pages.append(page)
        return pages

    def _write(self, page: RenderedPage) -> None:
        try:
            page.output_path.parent.mkdir(parents=True, exist_ok=True)
            page.output_path.write_text(page.html, encoding="utf-8")
        except OSError as exc:
            raise BuildError(page.output_path, f"cannot write output: {exc}") from exc
        self._enter(BuildState.WRITTEN, page.output_path)

    def _context(self, document: Document) -> dict[str, typ.Any]:
        """Assemble the variables shared by a page body and its layout."""
        page = {
            "url": document.url,
            "input_path": document.relative_path.as_posix(),
            "output_path": (
                document.output_relative_path.as_posix()
                if document.output_relative_path
                else None
            ),
            "date": document.date,
            "file_slug": document.file_slug,
        }
        return {
            **self._global_data,
            **document.metadata,
            "tags": document.tags,
            "page": page,
            "collections": self._collections,
            "site": self.config.site,
        }

    def _ensure_output_dir(self) -> None:
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildError(self.config.output_dir, f"cannot create output: {exc}") from exc

    def _copy_passthrough(self) -> list[Path]:
        copied: list[Path] = []
        for entry in self.config.passthrough:
            if entry.is_dir():
                for path in sorted(entry.rglob("*")):
                    if path.is_file():
                        copied.append(self._copy_asset(path, self._copy_root(entry)))
            elif entry.is_file():
                copied.append(self._copy_asset(entry, self._copy_root(entry)))
            else:
                logger.warning("passthrough path %s does not exist; skipping", entry)
        return copied

    def _copy_root(self, entry: Path) -> Path:
        """Return the directory an entry's copies mirror the layout of.

        Entries inside the input directory keep their full path below it;
        entries elsewhere are copied relative to their own parent.
        """
        input_dir = self.config.input_dir.resolve()
        if entry.resolve().is_relative_to(input_dir):
            return input_dir
        return entry.parent

    def _copy_asset(self, path: Path, root: Path) -> Path:
        """Copy ``path`` to the output, keeping its location below ``root``."""
        relative = path.resolve().relative_to(root.resolve())
        target = self.config.output_dir / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
        except OSError as exc:
            raise BuildError(path, f"cannot copy asset: {exc}") from exc
        return target

    def _write_stylesheet(self) -> None:
        target = self.config.highlight.stylesheet
        if target is None or not self.renderer.highlight_code:
            return
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(self.renderer.stylesheet + "\n", encoding="utf-8")
        except OSError as exc:
            raise BuildError(target, f"cannot write stylesheet: {exc}") from exc

    def _remove_output(self, document: Document) -> list[Path]:
        output_relative = document.output_relative_path
        if output_relative is None:
            return []
        target = self.config.output_dir / Path(*output_relative.parts)
        if not target.exists():
            return []
        target.unlink()
        return [target]

    def _find_document(self, path: Path) -> Document | None:
        for known_path, document in self._documents.items():
            if known_path.resolve() == path:
                return document
        return None

    def _passthrough_root(self, path: Path) -> Path | None:
        """Return the directory passthrough copies of ``path`` are relative to."""
        for entry in self.config.passthrough:
            resolved = entry.resolve()
            if path == resolved or resolved in path.parents:
                return self._copy_root(entry)
        return None

    def _needs_full_build(self, path: Path) -> bool:
        """Return whether ``path`` affects every page rather than just one."""
        shared = [self.config.layouts_dir.resolve(), self.config.data_dir.resolve()]
        if self.config.config_path is not None:
            if path == self.config.config_path.resolve():
                return True
        if any(path == root or root in path.parents for root in shared):
            return True
        # directory data files feed every document below their directory
        return path.suffix in DATA_SUFFIXES and path.stem == path.parent.name


__all__ = ["SiteBuilder"]
