"""Workspace model: the set of documents resident in the editing session."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

from ..events import DocumentOpened, DocumentReleased, EventBus
from ..utils import file_io
from .document_model import DocumentMetadata, DocumentState

__all__ = ["DocumentWorkspace", "normalize_path"]

LOGGER = logging.getLogger(__name__)


def normalize_path(path: Path | str) -> Path:
    if isinstance(path, Path):
        return path.expanduser().resolve()
    return Path(path).expanduser().resolve()


class DocumentWorkspace:
    """Tracks resident documents keyed by their normalized path.

    A document is *resident* while the workspace holds its buffer; closing
    it drops the buffer (unsaved edits included).
    """

    def __init__(
        self,
        *,
        event_bus: EventBus | None = None,
        encoding: str | None = None,
    ) -> None:
        self._documents: Dict[Path, DocumentState] = {}
        self._order: List[Path] = []
        self._bus = event_bus
        self._encoding = encoding

    # ------------------------------------------------------------------
    # Residency lifecycle
    # ------------------------------------------------------------------
    def open_document(self, path: Path | str, *, transient: bool = False) -> DocumentState:
        """Return the resident buffer for ``path``, reading it from disk if needed.

        Raises ``OSError``/``UnicodeDecodeError`` when the file cannot be read.
        """

        normalized = normalize_path(path)
        existing = self._documents.get(normalized)
        if existing is not None:
            return existing

        loaded = file_io.load_text(normalized, encoding=self._encoding)
        document = DocumentState(
            text=loaded.text,
            metadata=DocumentMetadata(path=normalized, encoding=loaded.encoding),
        )
        self._register(normalized, document, transient=transient)
        return document

    def adopt(self, document: DocumentState, path: Path | str | None = None) -> DocumentState:
        """Make an in-memory ``document`` resident (e.g. an unsaved buffer)."""

        target = path if path is not None else document.metadata.path
        if target is None:
            raise ValueError("Resident documents need a path")
        normalized = normalize_path(target)
        if normalized in self._documents:
            raise KeyError(f"Document already resident: {normalized}")
        document.metadata.path = normalized
        self._register(normalized, document, transient=False)
        return document

    def close_document(self, path: Path | str) -> DocumentState:
        """Drop the buffer for ``path`` and return it."""

        normalized = normalize_path(path)
        if normalized not in self._documents:
            raise KeyError(f"Unknown document: {normalized}")
        document = self._documents.pop(normalized)
        self._order.remove(normalized)
        LOGGER.debug("Document released: %s (dirty=%s)", normalized, document.dirty)
        if self._bus is not None:
            self._bus.publish(
                DocumentReleased(document_id=document.document_id, path=str(normalized))
            )
        return document

    def save_document(self, path: Path | str, *, newline: str = "\n", atomic: bool = True) -> Path:
        """Persist the resident buffer for ``path`` and clear its dirty flag."""

        document = self.require(path)
        target = file_io.write_text(
            document.metadata.path or normalize_path(path),
            document.text,
            encoding=document.metadata.encoding,
            newline=newline,
            atomic=atomic,
        )
        document.mark_saved()
        LOGGER.info("Saved %s", target)
        return target

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def is_resident(self, path: Path | str) -> bool:
        return normalize_path(path) in self._documents

    def find(self, path: Path | str) -> DocumentState | None:
        return self._documents.get(normalize_path(path))

    def require(self, path: Path | str) -> DocumentState:
        document = self.find(path)
        if document is None:
            raise KeyError(f"Document not resident: {path}")
        return document

    def resident_paths(self) -> tuple[Path, ...]:
        return tuple(self._order)

    def dirty_paths(self) -> tuple[Path, ...]:
        return tuple(path for path in self._order if self._documents[path].dirty)

    def document_count(self) -> int:
        return len(self._order)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _register(self, path: Path, document: DocumentState, *, transient: bool) -> None:
        self._documents[path] = document
        self._order.append(path)
        LOGGER.debug("Document resident: %s (transient=%s)", path, transient)
        if self._bus is not None:
            self._bus.publish(
                DocumentOpened(document_id=document.document_id, path=str(path), transient=transient)
            )
