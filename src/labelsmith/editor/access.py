"""Scoped document access for multi-file operations.

An access scope hands out :class:`DocumentHandle` objects for every path an
operation touches. Paths that were not resident when first touched are
opened transiently and closed again when the scope ends, unless the
operation rewrote them. Usage::

    with DocumentAccessManager(workspace) as access:
        handle = access.acquire(path)
        ...
    # release_all() has run, whatever happened inside the block
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Dict, List

from ..errors import DocumentLoadError, ResidencyError
from .document_model import DocumentState
from .workspace import DocumentWorkspace, normalize_path

__all__ = ["Residency", "DocumentHandle", "DocumentAccessManager"]

LOGGER = logging.getLogger(__name__)


class Residency(Enum):
    """Whether a document was already resident when an operation touched it."""

    ALREADY_RESIDENT = "already_resident"
    TRANSIENTLY_OPENED = "transiently_opened"


@dataclass(slots=True)
class DocumentHandle:
    """Access to one document's buffer for the lifetime of a scope."""

    path: Path
    document: DocumentState
    residency: Residency
    modified: bool = False

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def transient(self) -> bool:
        return self.residency is Residency.TRANSIENTLY_OPENED

    def replace_text(self, new_text: str) -> bool:
        """Swap in ``new_text``; returns ``True`` when the buffer changed."""

        if new_text == self.document.text:
            return False
        self.document.update_text(new_text)
        self.modified = True
        return True

    def insert(self, offset: int, fragment: str) -> None:
        if not fragment:
            return
        self.document.insert(offset, fragment)
        self.modified = True


class DocumentAccessManager:
    """Owns document residency bookkeeping for one operation."""

    def __init__(self, workspace: DocumentWorkspace) -> None:
        self._workspace = workspace
        self._handles: Dict[Path, DocumentHandle] = {}
        self._order: List[Path] = []
        self._active = False
        self._released = False

    # ------------------------------------------------------------------
    # Scope lifecycle
    # ------------------------------------------------------------------
    def __enter__(self) -> DocumentAccessManager:
        if self._active or self._released:
            raise ResidencyError("An access scope can only be entered once")
        self._active = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release_all()

    @property
    def active(self) -> bool:
        return self._active

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------
    def acquire(self, path: Path | str) -> DocumentHandle:
        """Return a handle for ``path``, opening it transiently if needed.

        Raises:
            ResidencyError: When called outside an open scope.
            DocumentLoadError: When the file cannot be read.
        """

        if not self._active:
            raise ResidencyError(f"Cannot acquire {path} outside an access scope")

        normalized = normalize_path(path)
        handle = self._handles.get(normalized)
        if handle is not None:
            return handle

        resident = self._workspace.find(normalized)
        if resident is not None:
            handle = DocumentHandle(normalized, resident, Residency.ALREADY_RESIDENT)
        else:
            try:
                document = self._workspace.open_document(normalized, transient=True)
            except (OSError, UnicodeDecodeError) as exc:
                raise DocumentLoadError(normalized, str(exc) or type(exc).__name__) from exc
            handle = DocumentHandle(normalized, document, Residency.TRANSIENTLY_OPENED)

        self._handles[normalized] = handle
        self._order.append(normalized)
        LOGGER.debug("Acquired %s (%s)", normalized, handle.residency.value)
        return handle

    @property
    def handles(self) -> tuple[DocumentHandle, ...]:
        """Handles in acquisition order."""

        return tuple(self._handles[path] for path in self._order)

    def modified_paths(self) -> tuple[Path, ...]:
        return tuple(path for path in self._order if self._handles[path].modified)

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------
    def release_all(self) -> tuple[Path, ...]:
        """Close every unmodified transient document; returns the closed paths.

        Already-resident documents and transient documents that were
        rewritten stay resident. Runs once per scope.
        """

        if self._released:
            raise ResidencyError("release_all() already ran for this scope")
        self._released = True
        self._active = False

        closed: list[Path] = []
        for path in self._order:
            handle = self._handles[path]
            if handle.residency is not Residency.TRANSIENTLY_OPENED or handle.modified:
                continue
            if self._workspace.is_resident(path):
                self._workspace.close_document(path)
                closed.append(path)
        LOGGER.debug(
            "Released access scope: %d handle(s), %d closed, %d kept modified",
            len(self._order),
            len(closed),
            len(self.modified_paths()),
        )
        return tuple(closed)
