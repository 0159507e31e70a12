"""Insertion at a point that does not sit on a label construct.

:class:`ReferenceCompleter` offers names that are referenced but never
defined and inserts the chosen ``\\label{name}``. :class:`BasicInsertionFlow`
is the ordinary reference insertion: pick a known anchor and insert
``\\ref{name}``. Neither touches the rename machinery.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .core.tokens import format_anchor, format_reference
from .editor.access import DocumentAccessManager, DocumentHandle
from .editor.workspace import DocumentWorkspace
from .index import LabelIndex, build_index
from .project.corpus import CorpusResolver
from .prompts import Prompter

__all__ = ["ReferenceCompleter", "InsertionFlow", "BasicInsertionFlow"]

LOGGER = logging.getLogger(__name__)


class InsertionFlow(Protocol):
    """Inserts something at ``offset`` in ``handle``; returns whether it did."""

    def insert(self, handle: DocumentHandle, offset: int, index: LabelIndex) -> bool:
        ...


class BasicInsertionFlow:
    """Offers every defined anchor name and inserts a reference to the choice."""

    def __init__(self, prompter: Prompter, *, command: str = "ref") -> None:
        self._prompter = prompter
        self._command = command

    def insert(self, handle: DocumentHandle, offset: int, index: LabelIndex) -> bool:
        candidates = index.anchor_names()
        if not candidates:
            self._prompter.notify("No labels defined in this project.")
            return False
        choice = self._prompter.choose("Reference label", candidates)
        if choice is None:
            return False
        handle.insert(offset, format_reference(choice, self._command))
        LOGGER.debug("Inserted reference to %r at %s:%d", choice, handle.path, offset)
        return True


class ReferenceCompleter:
    """Defines a dangling reference by inserting its anchor at point."""

    def __init__(
        self,
        workspace: DocumentWorkspace,
        resolver: CorpusResolver,
        prompter: Prompter,
    ) -> None:
        self._workspace = workspace
        self._resolver = resolver
        self._prompter = prompter

    def candidates(self, path: Path | str) -> tuple[str, ...]:
        """Names referenced in the project of ``path`` with no anchor, in index order."""

        with DocumentAccessManager(self._workspace) as access:
            origin = access.acquire(path).path
            return build_index(self._resolver.resolve(origin), access).dangling_references()

    def complete(self, path: Path | str, offset: int) -> str | None:
        """Prompt for a dangling name and insert its anchor; returns the name inserted."""

        with DocumentAccessManager(self._workspace) as access:
            handle = access.acquire(path)
            index = build_index(self._resolver.resolve(handle.path), access)
            return self.complete_with(handle, offset, index)

    def complete_with(self, handle: DocumentHandle, offset: int, index: LabelIndex) -> str | None:
        candidates = index.dangling_references()
        if not candidates:
            LOGGER.debug("No dangling references in project of %s", handle.path)
            return None
        choice = self._prompter.choose("Define label", candidates)
        if choice is None:
            return None
        handle.insert(offset, format_anchor(choice))
        LOGGER.info("Inserted anchor %r at %s:%d", choice, handle.path, offset)
        return choice
