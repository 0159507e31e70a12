"""High level entry point tying scanner, index, rename and completion together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from .completion import BasicInsertionFlow, InsertionFlow, ReferenceCompleter
from .core.tokens import Token, token_at
from .editor.access import DocumentAccessManager
from .editor.workspace import DocumentWorkspace
from .events import EventBus
from .errors import NoProjectError
from .index import LabelIndex, build_index
from .project.corpus import Corpus, CorpusResolver
from .project.locators import ManifestLocator, MasterFileLocator, TextProvider
from .prompts import Prompter
from .rename.executor import RenameExecutor
from .rename.transaction import RenameTransaction
from .services.settings import Settings

__all__ = ["LabelEngine", "PointAction", "PointOutcome", "default_resolver", "workspace_text_provider"]

LOGGER = logging.getLogger(__name__)


class PointAction(Enum):
    """What :meth:`LabelEngine.at_point` ended up doing."""

    RENAME = "rename"
    DEFINE = "define"
    INSERT = "insert"
    NONE = "none"


@dataclass(slots=True)
class PointOutcome:
    action: PointAction
    transaction: RenameTransaction | None = None
    inserted: str | None = None


def workspace_text_provider(workspace: DocumentWorkspace) -> TextProvider:
    """Serve resident buffers so unsaved edits steer project discovery."""

    def provide(path: Path) -> str | None:
        document = workspace.find(path)
        return document.text if document is not None else None

    return provide


def default_resolver(workspace: DocumentWorkspace, settings: Settings | None = None) -> CorpusResolver:
    """Manifest first, then the master-file include tree."""

    settings = settings or Settings()
    provider = workspace_text_provider(workspace)
    return CorpusResolver(
        [
            ManifestLocator(settings.manifest_name),
            MasterFileLocator(text_provider=provider, suffix=settings.source_suffix),
        ],
        text_provider=provider,
    )


class LabelEngine:
    """Facade used by hosts (CLI, editor widgets) to act on a point in a document."""

    def __init__(
        self,
        workspace: DocumentWorkspace,
        *,
        prompter: Prompter,
        resolver: CorpusResolver | None = None,
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
        insertion_flow: InsertionFlow | None = None,
    ) -> None:
        self._workspace = workspace
        self._settings = settings or Settings()
        self._resolver = resolver or default_resolver(workspace, self._settings)
        self._prompter = prompter
        self._executor = RenameExecutor(
            workspace, self._resolver, prompter=prompter, event_bus=event_bus
        )
        self._completer = ReferenceCompleter(workspace, self._resolver, prompter)
        self._insertion_flow = insertion_flow or BasicInsertionFlow(
            prompter, command=self._settings.reference_command
        )

    @property
    def workspace(self) -> DocumentWorkspace:
        return self._workspace

    @property
    def resolver(self) -> CorpusResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def token_at(self, path: Path | str, offset: int) -> Token | None:
        with DocumentAccessManager(self._workspace) as access:
            handle = access.acquire(path)
            return token_at(handle.text, offset, handle.path)

    def index(self, path: Path | str) -> LabelIndex:
        """Index the project containing ``path``; transient documents are released."""

        with DocumentAccessManager(self._workspace) as access:
            origin = access.acquire(path).path
            return build_index(self._resolver.resolve(origin), access)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def at_point(
        self,
        path: Path | str,
        offset: int,
        *,
        new_name: str | None = None,
        insert_reference: bool = False,
        accept_collision: bool = False,
    ) -> PointOutcome:
        """Rename the label under ``offset``, or insert at ``offset`` when there is none.

        Off a label, ``insert_reference`` offers the project's dangling
        references and defines the chosen one; otherwise the insertion flow
        runs.
        """

        transaction = self.rename_at(path, offset, new_name, accept_collision=accept_collision)
        if transaction is not None:
            return PointOutcome(PointAction.RENAME, transaction=transaction)

        with DocumentAccessManager(self._workspace) as access:
            handle = access.acquire(path)
            index = self._point_index(handle.path, access)
            if insert_reference:
                name = self._completer.complete_with(handle, offset, index)
                if name is None:
                    return PointOutcome(PointAction.NONE)
                return PointOutcome(PointAction.DEFINE, inserted=name)
            if self._insertion_flow.insert(handle, offset, index):
                return PointOutcome(PointAction.INSERT)
        return PointOutcome(PointAction.NONE)

    def rename_at(
        self,
        path: Path | str,
        offset: int,
        new_name: str | None = None,
        *,
        accept_collision: bool = False,
    ) -> RenameTransaction | None:
        """Rename the label under ``offset``; ``None`` when there is no label there."""

        transaction = self._executor.rename_at(
            path, offset, new_name, accept_collision=accept_collision
        )
        if transaction is not None:
            self._after_commit(transaction)
        return transaction

    def rename(
        self,
        path: Path | str,
        old_name: str,
        new_name: str | None = None,
        *,
        accept_collision: bool = False,
    ) -> RenameTransaction:
        transaction = self._executor.rename(
            path, old_name, new_name, accept_collision=accept_collision
        )
        self._after_commit(transaction)
        return transaction

    def save(self, paths: Iterable[Path]) -> list[Path]:
        """Write the given resident documents with the configured newline policy."""

        saved: list[Path] = []
        for path in paths:
            saved.append(
                self._workspace.save_document(path, newline=self._settings.newline_sequence)
            )
        return saved

    def _point_index(self, path: Path, access: DocumentAccessManager) -> LabelIndex:
        """Index the project around ``path``; a standalone file indexes alone."""

        try:
            corpus = self._resolver.resolve(path)
        except NoProjectError:
            LOGGER.debug("%s belongs to no project; indexing it alone", path)
            corpus = Corpus.from_paths([path], origin=path)
        return build_index(corpus, access)

    def _after_commit(self, transaction: RenameTransaction) -> None:
        if transaction.is_committed and self._settings.write_on_commit and transaction.rewritten:
            LOGGER.debug("write_on_commit: saving %d document(s)", len(transaction.rewritten))
            self.save(transaction.rewritten)
