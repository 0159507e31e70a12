"""Project-wide label rename.

The executor resolves the corpus, indexes it inside one access scope,
negotiates the new name with the user and rewrites every occurrence of the
old name. Documents opened only for the rename are closed again unless they
were rewritten.

A failure part-way through the rewrite pass does not roll back documents
that were already rewritten; :class:`RenameIncompleteError` lists them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..core.tokens import Token, is_valid_name, token_at
from ..editor.access import DocumentAccessManager
from ..editor.workspace import DocumentWorkspace
from ..errors import (
    DocumentLoadError,
    InvalidNameError,
    LabelsmithError,
    NameCollision,
    RenameCancelled,
    RenameIncompleteError,
    StaleTokenError,
)
from ..events import EventBus, RenameAborted, RenameCommitted
from ..index import LabelIndex, build_index
from ..project.corpus import CorpusResolver
from ..prompts import Prompter
from .transaction import RenameTransaction, TransactionStateError

__all__ = ["RenameExecutor", "validate_name", "rewrite_tokens"]

LOGGER = logging.getLogger(__name__)


def validate_name(name: str | None) -> str:
    """Return ``name`` if it can replace a label, else raise ``InvalidNameError``."""

    if name is None or not name.strip():
        raise InvalidNameError(name)
    if not is_valid_name(name):
        raise InvalidNameError(
            name, "name must not contain braces, commas, backslashes, % or surrounding spaces"
        )
    return name


def rewrite_tokens(text: str, tokens: Sequence[Token], old_name: str, new_name: str) -> str:
    """Replace the name of every token in ``text``; everything else is kept.

    Tokens are applied right to left so earlier offsets stay valid.
    """

    result = text
    for token in sorted(tokens, key=lambda t: t.name_span.start, reverse=True):
        current = token.name_span.extract(result)
        if current != old_name:
            raise StaleTokenError(
                token.path or "<buffer>",
                expected=old_name,
                found=current,
                offset=token.name_span.start,
            )
        result = result[: token.name_span.start] + new_name + result[token.name_span.end :]
    return result


class RenameExecutor:
    """Runs rename transactions against a workspace."""

    def __init__(
        self,
        workspace: DocumentWorkspace,
        resolver: CorpusResolver,
        *,
        prompter: Prompter | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._workspace = workspace
        self._resolver = resolver
        self._prompter = prompter
        self._bus = event_bus

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def rename_at(
        self,
        path: Path | str,
        offset: int,
        new_name: str | None = None,
        *,
        accept_collision: bool = False,
    ) -> RenameTransaction | None:
        """Rename the label under ``offset``; ``None`` when no token is there."""

        with DocumentAccessManager(self._workspace) as access:
            handle = access.acquire(path)
            token = token_at(handle.text, offset, handle.path)
            if token is None:
                LOGGER.debug("No label construct at %s:%d", handle.path, offset)
                return None
            return self._run(access, handle.path, token.name, new_name, accept_collision)

    def rename(
        self,
        path: Path | str,
        old_name: str,
        new_name: str | None = None,
        *,
        accept_collision: bool = False,
    ) -> RenameTransaction:
        """Rename ``old_name`` across the project containing ``path``."""

        with DocumentAccessManager(self._workspace) as access:
            origin = access.acquire(path).path
            return self._run(access, origin, old_name, new_name, accept_collision)

    # ------------------------------------------------------------------
    # Transaction
    # ------------------------------------------------------------------
    def _run(
        self,
        access: DocumentAccessManager,
        origin: Path,
        old_name: str,
        new_name: str | None,
        accept_collision: bool,
    ) -> RenameTransaction:
        corpus = self._resolver.resolve(origin)
        index = build_index(corpus, access)
        transaction = self._negotiate(
            RenameTransaction(old_name=old_name), index, new_name, accept_collision
        )
        self._apply(transaction, access)
        return transaction

    def _negotiate(
        self,
        transaction: RenameTransaction,
        index: LabelIndex,
        new_name: str | None,
        accept_collision: bool,
    ) -> RenameTransaction:
        """Settle on a new name; declined collisions retry with a fresh attempt."""

        old_name = transaction.old_name
        interactive = new_name is None
        candidate = self._ask_name(transaction) if interactive else new_name

        try:
            name = validate_name(candidate)
        except InvalidNameError as exc:
            if not interactive or self._prompter is None:
                self._abort(transaction, str(exc))
                raise
            self._prompter.notify(exc.message)
            return self._negotiate(self._abort(transaction, str(exc)).retry(), index, None, accept_collision)
        collision = name != old_name and index.has_anchor(name)
        transaction.propose(name, index.tokens(old_name), collision=collision)
        if collision and not accept_collision:
            condition = NameCollision(
                old_name,
                name,
                anchor_paths=[t.path for t in index.anchors(name) if t.path is not None],
            )
            if self._prompter is None:
                self._abort(transaction, condition.message)
                raise condition
            if not self._prompter.confirm(f"{condition.message}. Continue?"):
                LOGGER.info("Collision declined: %r -> %r", old_name, name)
                return self._negotiate(
                    self._abort(transaction, "collision declined").retry(),
                    index,
                    None,
                    accept_collision,
                )
        transaction.confirm()
        return transaction

    def _ask_name(self, transaction: RenameTransaction) -> str:
        if self._prompter is None:
            self._abort(transaction, "no new name given")
            raise InvalidNameError(None, "no new name given and no prompter available")
        answer = self._prompter.ask_name(
            f"Rename label '{transaction.old_name}' to", default=transaction.old_name
        )
        if answer is None:
            self._abort(transaction, "cancelled")
            raise RenameCancelled(transaction.old_name)
        return answer

    def _apply(self, transaction: RenameTransaction, access: DocumentAccessManager) -> None:
        old_name = transaction.old_name
        new_name = transaction.new_name
        if new_name is None:
            raise TransactionStateError("Cannot apply a rename without a confirmed name")
        if new_name == old_name:
            transaction.commit()
            LOGGER.info("Rename %r -> %r is a no-op", old_name, new_name)
            return

        grouped: dict[Path, list[Token]] = {}
        for token in transaction.tokens:
            if token.path is not None:
                grouped.setdefault(token.path, []).append(token)

        for path, tokens in grouped.items():
            try:
                handle = access.acquire(path)
                new_text = rewrite_tokens(handle.text, tokens, old_name, new_name)
            except (DocumentLoadError, StaleTokenError) as exc:
                error = self._failure(transaction, path, exc)
                if error is exc:
                    raise
                raise error from exc
            handle.replace_text(new_text)
            transaction.record_rewrite(path)
            LOGGER.debug("Rewrote %d occurrence(s) in %s", len(tokens), path)

        transaction.commit()
        LOGGER.info(
            "Renamed %r -> %r: %d occurrence(s) across %d document(s)",
            old_name,
            new_name,
            len(transaction.tokens),
            len(transaction.rewritten),
        )
        if self._bus is not None:
            self._bus.publish(
                RenameCommitted(
                    transaction_id=transaction.transaction_id,
                    old_name=old_name,
                    new_name=new_name,
                    paths=tuple(str(path) for path in transaction.rewritten),
                    occurrences=len(transaction.tokens),
                )
            )

    def _failure(
        self, transaction: RenameTransaction, path: Path, exc: LabelsmithError
    ) -> LabelsmithError:
        """Abort ``transaction`` and return the error to surface for ``exc``."""

        rewritten = tuple(transaction.rewritten)
        self._abort(transaction, str(exc))
        if not rewritten:
            return exc
        LOGGER.warning(
            "Rename %r -> %r incomplete: %d document(s) rewritten before %s failed",
            transaction.old_name,
            transaction.new_name,
            len(rewritten),
            path,
        )
        return RenameIncompleteError(
            transaction.old_name,
            transaction.new_name or "",
            rewritten=rewritten,
            failed=path,
            cause=exc,
        )

    def _abort(self, transaction: RenameTransaction, reason: str) -> RenameTransaction:
        transaction.abort(reason)
        if self._bus is not None:
            self._bus.publish(
                RenameAborted(
                    transaction_id=transaction.transaction_id,
                    old_name=transaction.old_name,
                    new_name=transaction.new_name,
                    reason=reason,
                )
            )
        return transaction
