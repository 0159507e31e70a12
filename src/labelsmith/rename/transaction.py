"""Rename transaction state.

A :class:`RenameTransaction` records one attempt at renaming a label: the
names involved, the snapshot of affected tokens and how the attempt ended.
When the user declines a collision the aborted transaction is handed to
:meth:`RenameTransaction.retry`, which starts the next attempt.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from pathlib import Path
from typing import Any

from ..core.tokens import Token

LOGGER = logging.getLogger(__name__)


class RenameState(Enum):
    """Outcome state of a rename transaction."""

    PENDING = auto()  # Name proposed, not yet approved
    CONFIRMED = auto()  # Approved, rewriting may start
    ABORTED = auto()  # Declined, cancelled or failed
    COMMITTED = auto()  # Every affected token rewritten


class TransactionStateError(RuntimeError):
    """Raised on an illegal transaction state transition."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RenameTransaction:
    """One rename attempt from ``old_name`` to ``new_name``.

    Attributes:
        old_name: The label being renamed.
        new_name: The proposed replacement (``None`` until entered).
        tokens: Snapshot of every token named ``old_name`` at index time.
        state: Current :class:`RenameState`.
        attempt: 1 for the first prompt, incremented on each retry.
        collision: True when ``new_name`` was already defined as an anchor.
        rewritten: Paths whose text was rewritten, in rewrite order.
        reason: Why the transaction was aborted, if it was.
        previous: The aborted attempt this one retries.
    """

    old_name: str
    new_name: str | None = None
    tokens: tuple[Token, ...] = ()
    state: RenameState = RenameState.PENDING
    attempt: int = 1
    collision: bool = False
    rewritten: list[Path] = field(default_factory=list)
    reason: str | None = None
    previous: RenameTransaction | None = field(default=None, repr=False)
    transaction_id: str = field(default_factory=lambda: f"rn-{uuid.uuid4().hex[:12]}")
    created_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def propose(self, new_name: str, tokens: tuple[Token, ...], *, collision: bool) -> None:
        self._require(RenameState.PENDING, "propose")
        self.new_name = new_name
        self.tokens = tokens
        self.collision = collision

    def confirm(self) -> None:
        self._require(RenameState.PENDING, "confirm")
        self.state = RenameState.CONFIRMED
        LOGGER.debug("Rename %s confirmed: %r -> %r", self.transaction_id, self.old_name, self.new_name)

    def record_rewrite(self, path: Path) -> None:
        self._require(RenameState.CONFIRMED, "record a rewrite")
        self.rewritten.append(path)

    def commit(self) -> None:
        self._require(RenameState.CONFIRMED, "commit")
        self.state = RenameState.COMMITTED
        self.finished_at = _utcnow()

    def abort(self, reason: str) -> None:
        if self.state in (RenameState.ABORTED, RenameState.COMMITTED):
            raise TransactionStateError(f"Cannot abort: transaction is {self.state.name}")
        self.state = RenameState.ABORTED
        self.reason = reason
        self.finished_at = _utcnow()

    def retry(self) -> RenameTransaction:
        """Start the next attempt after this one was aborted."""

        self._require(RenameState.ABORTED, "retry")
        return RenameTransaction(old_name=self.old_name, attempt=self.attempt + 1, previous=self)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------
    @property
    def is_committed(self) -> bool:
        return self.state is RenameState.COMMITTED

    @property
    def is_partial(self) -> bool:
        """True when aborted after some documents were already rewritten."""

        return self.state is RenameState.ABORTED and bool(self.rewritten)

    @property
    def affected_paths(self) -> tuple[Path, ...]:
        ordered: list[Path] = []
        for token in self.tokens:
            if token.path is not None and token.path not in ordered:
                ordered.append(token.path)
        return tuple(ordered)

    def history(self) -> list[RenameTransaction]:
        """Every attempt leading to this one, oldest first."""

        chain: list[RenameTransaction] = []
        current: RenameTransaction | None = self
        while current is not None:
            chain.append(current)
            current = current.previous
        return list(reversed(chain))

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "old_name": self.old_name,
            "new_name": self.new_name,
            "state": self.state.name.lower(),
            "attempt": self.attempt,
            "collision": self.collision,
            "occurrences": len(self.tokens),
            "rewritten": [str(path) for path in self.rewritten],
            "reason": self.reason,
        }

    def _require(self, expected: RenameState, action: str) -> None:
        if self.state is not expected:
            raise TransactionStateError(
                f"Cannot {action}: transaction {self.transaction_id} is {self.state.name}"
            )


__all__ = ["RenameState", "RenameTransaction", "TransactionStateError"]
