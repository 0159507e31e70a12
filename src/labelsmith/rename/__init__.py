"""Rename transactions for label names."""

from .executor import RenameExecutor, rewrite_tokens, validate_name
from .transaction import RenameState, RenameTransaction, TransactionStateError

__all__ = [
    "RenameExecutor",
    "rewrite_tokens",
    "validate_name",
    "RenameState",
    "RenameTransaction",
    "TransactionStateError",
]
