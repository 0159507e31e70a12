"""Standardized error types for label indexing and rename operations.

Every error carries a machine-readable ``error_code`` plus structured
``details`` so the CLI (and any host editor) can report failures
consistently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Sequence


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in structured error payloads."""

    # Project/corpus errors
    NO_PROJECT = "no_project"
    PROJECT_CONFIG_INVALID = "project_config_invalid"

    # Document errors
    DOCUMENT_LOAD_FAILED = "document_load_failed"
    STALE_TOKEN = "stale_token"
    RESIDENCY_VIOLATION = "residency_violation"

    # Rename errors
    INVALID_NAME = "invalid_name"
    NAME_COLLISION = "name_collision"
    RENAME_CANCELLED = "rename_cancelled"
    RENAME_INCOMPLETE = "rename_incomplete"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class LabelsmithError(Exception):
    """Base exception class for all labelsmith errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for JSON output."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
            "severity": self.severity,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Project Errors
# -----------------------------------------------------------------------------

class NoProjectError(LabelsmithError):
    """Raised when a document cannot be associated with any project."""

    def __init__(self, path: Path | str, *, message: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.NO_PROJECT,
            message=message or f"No project found for {path}",
            details={"path": str(path)},
            suggestion="Add a labelsmith.yaml manifest or a '%!TEX root' comment.",
        )
        self.path = Path(path)


class ProjectConfigError(LabelsmithError):
    """Raised when a project manifest exists but cannot be used."""

    def __init__(self, manifest: Path | str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROJECT_CONFIG_INVALID,
            message=f"Invalid project manifest {manifest}: {reason}",
            details={"manifest": str(manifest), "reason": reason},
        )
        self.manifest = Path(manifest)


# -----------------------------------------------------------------------------
# Document Errors
# -----------------------------------------------------------------------------

class DocumentLoadError(LabelsmithError):
    """Raised when a corpus document cannot be read from storage."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.DOCUMENT_LOAD_FAILED,
            message=f"Cannot read {path}: {reason}",
            details={"path": str(path), "reason": reason},
        )
        self.path = Path(path)


class StaleTokenError(LabelsmithError):
    """Raised when a document changed between indexing and rewriting."""

    def __init__(self, path: Path | str, *, expected: str, found: str, offset: int) -> None:
        super().__init__(
            error_code=ErrorCode.STALE_TOKEN,
            message=f"{path} changed at offset {offset}: expected {expected!r}, found {found!r}",
            details={"path": str(path), "expected": expected, "found": found, "offset": offset},
            suggestion="Re-run the rename to rebuild the index.",
        )
        self.path = Path(path)


class ResidencyError(LabelsmithError):
    """Raised when document handles are used outside an access scope."""

    def __init__(self, message: str) -> None:
        super().__init__(error_code=ErrorCode.RESIDENCY_VIOLATION, message=message)


# -----------------------------------------------------------------------------
# Rename Errors
# -----------------------------------------------------------------------------

class InvalidNameError(LabelsmithError):
    """Raised when a proposed label name is empty or malformed."""

    def __init__(self, name: str | None, reason: str = "name must not be blank") -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_NAME,
            message=f"Invalid label name {name!r}: {reason}",
            details={"name": name, "reason": reason},
        )
        self.name = name


class NameCollision(LabelsmithError):
    """Confirmable condition: the new name is already defined as an anchor."""

    severity: ClassVar[str] = "warning"

    def __init__(self, old_name: str, new_name: str, *, anchor_paths: Sequence[Path] = ()) -> None:
        super().__init__(
            error_code=ErrorCode.NAME_COLLISION,
            message=f"Label {new_name!r} already exists; renaming {old_name!r} merges both",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "anchor_paths": [str(path) for path in anchor_paths],
            },
        )
        self.old_name = old_name
        self.new_name = new_name
        self.anchor_paths = tuple(anchor_paths)


class RenameCancelled(LabelsmithError):
    """Raised when the user abandons a rename before any document changed."""

    severity: ClassVar[str] = "info"

    def __init__(self, old_name: str, reason: str = "cancelled by user") -> None:
        super().__init__(
            error_code=ErrorCode.RENAME_CANCELLED,
            message=f"Rename of {old_name!r} {reason}",
            details={"old_name": old_name, "reason": reason},
        )
        self.old_name = old_name


class RenameIncompleteError(LabelsmithError):
    """Raised when the rewrite pass stopped part-way through the corpus.

    Documents listed in ``rewritten`` keep their new text; nothing is
    rolled back.
    """

    severity: ClassVar[str] = "warning"

    def __init__(
        self,
        old_name: str,
        new_name: str,
        *,
        rewritten: Sequence[Path],
        failed: Path,
        cause: LabelsmithError,
    ) -> None:
        super().__init__(
            error_code=ErrorCode.RENAME_INCOMPLETE,
            message=(
                f"Rename {old_name!r} -> {new_name!r} stopped at {failed}; "
                f"{len(rewritten)} document(s) already rewritten"
            ),
            details={
                "old_name": old_name,
                "new_name": new_name,
                "rewritten": [str(path) for path in rewritten],
                "failed": str(failed),
                "cause": cause.to_dict(),
            },
            suggestion="Review the rewritten documents, fix the failing one and rename again.",
        )
        self.rewritten = tuple(rewritten)
        self.failed = failed
        self.cause = cause


__all__ = [
    "ErrorCode",
    "LabelsmithError",
    "NoProjectError",
    "ProjectConfigError",
    "DocumentLoadError",
    "StaleTokenError",
    "ResidencyError",
    "InvalidNameError",
    "NameCollision",
    "RenameCancelled",
    "RenameIncompleteError",
]
