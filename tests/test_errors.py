"""Tests for the structured error types."""

from __future__ import annotations

from pathlib import Path

import pytest

from labelsmith.errors import (
    DocumentLoadError,
    ErrorCode,
    LabelsmithError,
    NameCollision,
    NoProjectError,
    RenameCancelled,
    RenameIncompleteError,
    StaleTokenError,
)


class TestLabelsmithError:
    """Tests for the base error class."""

    def test_to_dict_omits_empty_fields(self) -> None:
        error = LabelsmithError(error_code="boom", message="Something broke")

        assert error.to_dict() == {"error": "boom", "message": "Something broke", "severity": "error"}
        assert str(error) == "[boom] Something broke"

    def test_is_raisable(self) -> None:
        with pytest.raises(LabelsmithError, match="Something broke"):
            raise LabelsmithError(error_code="boom", message="Something broke")


class TestSubclasses:
    """Tests for the concrete error types."""

    def test_no_project_carries_path_and_suggestion(self) -> None:
        error = NoProjectError("/tmp/lonely.tex")

        payload = error.to_dict()
        assert error.path == Path("/tmp/lonely.tex")
        assert payload["error"] == ErrorCode.NO_PROJECT
        assert "labelsmith.yaml" in payload["suggestion"]

    def test_stale_token_details(self) -> None:
        error = StaleTokenError("a.tex", expected="fig1", found="fig2", offset=7)

        assert error.details == {"path": "a.tex", "expected": "fig1", "found": "fig2", "offset": 7}
        assert "offset 7" in error.message

    def test_collision_and_cancel_severities(self) -> None:
        collision = NameCollision("a", "b", anchor_paths=[Path("x.tex")])
        cancelled = RenameCancelled("a")

        assert collision.severity == "warning"
        assert collision.anchor_paths == (Path("x.tex"),)
        assert collision.message == "Label 'b' already exists; renaming 'a' merges both"
        assert cancelled.severity == "info"
        assert cancelled.message == "Rename of 'a' cancelled by user"

    def test_incomplete_rename_nests_cause(self) -> None:
        cause = DocumentLoadError("c.tex", "permission denied")
        error = RenameIncompleteError(
            "a", "b", rewritten=[Path("x.tex"), Path("y.tex")], failed=Path("c.tex"), cause=cause
        )

        payload = error.to_dict()
        assert error.rewritten == (Path("x.tex"), Path("y.tex"))
        assert error.cause is cause
        assert "2 document(s) already rewritten" in error.message
        assert payload["details"]["cause"]["error"] == ErrorCode.DOCUMENT_LOAD_FAILED
        assert payload["details"]["failed"] == "c.tex"
