"""Tests for scoped document access and residency release."""

from __future__ import annotations

from pathlib import Path

import pytest

from labelsmith.editor.access import DocumentAccessManager, Residency
from labelsmith.editor.workspace import DocumentWorkspace
from labelsmith.errors import DocumentLoadError, ResidencyError

from helpers import write_files


@pytest.fixture
def files(tmp_path: Path) -> dict[str, Path]:
    return write_files(tmp_path, {"a.tex": "A", "b.tex": "B", "c.tex": "C"})


def test_acquire_tags_residency_at_first_touch(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    workspace.open_document(files["a.tex"])

    with DocumentAccessManager(workspace) as access:
        resident = access.acquire(files["a.tex"])
        transient = access.acquire(files["b.tex"])
        again = access.acquire(str(files["b.tex"]))

        assert resident.residency is Residency.ALREADY_RESIDENT
        assert transient.residency is Residency.TRANSIENTLY_OPENED
        assert again is transient
        assert [h.path for h in access.handles] == [files["a.tex"], files["b.tex"]]


def test_release_closes_only_unmodified_transient_documents(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    workspace.open_document(files["a.tex"])

    with DocumentAccessManager(workspace) as access:
        access.acquire(files["a.tex"])
        modified = access.acquire(files["b.tex"])
        access.acquire(files["c.tex"])
        modified.replace_text("B2")

    assert workspace.resident_paths() == (files["a.tex"], files["b.tex"])
    assert workspace.require(files["b.tex"]).text == "B2"
    assert workspace.require(files["b.tex"]).dirty


def test_release_runs_when_the_scope_raises(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()

    with pytest.raises(RuntimeError):
        with DocumentAccessManager(workspace) as access:
            access.acquire(files["a.tex"])
            raise RuntimeError("boom")

    assert workspace.document_count() == 0


def test_release_all_runs_once(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    access = DocumentAccessManager(workspace)

    with access:
        access.acquire(files["a.tex"])

    assert not workspace.is_resident(files["a.tex"])
    with pytest.raises(ResidencyError):
        access.release_all()


def test_exit_after_manual_release_raises(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    access = DocumentAccessManager(workspace)
    access.__enter__()
    access.acquire(files["a.tex"])
    assert access.release_all() == (files["a.tex"],)

    with pytest.raises(ResidencyError):
        access.__exit__(None, None, None)


def test_acquire_outside_scope_raises(files: dict[str, Path]) -> None:
    access = DocumentAccessManager(DocumentWorkspace())

    with pytest.raises(ResidencyError):
        access.acquire(files["a.tex"])

    with access:
        pass
    with pytest.raises(ResidencyError):
        access.acquire(files["a.tex"])


def test_scope_cannot_be_reentered(files: dict[str, Path]) -> None:
    access = DocumentAccessManager(DocumentWorkspace())

    with access:
        with pytest.raises(ResidencyError):
            access.__enter__()


def test_unreadable_document_raises_load_error(tmp_path: Path) -> None:
    workspace = DocumentWorkspace()

    with DocumentAccessManager(workspace) as access:
        with pytest.raises(DocumentLoadError) as excinfo:
            access.acquire(tmp_path / "missing.tex")

    assert excinfo.value.error_code == "document_load_failed"
    assert workspace.document_count() == 0


def test_handle_insert_marks_modified(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()

    with DocumentAccessManager(workspace) as access:
        handle = access.acquire(files["a.tex"])
        handle.insert(1, "!")
        assert access.modified_paths() == (files["a.tex"],)

    assert workspace.require(files["a.tex"]).text == "A!"


def test_replace_text_with_identical_text_is_not_a_modification(files: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()

    with DocumentAccessManager(workspace) as access:
        handle = access.acquire(files["a.tex"])
        assert handle.replace_text("A") is False
        assert not handle.modified

    assert workspace.document_count() == 0
