"""Tests for dangling-reference completion and the basic insertion flow."""

from __future__ import annotations

from pathlib import Path

import pytest

from labelsmith.completion import BasicInsertionFlow, ReferenceCompleter
from labelsmith.editor.access import DocumentAccessManager
from labelsmith.editor.workspace import DocumentWorkspace
from labelsmith.index import build_index
from labelsmith.project.corpus import CorpusResolver
from labelsmith.project.locators import ManifestLocator

from helpers import ScriptedPrompter, write_files


@pytest.fixture
def project(tmp_path: Path) -> dict[str, Path]:
    return write_files(
        tmp_path,
        {
            "labelsmith.yaml": "files: [a.tex, b.tex]\n",
            "a.tex": "Intro \\ref{missing} and \\ref{known}.\n",
            "b.tex": "\\label{known} see \\eqref{ghost}\n",
        },
    )


def _resolver() -> CorpusResolver:
    return CorpusResolver([ManifestLocator()])


def test_candidates_are_dangling_references_in_index_order(project: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    completer = ReferenceCompleter(workspace, _resolver(), ScriptedPrompter())

    assert completer.candidates(project["a.tex"]) == ("missing", "ghost")
    assert workspace.document_count() == 0


def test_hyperlinks_are_not_offered_as_candidates(tmp_path: Path) -> None:
    files = write_files(
        tmp_path,
        {
            "labelsmith.yaml": "files: [a.tex]\n",
            "a.tex": "See \\href{https://example.org}{the site} and \\hyperref[sec:a]{Section A}.",
        },
    )
    completer = ReferenceCompleter(DocumentWorkspace(), _resolver(), ScriptedPrompter())

    assert completer.candidates(files["a.tex"]) == ("sec:a",)


def test_selecting_a_candidate_inserts_its_anchor(project: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    workspace.open_document(project["b.tex"])
    prompter = ScriptedPrompter(choices=["ghost"])
    completer = ReferenceCompleter(workspace, _resolver(), prompter)

    inserted = completer.complete(project["b.tex"], 0)

    assert inserted == "ghost"
    assert prompter.offered == [("missing", "ghost")]
    assert workspace.require(project["b.tex"]).text.startswith("\\label{ghost}\\label{known}")
    assert not workspace.is_resident(project["a.tex"])


def test_no_selection_inserts_nothing(project: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    workspace.open_document(project["a.tex"])
    completer = ReferenceCompleter(workspace, _resolver(), ScriptedPrompter(choices=[None]))

    assert completer.complete(project["a.tex"], 3) is None
    assert not workspace.dirty_paths()


def test_no_candidates_skips_the_prompt(tmp_path: Path) -> None:
    files = write_files(
        tmp_path,
        {"labelsmith.yaml": "files: [a.tex]\n", "a.tex": "\\label{x} \\ref{x}"},
    )
    prompter = ScriptedPrompter(choices=["x"])
    workspace = DocumentWorkspace()

    assert ReferenceCompleter(workspace, _resolver(), prompter).complete(files["a.tex"], 0) is None
    assert prompter.offered == []
    assert workspace.document_count() == 0


def test_basic_insertion_flow_inserts_reference(project: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    prompter = ScriptedPrompter(choices=["known"])
    flow = BasicInsertionFlow(prompter, command="cref")

    with DocumentAccessManager(workspace) as access:
        handle = access.acquire(project["a.tex"])
        index = build_index(_resolver().resolve(handle.path), access)
        assert flow.insert(handle, 0, index) is True

    assert prompter.offered == [("known",)]
    assert workspace.require(project["a.tex"]).text.startswith("\\cref{known}Intro")
    assert not workspace.is_resident(project["b.tex"])


def test_basic_insertion_flow_without_anchors_notifies(tmp_path: Path) -> None:
    files = write_files(tmp_path, {"labelsmith.yaml": "files: [a.tex]\n", "a.tex": "\\ref{x}"})
    workspace = DocumentWorkspace()
    prompter = ScriptedPrompter()

    with DocumentAccessManager(workspace) as access:
        handle = access.acquire(files["a.tex"])
        index = build_index(_resolver().resolve(handle.path), access)
        assert BasicInsertionFlow(prompter).insert(handle, 0, index) is False

    assert prompter.notices == ["No labels defined in this project."]
    assert workspace.document_count() == 0
