"""Tests for the project-wide label index."""

from __future__ import annotations

from pathlib import Path

from labelsmith.core.tokens import TokenKind
from labelsmith.editor.access import DocumentAccessManager
from labelsmith.editor.workspace import DocumentWorkspace
from labelsmith.index import build_index, index_text, kind_counts
from labelsmith.project.corpus import Corpus


def _index(paths: dict[str, Path], *names: str):
    corpus = Corpus.from_paths([paths[name] for name in names])
    workspace = DocumentWorkspace()
    with DocumentAccessManager(workspace) as access:
        index = build_index(corpus, access)
    return index, workspace


def test_scenario_index_orders_by_document_then_offset(scenario: dict[str, Path]) -> None:
    index, workspace = _index(scenario, "doc1.tex", "doc2.tex")

    tokens = index.tokens("fig1")

    assert [(t.path, t.kind) for t in tokens] == [
        (scenario["doc1.tex"], TokenKind.REFERENCE_USE),
        (scenario["doc1.tex"], TokenKind.ANCHOR_DEFINITION),
        (scenario["doc2.tex"], TokenKind.REFERENCE_USE),
    ]
    assert index.count("fig1") == 3
    assert len(index.anchors("fig1")) == 1
    assert len(index.references("fig1")) == 2
    assert workspace.document_count() == 0


def test_index_queries(book: dict[str, Path]) -> None:
    index, _ = _index(book, "main.tex", "chapters/intro.tex", "chapters/results.tex")

    assert index.names() == ("sec:intro", "sec:results", "eq:main")
    assert index.anchor_names() == ("sec:intro", "sec:results", "eq:main")
    assert index.reference_names() == ("sec:intro", "sec:results", "eq:main")
    assert index.dangling_references() == ()
    assert index.has_anchor("eq:main")
    assert not index.has_anchor("missing")
    assert index.tokens("missing") == ()
    assert list(index.by_path("sec:results")) == [
        book["chapters/intro.tex"],
        book["chapters/results.tex"],
    ]


def test_dangling_and_duplicate_names(tmp_path: Path) -> None:
    a = tmp_path / "a.tex"
    b = tmp_path / "b.tex"
    corpus = Corpus.from_paths([a, b])
    texts = {
        corpus.paths[0]: "\\ref{later} \\label{dup} \\ref{ghost}",
        corpus.paths[1]: "\\label{dup} \\cref{ghost,other}",
    }

    index = index_text(corpus, texts)

    assert index.dangling_references() == ("later", "ghost", "other")
    assert index.duplicate_anchors() == ("dup",)
    assert index.summary() == {
        "documents": 2,
        "names": 4,
        "anchors": 2,
        "references": 4,
        "dangling": ["later", "ghost", "other"],
        "duplicates": ["dup"],
    }


def test_index_keeps_every_occurrence(tmp_path: Path) -> None:
    corpus = Corpus.from_paths([tmp_path / "a.tex"])
    text = "\\ref{x}\\ref{x}\\ref{x}"

    index = index_text(corpus, {corpus.paths[0]: text})

    assert index.count("x") == 3
    assert [t.name_span.start for t in index.tokens("x")] == [5, 12, 19]


def test_resident_buffers_are_indexed_instead_of_disk(scenario: dict[str, Path]) -> None:
    workspace = DocumentWorkspace()
    workspace.open_document(scenario["doc2.tex"]).update_text("Now \\ref{fresh}.")
    corpus = Corpus.from_paths([scenario["doc1.tex"], scenario["doc2.tex"]])

    with DocumentAccessManager(workspace) as access:
        index = build_index(corpus, access)

    assert index.count("fig1") == 2
    assert index.dangling_references() == ("fresh",)
    assert workspace.resident_paths() == (scenario["doc2.tex"],)


def test_kind_counts(scenario: dict[str, Path]) -> None:
    index, _ = _index(scenario, "doc1.tex", "doc2.tex")

    assert kind_counts(index.tokens("fig1")) == {
        TokenKind.ANCHOR_DEFINITION: 1,
        TokenKind.REFERENCE_USE: 2,
    }
