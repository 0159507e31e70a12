"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from helpers import write_files


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("LABELSMITH_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LABELSMITH_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def scenario(tmp_path: Path) -> dict[str, Path]:
    """Two-document project listed by a manifest."""

    root = tmp_path / "scenario"
    return write_files(
        root,
        {
            "labelsmith.yaml": "files:\n  - doc1.tex\n  - doc2.tex\n",
            "doc1.tex": "See \\ref{fig1}. \\label{fig1} caption.",
            "doc2.tex": "As in \\ref{fig1}.",
        },
    )


@pytest.fixture
def book(tmp_path: Path) -> dict[str, Path]:
    """Master file with included chapters, discovered through ``\\input``."""

    root = tmp_path / "book"
    return write_files(
        root,
        {
            "main.tex": (
                "\\documentclass{book}\n"
                "\\begin{document}\n"
                "\\input{chapters/intro}\n"
                "\\include{chapters/results}\n"
                "\\end{document}\n"
            ),
            "chapters/intro.tex": (
                "%!TEX root = ../main.tex\n"
                "\\section{Intro}\\label{sec:intro}\n"
                "Results are in Section~\\ref{sec:results} (see \\eqref{eq:main}).\n"
            ),
            "chapters/results.tex": (
                "%!TEX root = ../main.tex\n"
                "\\section{Results}\\label{sec:results}\n"
                "\\begin{equation}x=1\\label{eq:main}\\end{equation}\n"
                "Back to \\cref{sec:intro,sec:results}.\n"
            ),
            "notes.tex": "Unrelated \\ref{sec:intro}.\n",
        },
    )
