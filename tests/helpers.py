"""Shared test helpers and stub classes.

Import from here (``from helpers import ScriptedPrompter``) instead of
duplicating these classes in individual test files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class ScriptedPrompter:
    """Prompter stub that replays canned answers and records every prompt.

    ``names`` feeds :meth:`ask_name`, ``confirmations`` feeds :meth:`confirm`
    and ``choices`` feeds :meth:`choose`; an exhausted script answers with a
    cancel (``None``/``False``).
    """

    def __init__(
        self,
        *,
        names: Sequence[str | None] = (),
        confirmations: Sequence[bool] = (),
        choices: Sequence[str | None] = (),
    ) -> None:
        self._names = list(names)
        self._confirmations = list(confirmations)
        self._choices = list(choices)
        self.asked: list[str] = []
        self.confirmed: list[str] = []
        self.offered: list[tuple[str, ...]] = []
        self.notices: list[str] = []

    def ask_name(self, prompt: str, default: str | None = None) -> str | None:
        self.asked.append(prompt)
        return self._names.pop(0) if self._names else None

    def confirm(self, prompt: str) -> bool:
        self.confirmed.append(prompt)
        return self._confirmations.pop(0) if self._confirmations else False

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        self.offered.append(tuple(candidates))
        return self._choices.pop(0) if self._choices else None

    def notify(self, message: str) -> None:
        self.notices.append(message)


def write_files(root: Path, files: dict[str, str]) -> dict[str, Path]:
    """Write ``files`` (relative name -> text) under ``root``; returns resolved paths."""

    written: dict[str, Path] = {}
    for name, text in files.items():
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        written[name] = target.resolve()
    return written
