"""User interaction surface: name entry, confirmation and candidate selection.

Every call blocks until the user answers. ``None`` from :meth:`ask_name` or
:meth:`choose` means the user cancelled.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence, TextIO

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from PySide6.QtWidgets import QWidget

LOGGER = logging.getLogger(__name__)

__all__ = ["Prompter", "ConsolePrompter", "QtPrompter"]

_QT_APP: Any = None
_YES = {"y", "yes"}
_NO = {"n", "no", ""}


class Prompter(Protocol):
    """Blocking request/response calls used by rename and completion flows."""

    def ask_name(self, prompt: str, default: str | None = None) -> str | None:
        ...

    def confirm(self, prompt: str) -> bool:
        ...

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        ...

    def notify(self, message: str) -> None:
        ...


class ConsolePrompter:
    """Prompter reading answers from a text stream (stdin by default)."""

    def __init__(self, *, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def ask_name(self, prompt: str, default: str | None = None) -> str | None:
        """Return the stripped answer; a blank line comes back as ``""``.

        ``default`` is shown as a hint only.
        """

        hint = f" (currently {default})" if default else ""
        answer = self._readline(f"{prompt}{hint}: ")
        if answer is None:
            return None
        return answer.strip()

    def confirm(self, prompt: str) -> bool:
        while True:
            answer = self._readline(f"{prompt} (y/N): ")
            if answer is None:
                return False
            normalized = answer.strip().lower()
            if normalized in _YES:
                return True
            if normalized in _NO:
                return False
            self.notify("Please answer 'y' or 'n'.")

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        if not candidates:
            return None
        for position, candidate in enumerate(candidates, start=1):
            self._stdout.write(f"  {position}. {candidate}\n")
        while True:
            answer = self._readline(f"{prompt} (1-{len(candidates)}, empty to cancel): ")
            if answer is None or not answer.strip():
                return None
            value = answer.strip()
            if value in candidates:
                return value
            if value.isdigit() and 1 <= int(value) <= len(candidates):
                return candidates[int(value) - 1]
            self.notify(f"Unknown choice: {value}")

    def notify(self, message: str) -> None:
        self._stdout.write(f"{message}\n")
        self._stdout.flush()

    def _readline(self, prompt: str) -> str | None:
        self._stdout.write(prompt)
        self._stdout.flush()
        line = self._stdin.readline()
        if not line:
            return None
        return line.rstrip("\n")


class QtPrompter:
    """Prompter backed by PySide6 dialogs (``QInputDialog``/``QMessageBox``).

    PySide6 is imported on first use so the rest of the package works
    without the desktop stack.
    """

    __slots__ = ("_parent_provider", "_title")

    def __init__(
        self,
        *,
        parent_provider: Callable[[], "QWidget | None"] | None = None,
        title: str = "labelsmith",
    ) -> None:
        self._parent_provider = parent_provider
        self._title = title

    def ask_name(self, prompt: str, default: str | None = None) -> str | None:  # pragma: no cover - requires Qt
        widgets = _qt_widgets()
        text, accepted = widgets.QInputDialog.getText(
            self._parent(), self._title, prompt, text=default or ""
        )
        return str(text) if accepted else None

    def confirm(self, prompt: str) -> bool:  # pragma: no cover - requires Qt
        widgets = _qt_widgets()
        buttons = widgets.QMessageBox.StandardButton
        answer = widgets.QMessageBox.question(
            self._parent(), self._title, prompt, buttons.Yes | buttons.No, buttons.No
        )
        return answer == buttons.Yes

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:  # pragma: no cover - requires Qt
        if not candidates:
            return None
        widgets = _qt_widgets()
        item, accepted = widgets.QInputDialog.getItem(
            self._parent(), self._title, prompt, list(candidates), 0, False
        )
        return str(item) if accepted else None

    def notify(self, message: str) -> None:  # pragma: no cover - requires Qt
        widgets = _qt_widgets()
        widgets.QMessageBox.information(self._parent(), self._title, message)

    def _parent(self) -> Any:  # pragma: no cover - requires Qt
        return self._parent_provider() if self._parent_provider else None


def _qt_widgets() -> Any:  # pragma: no cover - requires Qt
    global _QT_APP
    try:
        from PySide6 import QtWidgets
    except ImportError as exc:
        raise RuntimeError("PySide6 must be installed to use Qt prompts (pip install labelsmith[qt]).") from exc
    if QtWidgets.QApplication.instance() is None:
        _QT_APP = QtWidgets.QApplication(sys.argv[:1])
    return QtWidgets
