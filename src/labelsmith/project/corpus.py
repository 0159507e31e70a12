"""Corpus resolution: which documents belong to the same project."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from ..errors import NoProjectError
from .locators import ProjectLocator, TextProvider

__all__ = ["Corpus", "CorpusResolver"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Corpus:
    """Ordered, duplicate-free set of project documents."""

    paths: tuple[Path, ...]
    origin: Path | None = None

    def __iter__(self) -> Iterator[Path]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    @classmethod
    def from_paths(cls, paths: Sequence[Path | str], *, origin: Path | None = None) -> Corpus:
        """Build a corpus, dropping repeated paths (first occurrence wins)."""

        ordered: list[Path] = []
        seen: set[Path] = set()
        for entry in paths:
            normalized = Path(entry).expanduser().resolve()
            if normalized in seen:
                continue
            seen.add(normalized)
            ordered.append(normalized)
        return cls(paths=tuple(ordered), origin=origin)


class CorpusResolver:
    """Thin adapter over an ordered chain of project locators."""

    def __init__(
        self,
        locators: Sequence[ProjectLocator],
        *,
        text_provider: TextProvider | None = None,
    ) -> None:
        self._locators = tuple(locators)
        self._text_provider = text_provider

    def resolve(self, path: Path | str) -> Corpus:
        """Return the corpus containing ``path``.

        Raises:
            NoProjectError: When no locator recognizes the document.
        """

        normalized = Path(path).expanduser().resolve()
        text = self._text_provider(normalized) if self._text_provider else None
        for locator in self._locators:
            files = locator.locate(normalized, text)
            if not files:
                continue
            corpus = Corpus.from_paths(files, origin=normalized)
            LOGGER.debug(
                "%s resolved %s to %d document(s)",
                type(locator).__name__,
                normalized,
                len(corpus),
            )
            return corpus
        raise NoProjectError(normalized)
