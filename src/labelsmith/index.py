"""Project-wide index of anchor and reference tokens."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping

from .core.tokens import Token, TokenKind, iter_tokens
from .editor.access import DocumentAccessManager
from .project.corpus import Corpus

__all__ = ["LabelIndex", "build_index", "index_text", "kind_counts"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LabelIndex:
    """Immutable mapping of label name to every token carrying it.

    Within a bucket tokens are ordered by corpus position, then by offset.
    """

    corpus: Corpus
    buckets: Mapping[str, tuple[Token, ...]] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.buckets

    def __iter__(self) -> Iterator[str]:
        return iter(self.buckets)

    def __len__(self) -> int:
        return len(self.buckets)

    # ------------------------------------------------------------------
    # Token queries
    # ------------------------------------------------------------------
    def tokens(self, name: str) -> tuple[Token, ...]:
        return self.buckets.get(name, ())

    def anchors(self, name: str) -> tuple[Token, ...]:
        return tuple(token for token in self.tokens(name) if token.is_anchor)

    def references(self, name: str) -> tuple[Token, ...]:
        return tuple(token for token in self.tokens(name) if token.is_reference)

    def count(self, name: str) -> int:
        return len(self.tokens(name))

    def has_anchor(self, name: str) -> bool:
        return any(token.is_anchor for token in self.tokens(name))

    def by_path(self, name: str) -> "OrderedDict[Path, list[Token]]":
        """Group the tokens for ``name`` by document, in corpus order."""

        grouped: OrderedDict[Path, list[Token]] = OrderedDict()
        for token in self.tokens(name):
            if token.path is None:  # pragma: no cover - index tokens always carry paths
                continue
            grouped.setdefault(token.path, []).append(token)
        return grouped

    def all_tokens(self) -> Iterator[Token]:
        for bucket in self.buckets.values():
            yield from bucket

    # ------------------------------------------------------------------
    # Name queries (distinct names, first-seen order)
    # ------------------------------------------------------------------
    def names(self) -> tuple[str, ...]:
        return tuple(self.buckets)

    def anchor_names(self) -> tuple[str, ...]:
        return tuple(name for name, bucket in self.buckets.items() if any(t.is_anchor for t in bucket))

    def reference_names(self) -> tuple[str, ...]:
        return tuple(
            name for name, bucket in self.buckets.items() if any(t.is_reference for t in bucket)
        )

    def dangling_references(self) -> tuple[str, ...]:
        """Names that are referenced somewhere but never defined."""

        return tuple(
            name
            for name, bucket in self.buckets.items()
            if not any(t.is_anchor for t in bucket)
        )

    def duplicate_anchors(self) -> tuple[str, ...]:
        """Names defined by more than one anchor."""

        return tuple(
            name
            for name, bucket in self.buckets.items()
            if sum(1 for t in bucket if t.is_anchor) > 1
        )

    def summary(self) -> dict[str, Any]:
        anchor_count = sum(1 for token in self.all_tokens() if token.is_anchor)
        reference_count = sum(1 for token in self.all_tokens() if token.is_reference)
        return {
            "documents": len(self.corpus),
            "names": len(self.buckets),
            "anchors": anchor_count,
            "references": reference_count,
            "dangling": list(self.dangling_references()),
            "duplicates": list(self.duplicate_anchors()),
        }


def index_text(corpus: Corpus, texts: Mapping[Path, str]) -> LabelIndex:
    """Build an index from already-loaded texts keyed by corpus path."""

    buckets: OrderedDict[str, list[Token]] = OrderedDict()
    for path in corpus:
        text = texts.get(path)
        if text is None:
            continue
        for token in iter_tokens(text, path):
            buckets.setdefault(token.name, []).append(token)
    return LabelIndex(
        corpus=corpus,
        buckets=OrderedDict((name, tuple(tokens)) for name, tokens in buckets.items()),
    )


def build_index(corpus: Corpus, access: DocumentAccessManager) -> LabelIndex:
    """Acquire every corpus document and index its tokens.

    Raises:
        DocumentLoadError: When a corpus document cannot be read.
    """

    texts: dict[Path, str] = {}
    for path in corpus:
        texts[path] = access.acquire(path).text
    index = index_text(corpus, texts)
    LOGGER.debug(
        "Indexed %d document(s): %d name(s), %d token(s)",
        len(corpus),
        len(index),
        sum(1 for _ in index.all_tokens()),
    )
    return index


def kind_counts(tokens: tuple[Token, ...]) -> dict[TokenKind, int]:
    counts = {kind: 0 for kind in TokenKind}
    for token in tokens:
        counts[token.kind] += 1
    return counts
