"""Lexical scanner for anchor (``\\label``) and reference (``\\ref``) constructs.

The anchor keyword is matched case-sensitively (``\\label`` only) while the
reference keyword is matched case-insensitively (``\\ref``, ``\\Ref``,
``\\eqref``, ``\\pageref``, ``\\Cref`` ...). Authors capitalise reference
commands to change their rendering, but ``\\Label`` is never an anchor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator

from .ranges import TextRange

__all__ = [
    "TokenKind",
    "TokenWrapper",
    "Token",
    "scan_tokens",
    "iter_tokens",
    "token_at",
    "format_anchor",
    "format_reference",
    "is_valid_name",
]

_ANCHOR_PATTERN = re.compile(r"\\(?P<command>label)\{(?P<body>[^{}]*)\}")
_REFERENCE_PATTERN = re.compile(
    r"\\(?P<command>(?:eq|page|auto|autopage|name|v|vpage|full|sub|title|c|cpage|labelc|labelcpage)?ref)"
    r"(?P<option>\[[^\[\]{}]*\])?\{(?P<body>[^{}]*)\}",
    re.IGNORECASE,
)
# \hyperref[name]{text}: the label sits in the bracket, the brace is link text.
_HYPERREF_PATTERN = re.compile(
    r"\\(?P<command>hyperref)\[(?P<body>[^\[\]{}]*)\](?P<argument>\{[^{}]*\})"
)
# cleveref commands accept comma separated label lists.
_LIST_COMMAND_PATTERN = re.compile(r"^(?:c|cpage|labelc|labelcpage)ref$", re.IGNORECASE)
_WRAPPER_PAIRS: dict[str, str] = {"(": ")", "[": "]", "<": ">"}
_FORBIDDEN_NAME_CHARS = frozenset("{},\\%")


class TokenKind(Enum):
    """Kinds of symbolic-name constructs recognized by the scanner."""

    ANCHOR_DEFINITION = "anchor"
    REFERENCE_USE = "reference"


@dataclass(slots=True, frozen=True)
class TokenWrapper:
    """Punctuation enclosing a construct, e.g. ``(`` and ``)`` around ``\\ref{eq}``."""

    prefix: str = ""
    suffix: str = ""

    @property
    def present(self) -> bool:
        return bool(self.prefix or self.suffix)


_NO_WRAPPER = TokenWrapper()


@dataclass(slots=True, frozen=True)
class Token:
    """A single occurrence of an anchor definition or reference use.

    ``span`` covers the whole construct including enclosing punctuation;
    ``name_span`` covers only the name, which is the only part a rename
    rewrites. ``argument`` keeps the link text of ``\\hyperref[name]{text}``.
    """

    kind: TokenKind
    name: str
    span: TextRange
    name_span: TextRange
    command: str
    path: Path | None = None
    option: str = ""
    argument: str = ""
    wrapper: TokenWrapper = _NO_WRAPPER

    @property
    def is_anchor(self) -> bool:
        return self.kind is TokenKind.ANCHOR_DEFINITION

    @property
    def is_reference(self) -> bool:
        return self.kind is TokenKind.REFERENCE_USE

    def render(self, name: str | None = None) -> str:
        """Rebuild the construct text, optionally with a different name.

        Only valid for single-name constructs; list references rewrite in
        place through ``name_span``.
        """

        label = self.name if name is None else name
        if self.argument:
            body = f"\\{self.command}[{label}]{self.argument}"
        else:
            body = f"\\{self.command}{self.option}{{{label}}}"
        return f"{self.wrapper.prefix}{body}{self.wrapper.suffix}"

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "kind": self.kind.value,
            "name": self.name,
            "command": self.command,
            "span": self.span.to_dict(),
            "name_span": self.name_span.to_dict(),
        }
        if self.path is not None:
            payload["path"] = str(self.path)
        if self.option:
            payload["option"] = self.option
        if self.argument:
            payload["argument"] = self.argument
        if self.wrapper.present:
            payload["wrapper"] = [self.wrapper.prefix, self.wrapper.suffix]
        return payload


def iter_tokens(text: str, path: Path | None = None) -> Iterator[Token]:
    """Yield every token in ``text`` in left-to-right order."""

    matches: list[tuple[TokenKind, re.Match[str]]] = []
    matches.extend((TokenKind.ANCHOR_DEFINITION, m) for m in _ANCHOR_PATTERN.finditer(text))
    matches.extend((TokenKind.REFERENCE_USE, m) for m in _REFERENCE_PATTERN.finditer(text))
    matches.extend((TokenKind.REFERENCE_USE, m) for m in _HYPERREF_PATTERN.finditer(text))
    matches.sort(key=lambda item: item[1].start())

    for kind, match in matches:
        yield from _tokens_from_match(text, kind, match, path)


def scan_tokens(text: str, path: Path | None = None) -> list[Token]:
    """Return every token in ``text`` in document order."""

    return list(iter_tokens(text, path))


def token_at(text: str, offset: int, path: Path | None = None) -> Token | None:
    """Return the token whose construct contains ``offset``, if any.

    In a list reference such as ``\\cref{a,b}`` the token whose name
    contains (or ends at) the offset wins; otherwise the first name does.
    """

    if offset < 0 or offset > len(text):
        return None
    candidates: list[Token] = []
    for token in iter_tokens(text, path):
        if token.span.start > offset:
            break
        if token.span.contains(offset):
            candidates.append(token)
    if not candidates:
        return None
    for token in candidates:
        if token.name_span.start <= offset <= token.name_span.end:
            return token
    return candidates[0]


def format_anchor(name: str) -> str:
    return f"\\label{{{name}}}"


def format_reference(name: str, command: str = "ref") -> str:
    return f"\\{command}{{{name}}}"


def is_valid_name(name: str | None) -> bool:
    """Return ``True`` when ``name`` can be written inside a label construct."""

    if name is None or not name.strip():
        return False
    if name != name.strip():
        return False
    return not any(char in _FORBIDDEN_NAME_CHARS for char in name)


def _tokens_from_match(
    text: str,
    kind: TokenKind,
    match: re.Match[str],
    path: Path | None,
) -> Iterator[Token]:
    command = match.group("command")
    groups = match.groupdict()
    option = groups.get("option") or ""
    argument = groups.get("argument") or ""
    body_start = match.start("body")
    body = match.group("body")
    span, wrapper = _construct_span(text, match.start(), match.end())

    if kind is TokenKind.REFERENCE_USE and _LIST_COMMAND_PATTERN.match(command):
        segments = _split_segments(body, body_start)
    else:
        segments = [_strip_segment(body, body_start)]

    for name, name_start in segments:
        if not name:
            continue
        yield Token(
            kind=kind,
            name=name,
            span=span,
            name_span=TextRange(name_start, name_start + len(name)),
            command=command,
            path=path,
            option=option,
            argument=argument,
            wrapper=wrapper,
        )


def _construct_span(text: str, start: int, end: int) -> tuple[TextRange, TokenWrapper]:
    if start > 0 and end < len(text):
        opening = text[start - 1]
        closing = _WRAPPER_PAIRS.get(opening)
        if closing is not None and text[end] == closing:
            return TextRange(start - 1, end + 1), TokenWrapper(opening, closing)
    return TextRange(start, end), _NO_WRAPPER


def _strip_segment(segment: str, offset: int) -> tuple[str, int]:
    stripped = segment.strip()
    if not stripped:
        return "", offset
    return stripped, offset + (len(segment) - len(segment.lstrip()))


def _split_segments(body: str, body_start: int) -> list[tuple[str, int]]:
    segments: list[tuple[str, int]] = []
    cursor = body_start
    for part in body.split(","):
        segments.append(_strip_segment(part, cursor))
        cursor += len(part) + 1
    return segments
