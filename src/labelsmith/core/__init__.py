"""Core domain types: text spans and the anchor/reference token scanner."""

from .ranges import TextRange, line_column
from .tokens import Token, TokenKind, TokenWrapper, scan_tokens, token_at

__all__ = ["TextRange", "line_column", "Token", "TokenKind", "TokenWrapper", "scan_tokens", "token_at"]
