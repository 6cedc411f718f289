"""Tokenization engine for valve settings parsing.

Key Components:
    SettingsTokenizer: Pull-based tokenizer over a sequence of text lines
    Token: A single token with its position and optional error detail
    TokenType: Enumeration of the token alphabet
    TokenPosition: Line and offset tracking for diagnostics
    TokenErrorDetail: What could not be scanned, and why
"""

from .tokenizer import (
    SettingsTokenizer,
    Token,
    TokenErrorDetail,
    TokenPosition,
    TokenType,
    tokenize,
)

__all__ = [
    "SettingsTokenizer",
    "Token",
    "TokenErrorDetail",
    "TokenPosition",
    "TokenType",
    "tokenize",
]
