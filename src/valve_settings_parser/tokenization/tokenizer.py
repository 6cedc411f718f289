"""Line-oriented tokenizer for valve settings text.

This module scans settings text one buffered line at a time and produces a
small fixed token alphabet: block delimiters, quoted strings, ``//``
comments, errors, and end of input. Only the current line is kept in
memory; earlier lines are never retained.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

BEGIN_CHILD_CHAR = "{"
END_CHILD_CHAR = "}"
QUOTE_CHAR = '"'
ESCAPE_CHAR = "\\"
COMMENT_CHAR = "/"
WHITESPACE_CHARS = (" ", "\t")


class TokenType(Enum):
    """Settings token types produced by the tokenizer."""

    BEGIN_CHILD = auto()    # Opening brace: {
    END_CHILD = auto()      # Closing brace: }
    STRING = auto()         # Quoted string, content without the quotes
    COMMENT = auto()        # Rest of the line after //
    ERROR = auto()          # Unscannable input
    END_OF_INPUT = auto()   # No lines remain


@dataclass(frozen=True)
class TokenPosition:
    """Position of a token: 1-based line number and 0-based offset."""

    line: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 0:
            raise ValueError("Line number must be >= 0")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")


@dataclass(frozen=True)
class TokenErrorDetail:
    """What the tokenizer could not scan, and where."""

    cause: str
    offset: int
    line_text: str
    character: Optional[str] = None

    def describe(self) -> str:
        """Format the detail as an indented multi-line diagnostic."""
        if self.character is not None:
            return (
                f"\tInvalid character: '{self.character}'"
                f"\n\tOffset: {self.offset}"
                f"\n\tFull line: {self.line_text}"
                f"\n\tContext: {self.cause}"
            )
        return f"\tFull line: {self.line_text}\n\tContext: {self.cause}"


@dataclass(frozen=True)
class Token:
    """A single settings token."""

    type: TokenType
    content: str
    position: TokenPosition
    error: Optional[TokenErrorDetail] = None

    def __post_init__(self) -> None:
        if (self.type == TokenType.ERROR) != (self.error is not None):
            raise ValueError("Error detail must be present exactly on ERROR tokens")

    @property
    def is_error(self) -> bool:
        return self.type == TokenType.ERROR


def _strip_terminator(line: str) -> str:
    """Drop one trailing line terminator, as line readers leave it attached."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith(("\n", "\r")):
        return line[:-1]
    return line


class SettingsTokenizer:
    """Pull-based tokenizer over a sequence of text lines.

    Each call to :meth:`next_token` scans the rest of the buffered line and,
    when it runs dry, pulls the next line from the input until a token is
    found or the input is exhausted.

    Examples:
        >>> tokenizer = SettingsTokenizer(['"key" "value"'])
        >>> [token.type.name for token in tokenizer]
        ['STRING', 'STRING', 'END_OF_INPUT']
    """

    def __init__(self, lines: Iterable[str]) -> None:
        """Initialize the tokenizer.

        Args:
            lines: Any iterable yielding one line of input at a time; a
                trailing newline on each line is ignored
        """
        self._lines = iter(lines)
        self._line = ""
        self._index = 0
        self._line_number = 0

        # Counters for metrics
        self.tokens_generated = 0
        self.characters_processed = 0

    @property
    def line_number(self) -> int:
        """1-based number of the buffered line, 0 before any line is read."""
        return self._line_number

    @property
    def current_line(self) -> str:
        return self._line

    def next_token(self) -> Token:
        """Scan and return the next token."""
        while True:
            token = self._scan_line()
            if token is not None:
                break
            if not self._load_next_line():
                token = self._make(TokenType.END_OF_INPUT, "", len(self._line))
                break

        self.tokens_generated += 1
        return token

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including END_OF_INPUT or the first ERROR."""
        while True:
            token = self.next_token()
            yield token
            if token.type in (TokenType.END_OF_INPUT, TokenType.ERROR):
                return

    def _load_next_line(self) -> bool:
        try:
            line = next(self._lines)
        except StopIteration:
            logger.debug(
                "Tokenizer reached end of input",
                extra={
                    "lines_processed": self._line_number,
                    "tokens_generated": self.tokens_generated,
                },
            )
            return False

        self._line = _strip_terminator(line)
        self._index = 0
        self._line_number += 1
        self.characters_processed += len(self._line)
        return True

    def _scan_line(self) -> Optional[Token]:
        line = self._line
        while self._index < len(line):
            start = self._index
            char = line[start]

            if char == BEGIN_CHILD_CHAR:
                self._index += 1
                return self._make(TokenType.BEGIN_CHILD, char, start)
            if char == END_CHILD_CHAR:
                self._index += 1
                return self._make(TokenType.END_CHILD, char, start)
            if char == QUOTE_CHAR:
                return self._scan_string(start)
            if char == COMMENT_CHAR:
                return self._scan_comment(start)
            if char in WHITESPACE_CHARS:
                self._index += 1
                continue

            # In a more lenient mode, this could skip the character instead
            return self._error(start, "It's simply an invalid character.")

        return None

    def _scan_string(self, start: int) -> Token:
        line = self._line
        end = start + 1
        while end < len(line):
            # A quote preceded by a backslash does not end the string
            if line[end] == QUOTE_CHAR and line[end - 1] != ESCAPE_CHAR:
                self._index = end + 1
                return self._make(TokenType.STRING, line[start + 1:end], start)
            end += 1
        return self._error(len(line), "There was no ending to the string.")

    def _scan_comment(self, start: int) -> Token:
        line = self._line
        second = start + 1
        if second >= len(line):
            return self._error(
                second,
                "Thought it was a comment, but there was only a single slash "
                "before the end of the line.",
            )
        if line[second] != COMMENT_CHAR:
            return self._error(
                second,
                "Thought it was a comment, but there was only a single slash.",
            )

        self._index = len(line)
        return self._make(TokenType.COMMENT, line[second + 1:], start)

    def _make(self, token_type: TokenType, content: str, offset: int) -> Token:
        return Token(
            type=token_type,
            content=content,
            position=TokenPosition(self._line_number, offset),
        )

    def _error(self, offset: int, cause: str) -> Token:
        # The scan position is left on the token start, so a repeated call
        # reports the same error
        line = self._line
        detail = TokenErrorDetail(
            cause=cause,
            offset=offset,
            line_text=line,
            character=line[offset] if 0 <= offset < len(line) else None,
        )
        return Token(
            type=TokenType.ERROR,
            content=detail.describe(),
            position=TokenPosition(self._line_number, offset),
            error=detail,
        )


def tokenize(lines: Iterable[str]) -> List[Token]:
    """Tokenize all lines, ending with END_OF_INPUT or the first ERROR."""
    return list(SettingsTokenizer(lines))
