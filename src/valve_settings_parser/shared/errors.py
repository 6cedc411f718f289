"""Exception hierarchy for valve settings parsing.

Every failure raised by the tokenizer, tree builder or node model derives
from :class:`SettingsError`, so callers can catch a single type at the
boundary and still inspect the specific cause.
"""

from typing import Optional


class SettingsError(Exception):
    """Base exception for all settings parsing and construction errors."""


class ValidationError(SettingsError):
    """Raised when a node is finalized in an invalid state.

    A node needs a non-empty key and exactly one of a value or a child
    block. This is always a construction bug on the caller side, never a
    tokenizer artifact.
    """

    def __init__(self, message: str, state: Optional[str] = None) -> None:
        self.message = message
        self.state = state
        if state:
            message = f"{message}: {state}"
        super().__init__(message)


# Name used by the node builder contract.
InvalidNode = ValidationError


class ParseError(SettingsError):
    """Base exception for anything raised while parsing a document."""


class MalformedDocument(ParseError):
    """Raised when tokens arrive in a structurally invalid order.

    Covers stray block starts and ends, unbalanced braces, dangling keys
    and unexpected end of input.
    """

    def __init__(self, cause: str, line_number: int = 0) -> None:
        self.cause = cause
        self.line_number = line_number
        super().__init__(f"{cause} (line {line_number})")


class TokenError(MalformedDocument):
    """Raised when the tokenizer meets input it cannot scan.

    Unterminated strings, lone slashes and invalid characters end up here.
    The scan detail (offending character, offset, full line and cause) is
    kept on the exception.
    """

    def __init__(
        self,
        cause: str,
        line_number: int = 0,
        character: Optional[str] = None,
        offset: int = 0,
        line_text: str = "",
        diagnostic: Optional[str] = None,
    ) -> None:
        self.character = character
        self.offset = offset
        self.line_text = line_text
        self.diagnostic = diagnostic or cause
        super().__init__(cause, line_number)

    def __str__(self) -> str:
        return (
            "There was an error processing the document:\n"
            f"{self.diagnostic}\n\tLine: {self.line_number}"
        )
