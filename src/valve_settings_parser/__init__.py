"""Valve Settings Parser.

Parser and round-trip serializer for Valve's KeyValues-style settings text,
the whitespace-agnostic, comment-tolerant format of files such as
``gamemodes.txt``.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Configured parser - SettingsParser class returning ParseResult
- Building and serializing trees - Node, NodeBuilder, Node.serialize()
"""

__version__ = "0.1.0"
__author__ = "Valve Settings Parser Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured parser
from .api import SettingsParser, parse, parse_file, parse_string

# Configuration and errors
from .shared import (
    InvalidNode,
    MalformedDocument,
    ParseError,
    ParserConfig,
    SettingsError,
    TokenError,
    ValidationError,
)

# Tree model and result objects
from .tree import Node, NodeBuilder, ParseResult

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",

    # Level 2: Configured parser
    "SettingsParser",
    "ParserConfig",

    # Tree model and results
    "Node",
    "NodeBuilder",
    "ParseResult",

    # Errors
    "SettingsError",
    "ValidationError",
    "InvalidNode",
    "ParseError",
    "MalformedDocument",
    "TokenError",
]
