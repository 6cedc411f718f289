"""Caller-facing parsing API.

Module functions return the root node and raise on bad input;
:class:`SettingsParser` returns a :class:`ParseResult` instead.
"""

from .parser import SettingsParser, parse, parse_file, parse_string

__all__ = [
    "SettingsParser",
    "parse",
    "parse_file",
    "parse_string",
]
