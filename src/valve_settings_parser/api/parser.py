"""Caller-facing parsing API with progressive disclosure.

Level 1 is a set of module functions that return the root node and raise
:class:`~valve_settings_parser.shared.errors.ParseError` on bad input.
Level 2 is :class:`SettingsParser`, which takes a :class:`ParserConfig`
and reports the outcome as a :class:`ParseResult` instead of raising.

The tokenizer and tree builder never touch files; reading from paths and
file objects happens here.
"""

import io
import os
import time
from pathlib import Path
from typing import IO, Iterable, Optional, Tuple, Union

import psutil

from valve_settings_parser.shared import (
    DiagnosticSeverity,
    MalformedDocument,
    ParseError,
    ParserConfig,
    PerformanceMetrics,
    TokenError,
    get_logger,
)
from valve_settings_parser.tree import Node, ParseResult, SettingsTreeBuilder

# Type definitions for input data
SourceType = Union[str, Path, IO[str], Iterable[str]]

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def split_lines(text: str) -> Iterable[str]:
    """Iterate over the lines of ``text`` the way a text file would.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line; other characters that
    :meth:`str.splitlines` treats as breaks (form feeds, ``\\x85``,
    ``\\u2028`` and so on) stay inside the line.
    """
    return io.StringIO(text, newline=None)


def parse(
    lines: Iterable[str],
    correlation_id: Optional[str] = None,
    max_depth: Optional[int] = None
) -> Node:
    """Parse one settings document from a sequence of lines.

    Args:
        lines: Iterable yielding one line of text at a time, such as a list
            of strings or an open text file
        correlation_id: Optional correlation ID for request tracking
        max_depth: Optional limit on block nesting

    Returns:
        The root node of the document

    Raises:
        TokenError: If the input contains text that cannot be scanned
        MalformedDocument: If the document structure is invalid

    Examples:
        >>> root = parse(['"test" {', '  "key" "value"', '}'])
        >>> root.key, root["key"].value
        ('test', 'value')
    """
    builder = SettingsTreeBuilder(max_depth=max_depth, correlation_id=correlation_id)
    return builder.build(lines)


def parse_string(
    text: str,
    correlation_id: Optional[str] = None,
    max_depth: Optional[int] = None
) -> Node:
    """Parse one settings document held in a string.

    Examples:
        >>> parse_string('"hostname" "My Server"').value
        'My Server'
    """
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.debug(
        "Starting string parse operation",
        extra={
            "content_length": len(text),
            "preview": (
                text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text
            ),
        },
    )
    return parse(split_lines(text), correlation_id, max_depth)


def parse_file(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
    correlation_id: Optional[str] = None,
    max_depth: Optional[int] = None
) -> Node:
    """Parse one settings document from a file.

    The file is read line by line; only the current line is buffered.

    Raises:
        OSError: If the file cannot be opened
        ParseError: If the file is not a valid settings document
    """
    path_obj = Path(file_path)
    logger = get_logger(__name__, correlation_id, "parse_file")
    logger.debug(
        "Starting file parse operation",
        extra={"file_path": str(path_obj), "encoding": encoding},
    )
    with path_obj.open(encoding=encoding) as file:
        return parse(file, correlation_id, max_depth)


class SettingsParser:
    """Configured settings parser that reports outcomes as results.

    Parse failures are returned as an unsuccessful :class:`ParseResult`
    carrying the error and an ERROR diagnostic, so callers decide how to
    present them.

    Examples:
        >>> parser = SettingsParser()
        >>> result = parser.parse('"root" { "key" "value" }')
        >>> result.success, result.root.key
        (True, 'root')
        >>> parser.parse('"root" {').success
        False
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "settings_parser")

    def parse(self, source: SourceType, source_name: Optional[str] = None) -> ParseResult:
        """Parse a settings document from any supported source.

        Args:
            source: Document text as a string, a :class:`~pathlib.Path` to a
                file, an open text file, or an iterable of lines
            source_name: Name used in diagnostics; defaults to the path

        Returns:
            ParseResult holding the root node or the parse error

        Raises:
            OSError: If ``source`` is a path that cannot be opened
        """
        start_time = time.time()
        memory_before = self._memory_usage() if self._tracks_memory else 0
        builder = SettingsTreeBuilder(
            max_depth=self.config.max_depth, correlation_id=self.correlation_id
        )

        if isinstance(source, Path) and source_name is None:
            source_name = str(source)

        try:
            root = self._build(builder, source)
        except ParseError as e:
            result = ParseResult(
                success=False,
                error=e,
                correlation_id=self.correlation_id,
                source_name=source_name,
            )
            self._record_failure(result, e)
        else:
            result = ParseResult(
                root=root,
                correlation_id=self.correlation_id,
                source_name=source_name,
            )

        if self.config.enable_metrics:
            result.performance = self._collect_metrics(builder, start_time, memory_before)

        self.logger.info(
            "Settings parse completed" if result.success else "Settings parse failed",
            extra={
                "source": source_name,
                "success": result.success,
                "node_count": result.node_count,
                "processing_time_ms": result.performance.processing_time_ms,
            },
        )
        return result

    def format(self, source: SourceType) -> str:
        """Parse ``source`` and return its canonical text.

        Raises:
            ParseError: If the source is not a valid settings document
        """
        return self.parse(source).unwrap().serialize()

    def _build(self, builder: SettingsTreeBuilder, source: SourceType) -> Node:
        if isinstance(source, Path):
            with source.open(encoding=self.config.encoding) as file:
                return builder.build(file)
        lines, kind = self._lines_of(source)
        self.logger.debug("Parsing settings source", extra={"source_kind": kind})
        return builder.build(lines)

    @staticmethod
    def _lines_of(source: Union[str, IO[str], Iterable[str]]) -> Tuple[Iterable[str], str]:
        if isinstance(source, str):
            return split_lines(source), "string"
        if hasattr(source, "read"):
            return source, "file"
        return source, "lines"

    def _record_failure(self, result: ParseResult, error: ParseError) -> None:
        if isinstance(error, TokenError):
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                error.cause,
                "tokenizer",
                line_number=error.line_number,
                details={
                    "character": error.character,
                    "offset": error.offset,
                    "line_text": error.line_text,
                },
            )
        elif isinstance(error, MalformedDocument):
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                error.cause,
                "tree_builder",
                line_number=error.line_number,
            )
        else:
            result.add_diagnostic(DiagnosticSeverity.ERROR, str(error), "parser")

        self.logger.warning(
            "Settings document rejected",
            extra={"source": result.source_name, "error": str(error)},
        )

    def _collect_metrics(
        self,
        builder: SettingsTreeBuilder,
        start_time: float,
        memory_before: int
    ) -> PerformanceMetrics:
        memory_used = 0
        if self._tracks_memory:
            memory_used = max(0, self._memory_usage() - memory_before)
        return PerformanceMetrics(
            processing_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            memory_used_bytes=memory_used,
            lines_processed=builder.lines_processed,
            characters_processed=builder.characters_processed,
            tokens_generated=builder.tokens_consumed,
            nodes_built=builder.nodes_built,
            max_depth=builder.max_depth_seen,
        )

    @property
    def _tracks_memory(self) -> bool:
        return self.config.enable_metrics and self.config.track_memory

    @staticmethod
    def _memory_usage() -> int:
        """Resident set size of this process in bytes."""
        return psutil.Process(os.getpid()).memory_info().rss
