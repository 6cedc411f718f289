"""Recursive-descent tree building for valve settings text.

This module turns the token stream of :class:`SettingsTokenizer` into a
validated :class:`Node` tree. Each nesting level runs its own loop with a
single pending-key slot; a block start recurses one level down and a block
end returns to the caller level. The first structural problem aborts the
whole build with a line-anchored :class:`MalformedDocument`.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional

from valve_settings_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    MalformedDocument,
    ParseError,
    PerformanceMetrics,
    TokenError,
    ValidationError,
    get_logger,
)
from valve_settings_parser.tokenization import SettingsTokenizer, Token, TokenType
from valve_settings_parser.tree.node import Node, NodeBuilder


class BlockOutcome(Enum):
    """Why a block level stopped reading tokens."""

    BLOCK_CLOSED = auto()   # An end marker closed the block
    END_OF_INPUT = auto()   # The input ran out


@dataclass
class ParseResult:
    """Outcome of one parse: either a root node or the error that stopped it.

    Contains the tree, diagnostics and performance information so callers
    can present failures without catching exceptions.
    """

    root: Optional[Node] = None
    success: bool = True
    error: Optional[ParseError] = None

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)

    correlation_id: Optional[str] = None
    source_name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate that the result is either a tree or an error."""
        if self.success and self.root is None:
            raise ValueError("A successful result must carry a root node")
        if not self.success and self.error is None:
            raise ValueError("A failed result must carry an error")

    @property
    def node_count(self) -> int:
        """Total number of nodes in the tree."""
        if self.root is None:
            return 0
        return sum(1 for _ in self.root.iter_nodes())

    @property
    def line_number(self) -> Optional[int]:
        """Line the parse failed on, if it failed."""
        if isinstance(self.error, MalformedDocument):
            return self.error.line_number
        return None

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def unwrap(self) -> Node:
        """Return the root node, or raise the error that stopped the parse."""
        if self.error is not None:
            raise self.error
        if self.root is None:
            raise ValueError("Result carries neither a root node nor an error")
        return self.root

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        line_number: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                line_number=line_number,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        return any(
            diag.severity == DiagnosticSeverity.ERROR for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get a JSON-ready summary of the result."""
        summary: Dict[str, Any] = {
            "source": self.source_name,
            "success": self.success,
            "root_key": self.root.key if self.root is not None else None,
            "node_count": self.node_count,
            "performance": self.performance.to_dict(),
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
        if self.error is not None:
            summary["error"] = str(self.error)
            summary["line_number"] = self.line_number
        return summary


class SettingsTreeBuilder:
    """Builds a settings tree from text lines by recursive descent.

    A builder instance may be reused; every :meth:`build` call starts with
    fresh state and owns its own tokenizer.
    """

    def __init__(
        self,
        max_depth: Optional[int] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tree builder.

        Args:
            max_depth: Deepest block nesting allowed, or None for no limit
            correlation_id: Optional correlation ID for tracking requests
        """
        if max_depth is not None and max_depth < 1:
            raise ValueError("max_depth must be >= 1 or None")
        self.max_depth = max_depth
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_builder")
        self._reset_state()

    def _reset_state(self) -> None:
        self._tokenizer: Optional[SettingsTokenizer] = None
        self._root: Optional[NodeBuilder] = None
        self.nodes_built = 0
        self.max_depth_seen = 0

    @property
    def tokens_consumed(self) -> int:
        return self._tokenizer.tokens_generated if self._tokenizer else 0

    @property
    def lines_processed(self) -> int:
        return self._tokenizer.line_number if self._tokenizer else 0

    @property
    def characters_processed(self) -> int:
        return self._tokenizer.characters_processed if self._tokenizer else 0

    def build(self, lines: Iterable[str]) -> Node:
        """Parse exactly one document from the given lines.

        Args:
            lines: Iterable yielding one line of settings text at a time

        Returns:
            The document's root node

        Raises:
            TokenError: If the input contains text that cannot be scanned
            MalformedDocument: If tokens appear in a structurally invalid order,
                or if blocks nest deeper than the interpreter's recursion
                limit allows (roughly a thousand levels by default)
        """
        self._reset_state()
        self._tokenizer = SettingsTokenizer(lines)
        self.logger.debug("Starting tree build", extra={"max_depth": self.max_depth})

        try:
            self._parse_block(None, 0)
        except RecursionError:
            # Each block level costs one stack frame
            raise MalformedDocument(
                "Block nesting is too deep to parse; the interpreter ran out of "
                f"stack after {self.max_depth_seen} levels.",
                self.lines_processed,
            ) from None
        if self._root is None:
            raise MalformedDocument(
                "The document contains no entries; expected a root key.",
                self.lines_processed,
            )
        root = self._build_node(self._root)

        self.logger.debug(
            "Tree build completed",
            extra={
                "root_key": root.key,
                "nodes_built": self.nodes_built,
                "tokens_consumed": self.tokens_consumed,
                "max_depth_seen": self.max_depth_seen,
            },
        )
        return root

    def _parse_block(self, block: Optional[NodeBuilder], depth: int) -> BlockOutcome:
        """Read the entries of one block into ``block``.

        ``block`` is None for the top level, where the first finished entry
        becomes the document root.
        """
        current: Optional[NodeBuilder] = None

        while True:
            token = self._tokenizer.next_token()
            token_type = token.type

            if token_type == TokenType.STRING:
                if current is None:
                    current = NodeBuilder().set_key(token.content)
                else:
                    self._attach(block, current.set_value(token.content))
                    current = None

            elif token_type == TokenType.COMMENT:
                continue

            elif token_type == TokenType.BEGIN_CHILD:
                if current is None:
                    raise MalformedDocument(
                        "Expected a key, but found the start to a child block instead.",
                        self._tokenizer.line_number,
                    )
                self._enter_depth(depth + 1)
                current.start_child_block()
                if self._parse_block(current, depth + 1) is BlockOutcome.END_OF_INPUT:
                    raise MalformedDocument(
                        "Unexpected end of input. There's an imbalance of braces "
                        "somewhere in the document.",
                        self._tokenizer.line_number,
                    )
                self._attach(block, current)
                current = None

            elif token_type == TokenType.END_CHILD:
                if current is not None:
                    raise MalformedDocument(
                        "Expected a value or begin child marker, but found an end "
                        "marker for a child block instead.",
                        self._tokenizer.line_number,
                    )
                if block is None:
                    raise MalformedDocument(
                        "Found an end marker for a child block, but no block is open.",
                        self._tokenizer.line_number,
                    )
                return BlockOutcome.BLOCK_CLOSED

            elif token_type == TokenType.END_OF_INPUT:
                if current is not None:
                    raise MalformedDocument(
                        "Unexpected end of input. There's an imbalance of key-value "
                        "pairs somewhere in the document.",
                        self._tokenizer.line_number,
                    )
                return BlockOutcome.END_OF_INPUT

            elif token_type == TokenType.ERROR:
                raise self._token_error(token)

            else:
                raise MalformedDocument(
                    f"Unhandled token type {token_type.name}",
                    self._tokenizer.line_number,
                )

    def _attach(self, block: Optional[NodeBuilder], current: NodeBuilder) -> None:
        node = self._build_node(current)
        self.nodes_built += 1

        if block is not None:
            block.add_child(node)
        elif self._root is None:
            self._root = current
        else:
            # Later top-level entries merge into a block root and are ignored
            # by a leaf root, as add_child does outside block mode
            self._root.add_child(node)

    def _build_node(self, builder: NodeBuilder) -> Node:
        try:
            return builder.build()
        except ValidationError as e:
            raise MalformedDocument(str(e), self._tokenizer.line_number) from e

    def _enter_depth(self, depth: int) -> None:
        if self.max_depth is not None and depth > self.max_depth:
            raise MalformedDocument(
                f"Block nesting exceeds the maximum depth of {self.max_depth}.",
                self._tokenizer.line_number,
            )
        self.max_depth_seen = max(self.max_depth_seen, depth)

    def _token_error(self, token: Token) -> TokenError:
        detail = token.error
        return TokenError(
            cause=detail.cause,
            line_number=self._tokenizer.line_number,
            character=detail.character,
            offset=detail.offset,
            line_text=detail.line_text,
            diagnostic=token.content,
        )
