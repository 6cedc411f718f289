"""Tree model and tree building for valve settings parsing.

Key Components:
    Node: Immutable key bound to a value or an ordered child block
    NodeBuilder: Two-phase builder that validates into a Node
    SettingsTreeBuilder: Recursive-descent parser from lines to a Node tree
    ParseResult: Root node or parse error, with diagnostics and metrics
"""

from .node import INDENTATION, Node, NodeBuilder
from .builder import BlockOutcome, ParseResult, SettingsTreeBuilder

__all__ = [
    "INDENTATION",
    "BlockOutcome",
    "Node",
    "NodeBuilder",
    "ParseResult",
    "SettingsTreeBuilder",
]
