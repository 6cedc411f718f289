"""Immutable settings tree nodes and their two-phase builder.

A settings document is a tree of keys. Each key is bound either to a
single string value (a leaf) or to an ordered block of uniquely keyed
children, never both::

    // This is a comment
    "key1" {
        "key2" "key 2's value"
        "key3" {
            "key4" "key 4's value"
        }
    }

:class:`Node` enforces that invariant when it is constructed, so an invalid
node can never exist. :class:`NodeBuilder` stages the fields one at a time
and validates them in :meth:`NodeBuilder.build`.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from valve_settings_parser.shared.errors import ValidationError

INDENTATION = "  "
KEY_VALUE_DELIMITER = " "
PATH_SEPARATOR = "/"

_MISSING_KEY = "Node must have a key"
_MISSING_CONTENT = "Either the value or children must be set"
_BOTH_CONTENT = "Either the value or children must be set, but not both"


def _validation_problem(
    key: Optional[str],
    value: Optional[str],
    children: Optional[Mapping[str, "Node"]]
) -> Optional[str]:
    """Return why the given fields cannot form a node, or None if they can."""
    if not key:
        return _MISSING_KEY
    if value is None and children is None:
        return _MISSING_CONTENT
    if value is not None and children is not None:
        return _BOTH_CONTENT
    return None


@dataclass(frozen=True, eq=False)
class Node:
    """One key bound to either a string value or an ordered child block.

    Children are exposed as a read-only mapping that preserves insertion
    order. Equality is structural and sensitive to child order.

    Serialization, equality, :meth:`iter_nodes` and :attr:`depth` walk the
    tree with an explicit stack and handle any nesting depth;
    :meth:`to_dict` recurses once per level and is bounded by the
    interpreter's recursion limit.
    """

    key: str
    value: Optional[str] = None
    children: Optional[Mapping[str, "Node"]] = None

    def __post_init__(self) -> None:
        """Validate the node and freeze its children."""
        problem = _validation_problem(self.key, self.value, self.children)
        if problem:
            raise ValidationError(problem, self._state())

        if self.children is not None:
            if not isinstance(self.children, Mapping):
                raise ValidationError(
                    "Children must be a mapping of keys to nodes", self._state()
                )
            frozen: Dict[str, Node] = {}
            for name, child in self.children.items():
                if not isinstance(child, Node):
                    raise ValidationError(
                        f"Child '{name}' must be a Node instance", self._state()
                    )
                if child.key != name:
                    raise ValidationError(
                        f"Child stored under '{name}' has key '{child.key}'",
                        self._state(),
                    )
                frozen[name] = child
            object.__setattr__(self, "children", MappingProxyType(frozen))

    @staticmethod
    def builder() -> "NodeBuilder":
        """Start staging a new node."""
        return NodeBuilder()

    def to_builder(self) -> "NodeBuilder":
        """Stage a copy of this node for modification."""
        return NodeBuilder.from_node(self)

    @property
    def is_leaf(self) -> bool:
        return self.value is not None

    @property
    def is_block(self) -> bool:
        return self.children is not None

    def get(self, key: str, default: Optional["Node"] = None) -> Optional["Node"]:
        """Get a direct child by key, or ``default`` for leaves and misses."""
        if self.children is None:
            return default
        return self.children.get(key, default)

    def find(
        self, path: Union[str, Sequence[str]], separator: str = PATH_SEPARATOR
    ) -> Optional["Node"]:
        """Find a descendant by key path.

        Args:
            path: Either a ``separator``-joined string such as
                ``"gameTypes/classic"`` or a sequence of keys
            separator: Separator used when ``path`` is a string

        Returns:
            The matching node, or None if any step is missing
        """
        keys = path.split(separator) if isinstance(path, str) else list(path)
        current: Optional[Node] = self
        for key in keys:
            if current is None:
                return None
            current = current.get(key)
        return current

    def iter_nodes(self) -> Iterator["Node"]:
        """Iterate over this node and all descendants in document order."""
        pending: List[Node] = [self]
        while pending:
            node = pending.pop()
            yield node
            if node.children is not None:
                pending.extend(reversed(list(node.children.values())))

    @property
    def depth(self) -> int:
        """Nesting depth of this subtree (0 for a leaf)."""
        deepest = 0
        pending: List[Tuple[Node, int]] = [(self, 0)]
        while pending:
            node, level = pending.pop()
            if node.children is not None:
                deepest = max(deepest, level + 1)
                pending.extend((child, level + 1) for child in node.children.values())
        return deepest

    def to_dict(self) -> Dict[str, Any]:
        """Convert to nested plain dictionaries keyed by node key."""
        return {self.key: self._content()}

    def _content(self) -> Any:
        if self.value is not None:
            return self.value
        return {
            name: child._content()
            for name, child in (self.children or {}).items()
        }

    def serialize(self) -> str:
        """Serialize this node to canonical settings text.

        Leaves become ``"key" "value"`` lines and blocks become
        ``"key" {`` ... ``}``, each nesting level indented by two spaces.
        Key and value text is written verbatim between the quotes.

        Raises:
            ValidationError: If any node in the hierarchy is invalid
        """
        parts: List[str] = []
        # Entries are nodes still to write, or the closing line of a block
        pending: List[Union[Tuple[Node, int], str]] = [(self, 0)]
        while pending:
            entry = pending.pop()
            if isinstance(entry, str):
                parts.append(entry)
                continue

            node, depth = entry
            node._check_serializable()
            indentation = INDENTATION * depth
            if node.value is not None:
                parts.append(
                    f'{indentation}"{node.key}"{KEY_VALUE_DELIMITER}"{node.value}"\n'
                )
                continue

            parts.append(f'{indentation}"{node.key}" {{\n')
            pending.append(f"{indentation}}}\n")
            pending.extend(
                (child, depth + 1) for child in reversed(list(node.children.values()))
            )
        return "".join(parts)

    def _check_serializable(self) -> None:
        problem = _validation_problem(self.key, self.value, self.children)
        if problem:
            raise ValidationError(
                "An error occurred while serializing this node; check where it "
                f"is created and that it satisfies: {problem}",
                self._state(),
            )

    def _state(self) -> str:
        if self.children is None or not isinstance(self.children, Mapping):
            children = self.children
        else:
            children = list(self.children)
        return f"Node{{key={self.key!r}, value={self.value!r}, children={children!r}}}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        pending: List[Tuple[Node, Node]] = [(self, other)]
        while pending:
            left, right = pending.pop()
            if left.key != right.key or left.value != right.value:
                return False
            if left.children is None or right.children is None:
                if left.children is not right.children:
                    return False
                continue
            if list(left.children) != list(right.children):
                return False
            pending.extend(zip(left.children.values(), right.children.values()))
        return True

    __hash__ = None  # type: ignore[assignment]

    def __getitem__(self, key: str) -> "Node":
        child = self.get(key)
        if child is None:
            raise KeyError(key)
        return child

    def __contains__(self, key: object) -> bool:
        return self.children is not None and key in self.children

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Node(key={self.key!r}, value={self.value!r})"
        return f"Node(key={self.key!r}, children={list(self.children or {})!r})"

    def __str__(self) -> str:
        return self.serialize()


class NodeBuilder:
    """Stages node fields and validates them into an immutable :class:`Node`.

    The builder starts empty. ``start_child_block`` switches it into block
    mode; children added outside block mode are ignored. All setters return
    the builder so calls can be chained::

        node = Node.builder().set_key("hostname").set_value("My Server").build()
    """

    def __init__(self) -> None:
        self._key: Optional[str] = None
        self._value: Optional[str] = None
        self._children: Optional[Dict[str, Node]] = None

    @classmethod
    def from_node(cls, node: Node) -> "NodeBuilder":
        """Create a builder staged with the fields of an existing node."""
        builder = cls().set_key(node.key)
        if node.children is None:
            return builder.set_value(node.value)
        builder.start_child_block()
        for child in node.children.values():
            builder.add_child(child)
        return builder

    @property
    def key(self) -> Optional[str]:
        return self._key

    @property
    def value(self) -> Optional[str]:
        return self._value

    @property
    def children(self) -> Optional[Mapping[str, Node]]:
        """Read-only snapshot of the staged children, None outside block mode."""
        if self._children is None:
            return None
        return MappingProxyType(dict(self._children))

    @property
    def in_block_mode(self) -> bool:
        return self._children is not None

    def set_key(self, key: str) -> "NodeBuilder":
        self._key = key
        return self

    def set_value(self, value: Optional[str]) -> "NodeBuilder":
        self._value = value
        return self

    def start_child_block(self) -> "NodeBuilder":
        """Switch to block mode with no children, discarding any staged value."""
        self._value = None
        self._children = {}
        return self

    def add_child(self, child: Node) -> "NodeBuilder":
        """Add a child if in block mode, otherwise ignore it.

        A child whose key is already present replaces the earlier one and
        moves to the end of the block.
        """
        if not isinstance(child, Node):
            raise TypeError("Child must be a Node instance")
        if self._children is not None:
            self._children.pop(child.key, None)
            self._children[child.key] = child
        return self

    def clear_children(self) -> "NodeBuilder":
        """Remove staged children, staying in block mode.

        Does nothing if ``start_child_block`` hasn't been called.
        """
        if self._children is not None:
            self._children.clear()
        return self

    def delete_children(self) -> "NodeBuilder":
        """Leave block mode, dropping any staged children."""
        self._children = None
        return self

    def build(self) -> Node:
        """Validate the staged fields and freeze them into a node.

        Raises:
            ValidationError: If the key is missing or empty, or if not
                exactly one of value and children is set
        """
        problem = _validation_problem(self._key, self._value, self._children)
        if problem:
            raise ValidationError(problem, repr(self))
        return Node(key=self._key, value=self._value, children=self._children)

    def __repr__(self) -> str:
        children = "" if self._children is None else repr(list(self._children))
        return (
            f"NodeBuilder{{key={self._key!r}, value={self._value!r}, "
            f"children={children}}}"
        )
