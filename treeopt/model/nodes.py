"""
AST Model
=========

The single recursive node type used by every stage of the pipeline.

A Node is a tagged record: its ``kind`` decides which of the payload
fields (``name``, ``int_value``, ``string_value``, ``op``) are present.
Fields that do not apply to a kind are always ``None``. Children are held
in a plain list owned by the parent, so a tree never shares a node between
two parents.

Kinds and payloads:

    FUNCTION_DEF, DECLARATION, VAR, FUNCTION_CALL   -> name
    INT                                             -> int_value
    STRING                                          -> string_value
    BINARY_EXPR, UNARY_EXPR                         -> op
    SEQUENCE, IF_STMT, EXPR_LIST, FOR_STMT,
    RETURN_STMT                                     -> (none)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class NodeKind(Enum):
    """Closed vocabulary of node kinds. The value is the textual tag."""
    FUNCTION_DEF = 'FUNCTION_DEF'
    SEQUENCE = 'SEQUENCE'
    DECLARATION = 'DECLARATION'
    INT = 'INT'
    BINARY_EXPR = 'BINARY_EXPR'
    VAR = 'VAR'
    IF_STMT = 'IF_STMT'
    FUNCTION_CALL = 'FUNCTION_CALL'
    EXPR_LIST = 'EXPR_LIST'
    FOR_STMT = 'FOR_STMT'
    UNARY_EXPR = 'UNARY_EXPR'
    RETURN_STMT = 'RETURN_STMT'
    STRING = 'STRING'

    @classmethod
    def from_tag(cls, tag: str) -> Optional['NodeKind']:
        """Exact, case-sensitive lookup. Returns None for unknown tags."""
        return _TAGS.get(tag)

    @property
    def takes_argument(self) -> bool:
        return self in ARGUMENT_KINDS


_TAGS = {kind.value: kind for kind in NodeKind}

NAMED_KINDS = frozenset({
    NodeKind.FUNCTION_DEF,
    NodeKind.DECLARATION,
    NodeKind.VAR,
    NodeKind.FUNCTION_CALL,
})
OPERATOR_KINDS = frozenset({NodeKind.BINARY_EXPR, NodeKind.UNARY_EXPR})
ARGUMENT_KINDS = NAMED_KINDS | OPERATOR_KINDS | {NodeKind.INT, NodeKind.STRING}


@dataclass
class Node:
    """
    One AST construct.

    Equality is structural: two nodes are equal when their kind, payload
    fields and children (recursively, in order) are equal.

    Usage:
        >>> expr = Node.binary('+', Node.int_literal(2), Node.int_literal(3))
        >>> expr.label()
        'BINARY_EXPR (+)'
    """
    kind: NodeKind
    name: Optional[str] = None
    int_value: Optional[int] = None
    string_value: Optional[str] = None
    op: Optional[str] = None
    children: List['Node'] = field(default_factory=list)

    def __post_init__(self):
        self._fill_defaults()
        self.check_fields()

    def _fill_defaults(self):
        if self.kind in NAMED_KINDS and self.name is None:
            self.name = ''
        elif self.kind in OPERATOR_KINDS and self.op is None:
            self.op = ''
        elif self.kind is NodeKind.INT and self.int_value is None:
            self.int_value = 0
        elif self.kind is NodeKind.STRING and self.string_value is None:
            self.string_value = ''

    def check_fields(self):
        """Raise ValueError if a payload field is set on a kind that has none."""
        misplaced = []
        if self.name is not None and self.kind not in NAMED_KINDS:
            misplaced.append('name')
        if self.op is not None and self.kind not in OPERATOR_KINDS:
            misplaced.append('op')
        if self.int_value is not None and self.kind is not NodeKind.INT:
            misplaced.append('int_value')
        if self.string_value is not None and self.kind is not NodeKind.STRING:
            misplaced.append('string_value')
        if misplaced:
            raise ValueError(
                f"{self.kind.value} node cannot carry {', '.join(misplaced)}"
            )

    # ---- Constructors ----

    @classmethod
    def sequence(cls, *children: 'Node') -> 'Node':
        return cls(NodeKind.SEQUENCE, children=list(children))

    @classmethod
    def int_literal(cls, value: int) -> 'Node':
        return cls(NodeKind.INT, int_value=value)

    @classmethod
    def string_literal(cls, value: str) -> 'Node':
        return cls(NodeKind.STRING, string_value=value)

    @classmethod
    def var(cls, name: str) -> 'Node':
        return cls(NodeKind.VAR, name=name)

    @classmethod
    def declaration(cls, name: str, *children: 'Node') -> 'Node':
        return cls(NodeKind.DECLARATION, name=name, children=list(children))

    @classmethod
    def call(cls, name: str, *args: 'Node') -> 'Node':
        return cls(NodeKind.FUNCTION_CALL, name=name, children=list(args))

    @classmethod
    def function_def(cls, name: str, *children: 'Node') -> 'Node':
        return cls(NodeKind.FUNCTION_DEF, name=name, children=list(children))

    @classmethod
    def binary(cls, op: str, left: 'Node', right: 'Node') -> 'Node':
        return cls(NodeKind.BINARY_EXPR, op=op, children=[left, right])

    @classmethod
    def unary(cls, op: str, operand: 'Node') -> 'Node':
        return cls(NodeKind.UNARY_EXPR, op=op, children=[operand])

    @classmethod
    def if_stmt(cls, condition: 'Node', then_branch: 'Node', *rest: 'Node') -> 'Node':
        return cls(NodeKind.IF_STMT, children=[condition, then_branch, *rest])

    @classmethod
    def for_stmt(cls, init: 'Node', condition: 'Node', step: 'Node', body: 'Node') -> 'Node':
        return cls(NodeKind.FOR_STMT, children=[init, condition, step, body])

    # ---- Cloning ----

    def clone(self) -> 'Node':
        """Return an independent deep copy of this subtree."""
        return Node(
            self.kind,
            name=self.name,
            int_value=self.int_value,
            string_value=self.string_value,
            op=self.op,
            children=[child.clone() for child in self.children],
        )

    def __deepcopy__(self, memo):
        return self.clone()

    def replace_with(self, other: 'Node'):
        """
        Take over the kind, payload and children of ``other``.

        Only used where there is no parent slot to assign into (the root).
        ``other`` must not be referenced anywhere else afterwards.
        """
        self.kind = other.kind
        self.name = other.name
        self.int_value = other.int_value
        self.string_value = other.string_value
        self.op = other.op
        self.children = other.children

    # ---- Inspection ----

    def walk(self) -> Iterator['Node']:
        """Pre-order iteration over this subtree."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def count(self) -> int:
        return sum(1 for _ in self.walk())

    def depth(self) -> int:
        """Number of levels in this subtree (a leaf has depth 1)."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children)
        return deepest

    def argument(self) -> Optional[str]:
        """The textual argument of this node, or None for kinds without one."""
        if self.kind in NAMED_KINDS:
            return self.name
        if self.kind in OPERATOR_KINDS:
            return self.op
        if self.kind is NodeKind.INT:
            return str(self.int_value)
        if self.kind is NodeKind.STRING:
            return f'"{self.string_value}"'
        return None

    def label(self) -> str:
        """The node's serialized line, without indentation."""
        arg = self.argument()
        if arg is None:
            return self.kind.value
        return f"{self.kind.value} ({arg})"

    def __str__(self):
        return self.label()


def clone_tree(node: Node) -> Node:
    """Module-level alias for :meth:`Node.clone`."""
    return node.clone()
