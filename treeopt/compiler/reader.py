"""
Tree Reader
===========

Parses the indentation-delimited text encoding into a Node tree.

Each non-blank line holds one node:

    <indent><KIND>
    <indent><KIND> (<arg>)

where ``<indent>`` is two spaces per nesting level. Children follow their
parent on the next lines, one level deeper, until a line at the parent's
level or shallower appears.

Parsing is recursive descent keyed on indentation. A line indented less
than the level being parsed ends that level and is left for the caller;
a line indented more than expected is an error.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from ..errors import (
    CapacityExceededError,
    IndentationDepthError,
    MalformedArgumentError,
    ParseError,
    UnknownKindError,
)
from ..model.nodes import NAMED_KINDS, OPERATOR_KINDS, Node, NodeKind

logger = logging.getLogger(__name__)

INDENT_WIDTH = 2
OPERATOR_WIDTH = 3

_INTEGER = re.compile(r'\s*[+-]?[0-9]+\s*')


def leading_spaces(line: str) -> int:
    return len(line) - len(line.lstrip(' '))


def split_line(text: str) -> Tuple[NodeKind, Optional[str]]:
    """
    Split an unindented line into its kind and raw argument.

    The argument runs from the first ``(`` to the last ``)`` so that string
    literals containing parentheses survive. Raises UnknownKindError or
    MalformedArgumentError (without line information).
    """
    end = 0
    while end < len(text) and text[end] not in ' \t(':
        end += 1
    tag = text[:end]
    kind = NodeKind.from_tag(tag)
    if kind is None:
        raise UnknownKindError(f"unknown node kind {tag!r}")

    rest = text[end:].lstrip(' \t')
    if not rest:
        return kind, None
    if not rest.startswith('('):
        raise MalformedArgumentError("unexpected text after node kind")
    close = rest.rfind(')')
    if close == -1:
        raise MalformedArgumentError("missing closing parenthesis")
    if rest[close + 1:].strip():
        raise MalformedArgumentError("unexpected text after argument")
    return kind, rest[1:close]


def build_node(kind: NodeKind, arg: Optional[str]) -> Node:
    """Create a childless node, interpreting ``arg`` according to ``kind``."""
    if arg is None:
        return Node(kind)
    if kind in NAMED_KINDS:
        return Node(kind, name=arg)
    if kind in OPERATOR_KINDS:
        return Node(kind, op=arg[:OPERATOR_WIDTH])
    if kind is NodeKind.INT:
        if not _INTEGER.fullmatch(arg):
            raise MalformedArgumentError(f"invalid integer {arg!r}")
        try:
            value = int(arg)
        except ValueError:
            # Beyond the interpreter's int/str conversion limit.
            raise MalformedArgumentError(
                f"integer literal too long ({len(arg.strip())} characters)"
            ) from None
        return Node(kind, int_value=value)
    if kind is NodeKind.STRING:
        return Node(kind, string_value=arg.strip('"'))
    logger.debug(f"Ignoring argument {arg!r} on {kind.value}")
    return Node(kind)


class _LineCursor:
    """Forward-only view over the non-blank input lines with one-line lookahead."""

    def __init__(self, lines: Iterable[str]):
        self._lines: List[Tuple[int, str]] = []
        for number, line in enumerate(lines, start=1):
            line = line.rstrip('\r\n')
            if line.strip():
                self._lines.append((number, line))
        self._pos = 0

    def peek(self) -> Optional[Tuple[int, str]]:
        if self._pos < len(self._lines):
            return self._lines[self._pos]
        return None

    def advance(self):
        self._pos += 1


class TreeReader:
    """
    Recursive-descent reader for the indented tree format.

    Usage:
        >>> reader = TreeReader()
        >>> tree = reader.parse(["BINARY_EXPR (+)", "  INT (2)", "  INT (3)"])
        >>> [child.int_value for child in tree.children]
        [2, 3]
    """

    # Keeps every later recursive walk well inside the interpreter's limit.
    MAX_DEPTH = 256

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth

    def parse(self, lines: Iterable[str]) -> Node:
        """Parse a whole document. Raises a ParseError subclass on failure."""
        cursor = _LineCursor(lines)
        if cursor.peek() is None:
            raise ParseError("empty input")

        root = self._parse_node(cursor, 0)

        trailing = cursor.peek()
        if trailing is not None:
            number, line = trailing
            if leading_spaces(line):
                raise IndentationDepthError(line_number=number, line=line)
            raise ParseError("more than one root node", number, line)

        logger.debug(f"Parsed tree of {root.count()} nodes")
        return root

    def _parse_node(self, cursor: _LineCursor, depth: int) -> Optional[Node]:
        entry = cursor.peek()
        if entry is None:
            return None
        number, line = entry

        indent = leading_spaces(line)
        expected = depth * INDENT_WIDTH
        if indent < expected:
            return None
        if indent > expected:
            raise IndentationDepthError(line_number=number, line=line)
        if depth >= self.max_depth:
            raise CapacityExceededError(
                f"tree deeper than {self.max_depth} levels", number, line
            )

        try:
            node = build_node(*split_line(line[indent:]))
        except ParseError as e:
            raise type(e)(e.message, number, line) from None
        cursor.advance()

        while True:
            child = self._parse_node(cursor, depth + 1)
            if child is None:
                break
            node.children.append(child)
        return node


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

def parse_lines(lines: Iterable[str], max_depth: int = TreeReader.MAX_DEPTH) -> Node:
    return TreeReader(max_depth).parse(lines)


def parse_text(text: str, max_depth: int = TreeReader.MAX_DEPTH) -> Node:
    return TreeReader(max_depth).parse(text.splitlines())


def parse_file(path: Union[str, Path], max_depth: int = TreeReader.MAX_DEPTH) -> Node:
    with open(path, 'r', encoding='utf-8') as f:
        return TreeReader(max_depth).parse(f)
