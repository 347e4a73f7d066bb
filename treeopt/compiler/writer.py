"""
Tree Writer
===========

Serializes a Node tree into the indented text format accepted by
:mod:`treeopt.compiler.reader`. The output of ``write`` read back through
the reader gives a tree equal to the input.
"""

from pathlib import Path
from typing import List, Union

from ..model.nodes import Node
from .reader import INDENT_WIDTH


class TreeWriter:
    """Emit one line per node, ``indent_width`` spaces per nesting level."""

    def __init__(self, indent_width: int = INDENT_WIDTH):
        self.indent_width = indent_width

    def write(self, node: Node) -> List[str]:
        lines: List[str] = []
        stack = [(node, 0)]
        while stack:
            current, depth = stack.pop()
            lines.append(' ' * (depth * self.indent_width) + current.label())
            stack.extend((child, depth + 1) for child in reversed(current.children))
        return lines


def write_lines(node: Node) -> List[str]:
    return TreeWriter().write(node)


def write_text(node: Node) -> str:
    return ''.join(line + '\n' for line in TreeWriter().write(node))


def write_file(node: Node, path: Union[str, Path]):
    text = write_text(node)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
