"""
treeopt: Optimizer for Indented AST Text
========================================

treeopt is the middle tier of a small compiler pipeline. It reads a program
tree serialized as indentation-delimited text, rewrites it with a fixed set
of semantics-preserving optimizations, and writes it back in the same form.

Core Components:
    - model: the Node tree type and its kind vocabulary
    - compiler: tree reader, tree writer and the AST optimizer
    - runtime: the read / optimize / write pipeline

Usage:
    >>> import treeopt
    >>> treeopt.optimize_text("BINARY_EXPR (*)\\n  INT (6)\\n  INT (7)\\n")
    'INT (42)\\n'

    >>> tree = treeopt.parse_text("UNARY_EXPR (++)\\n  INT (1)\\n")
    >>> treeopt.ASTOptimizer().optimize(tree)
    >>> treeopt.write_text(tree)
    'INT (2)\\n'
"""

__version__ = "1.0.0"
__author__ = "treeopt developers"

from treeopt.model.nodes import Node, NodeKind, clone_tree
from treeopt.errors import (
    ParseError,
    UnknownKindError,
    MalformedArgumentError,
    IndentationDepthError,
    CapacityExceededError,
)
from treeopt.compiler.reader import TreeReader, parse_lines, parse_text, parse_file
from treeopt.compiler.writer import TreeWriter, write_lines, write_text, write_file
from treeopt.compiler.ast_optimizer import (
    ASTOptimizer,
    ConstantFolder,
    DeadCodeEliminator,
    LoopUnroller,
)
from treeopt.runtime.pipeline import OptimizationPipeline, optimize_text, optimize_file

__all__ = [
    'Node',
    'NodeKind',
    'clone_tree',
    'ParseError',
    'UnknownKindError',
    'MalformedArgumentError',
    'IndentationDepthError',
    'CapacityExceededError',
    'TreeReader',
    'parse_lines',
    'parse_text',
    'parse_file',
    'TreeWriter',
    'write_lines',
    'write_text',
    'write_file',
    'ASTOptimizer',
    'ConstantFolder',
    'DeadCodeEliminator',
    'LoopUnroller',
    'OptimizationPipeline',
    'optimize_text',
    'optimize_file',
]
