"""
AST-Level Optimizer
===================

Rewrites a Node tree in place through a single post-order traversal.

Rewrite rules, applied to each node after all of its children are done:
1. Constant Folding - Evaluate integer BINARY_EXPR / UNARY_EXPR nodes
2. Dead Code Elimination - Collapse IF_STMT nodes with a constant condition
3. Loop Unrolling - Expand short counted FOR_STMT loops into a SEQUENCE

The rules share one traversal rather than running as separate sweeps, so a
fold is seen by every ancestor but rewrites never trigger a second pass.
Each rule receives the result of the previous one for the same node.
"""

import logging
import operator
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

from ..model.nodes import Node, NodeKind
from .reader import TreeReader
from .writer import write_text

logger = logging.getLogger(__name__)


class ASTOptimizer:
    """
    Single-pass optimizer over the indented-tree AST.

    Usage:
        >>> tree = Node.binary('*', Node.binary('+', Node.int_literal(2),
        ...                                     Node.int_literal(3)),
        ...                    Node.int_literal(4))
        >>> ASTOptimizer().optimize(tree)
        >>> tree.int_value
        20
    """

    UNROLL_LIMIT = 16  # Max trip count for full unrolling
    MAX_DEPTH = TreeReader.MAX_DEPTH  # Deeper trees are left untouched

    def __init__(
        self,
        passes: Optional[List[str]] = None,
        unroll_limit: int = UNROLL_LIMIT,
        max_depth: int = MAX_DEPTH,
    ):
        if passes is None:
            passes = ['constant_fold', 'dead_code_eliminate', 'loop_unroll']
        self.enabled_passes = passes
        self.unroll_limit = unroll_limit
        self.max_depth = max_depth
        self.stats = defaultdict(int)

        self._rules: List[NodeRewriter] = []
        for pass_name in self.enabled_passes:
            factory = getattr(self, f'_pass_{pass_name}', None)
            if factory is None:
                logger.warning(f"Unknown optimization pass {pass_name!r} ignored")
                continue
            self._rules.append(factory())

    def optimize(self, tree: Node) -> None:
        """
        Apply all enabled rules to ``tree``, mutating it in place.

        Trees nested deeper than ``max_depth`` levels are left unchanged.
        """
        depth = tree.depth()
        if depth > self.max_depth:
            logger.warning(f"Tree depth {depth} exceeds {self.max_depth}; not optimized")
            return
        result = self._visit(tree)
        if result is not tree:
            tree.replace_with(result)
        logger.debug(f"Optimization finished: {dict(self.stats)}")

    def get_optimized_text(self, tree: Node) -> str:
        """Optimize ``tree`` and return its serialized form."""
        self.optimize(tree)
        return write_text(tree)

    def _visit(self, node: Node) -> Node:
        for i, child in enumerate(node.children):
            node.children[i] = self._visit(child)
        for rule in self._rules:
            node = rule.rewrite(node)
        return node

    # ---- Pass 1: Constant Folding ----

    def _pass_constant_fold(self) -> 'NodeRewriter':
        return ConstantFolder(self.stats)

    # ---- Pass 2: Dead Code Elimination ----

    def _pass_dead_code_eliminate(self) -> 'NodeRewriter':
        return DeadCodeEliminator(self.stats)

    # ---- Pass 3: Loop Unrolling ----

    def _pass_loop_unroll(self) -> 'NodeRewriter':
        return LoopUnroller(self.stats, self.unroll_limit)


class NodeRewriter:
    """
    Base class for a single rewrite rule.

    ``rewrite`` dispatches on the node kind to ``rewrite_<KIND>`` and returns
    either the node itself or a replacement for it. Kinds without a handler
    are returned unchanged.
    """

    def __init__(self, stats: dict):
        self.stats = stats

    def rewrite(self, node: Node) -> Node:
        handler = getattr(self, f'rewrite_{node.kind.name}', None)
        if handler is None:
            return node
        return handler(node)


def _truncating_div(left: int, right: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


# Below the smallest int/str digit limit the interpreter accepts (640 digits).
_ALWAYS_PRINTABLE_BITS = 2048


def _fits_text(value: int) -> bool:
    """Whether ``value`` can be written back as a decimal literal."""
    if value.bit_length() < _ALWAYS_PRINTABLE_BITS:
        return True
    try:
        str(value)
    except ValueError:
        return False
    return True


class ConstantFolder(NodeRewriter):
    """
    Constant folding rule.

    Replaces arithmetic on integer literals with its result:
    - BINARY_EXPR (+) [INT (2), INT (3)] -> INT (5)
    - UNARY_EXPR (++) [INT (7)] -> INT (8)

    Division by a zero literal, and results too long to write back as a
    decimal literal, are left in place.
    """

    BINARY_OPS: Dict[str, Callable[[int, int], int]] = {
        '+': operator.add,
        '-': operator.sub,
        '*': operator.mul,
        '/': _truncating_div,
    }

    UNARY_STEPS = {'++': 1, '--': -1}

    def rewrite_BINARY_EXPR(self, node: Node) -> Node:
        if len(node.children) != 2:
            return node
        left, right = node.children
        if left.kind is not NodeKind.INT or right.kind is not NodeKind.INT:
            return node

        fold = self.BINARY_OPS.get(node.op)
        if fold is None:
            return node
        if fold is _truncating_div and right.int_value == 0:
            return node

        result = fold(left.int_value, right.int_value)
        if not _fits_text(result):
            return node
        self.stats['constants_folded'] += 1
        return Node.int_literal(result)

    def rewrite_UNARY_EXPR(self, node: Node) -> Node:
        if len(node.children) != 1 or node.children[0].kind is not NodeKind.INT:
            return node
        step = self.UNARY_STEPS.get(node.op)
        if step is None:
            return node

        result = node.children[0].int_value + step
        if not _fits_text(result):
            return node
        self.stats['constants_folded'] += 1
        return Node.int_literal(result)


class DeadCodeEliminator(NodeRewriter):
    """
    Dead code elimination rule.

    For IF_STMT nodes whose condition is an integer literal:
    - IF_STMT [INT (0), then, ...] -> SEQUENCE (empty)
    - IF_STMT [INT (n), then, ...] -> copy of ``then``, whatever its kind

    Children after the then-branch are dropped in both cases.
    """

    def rewrite_IF_STMT(self, node: Node) -> Node:
        if len(node.children) < 2:
            return node
        condition = node.children[0]
        if condition.kind is not NodeKind.INT:
            return node

        self.stats['dead_branches_removed'] += 1
        if condition.int_value == 0:
            return Node.sequence()
        return node.children[1].clone()


class LoopUnroller(NodeRewriter):
    """
    Loop unrolling rule.

    Expands loops of the exact shape

        FOR_STMT
          DECLARATION (i)
            INT (start)
          BINARY_EXPR (<)
            VAR (i)
            INT (end)
          UNARY_EXPR (++)
            VAR (i)
          <body>

    into a SEQUENCE holding ``end - start`` copies of ``<body>`` when that
    count is between 1 and the unroll limit. The loop variable is not
    substituted into the copies.
    """

    def __init__(self, stats: dict, limit: int = ASTOptimizer.UNROLL_LIMIT):
        super().__init__(stats)
        self.limit = limit

    def rewrite_FOR_STMT(self, node: Node) -> Node:
        bounds = self._loop_bounds(node)
        if bounds is None:
            return node
        start, end = bounds
        trip_count = end - start
        if trip_count <= 0 or trip_count > self.limit:
            return node

        body = node.children[3]
        self.stats['loops_unrolled'] += 1
        return Node.sequence(*(body.clone() for _ in range(trip_count)))

    def _loop_bounds(self, node: Node) -> Optional[Tuple[int, int]]:
        """Return (start, end) if ``node`` is a counted loop, else None."""
        if len(node.children) != 4:
            return None
        init, condition, step, _ = node.children

        if not (init.kind is NodeKind.DECLARATION
                and len(init.children) == 1
                and init.children[0].kind is NodeKind.INT):
            return None
        if not (condition.kind is NodeKind.BINARY_EXPR
                and condition.op == '<'
                and len(condition.children) == 2
                and condition.children[0].kind is NodeKind.VAR
                and condition.children[1].kind is NodeKind.INT):
            return None
        if not (step.kind is NodeKind.UNARY_EXPR
                and step.op == '++'
                and len(step.children) == 1
                and step.children[0].kind is NodeKind.VAR):
            return None

        loop_var = init.name
        if condition.children[0].name != loop_var or step.children[0].name != loop_var:
            return None
        return init.children[0].int_value, condition.children[1].int_value
