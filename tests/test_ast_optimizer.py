"""
Tests for the AST optimizer.

Validates:
  - Constant folding of binary and unary integer expressions
  - Dead code elimination of constant IF_STMT conditions
  - Loop unrolling bounds and shape matching
  - Single-pass ordering, idempotence and statistics
"""

import sys
import pytest
from treeopt.compiler.ast_optimizer import (
    ASTOptimizer,
    ConstantFolder,
    DeadCodeEliminator,
    LoopUnroller,
)
from treeopt.compiler.reader import parse_text
from treeopt.model.nodes import Node, NodeKind

INT_DIGIT_LIMIT = getattr(sys, 'get_int_max_str_digits', lambda: 0)()


# ---------- Tree Builders ----------

def counted_loop(start, end, body=None, names=('i', 'i', 'i'), cmp='<', step='++'):
    decl_name, cond_name, step_name = names
    return Node.for_stmt(
        Node.declaration(decl_name, Node.int_literal(start)),
        Node.binary(cmp, Node.var(cond_name), Node.int_literal(end)),
        Node.unary(step, Node.var(step_name)),
        body if body is not None else Node.call('foo'),
    )


def optimized(tree, **kwargs):
    ASTOptimizer(**kwargs).optimize(tree)
    return tree


# ---------- Constant Folding ----------

class TestConstantFolding:
    @pytest.mark.parametrize("op, a, b, expected", [
        ('+', 2, 3, 5),
        ('-', 2, 7, -5),
        ('*', -4, 6, -24),
        ('/', 17, 5, 3),
        ('/', -7, 2, -3),
        ('/', 7, -2, -3),
        ('/', -8, -2, 4),
    ])
    def test_binary_fold(self, op, a, b, expected):
        tree = optimized(Node.binary(op, Node.int_literal(a), Node.int_literal(b)))
        assert tree == Node.int_literal(expected)

    def test_division_by_zero_unfolded(self):
        tree = Node.binary('/', Node.int_literal(5), Node.int_literal(0))
        assert optimized(tree.clone()) == tree

    def test_unsupported_operator_unfolded(self):
        tree = Node.binary('%', Node.int_literal(5), Node.int_literal(2))
        assert optimized(tree.clone()) == tree

    def test_non_literal_operand_unfolded(self):
        tree = Node.binary('+', Node.var('x'), Node.int_literal(2))
        assert optimized(tree.clone()) == tree

    def test_wrong_arity_unfolded(self):
        tree = Node(NodeKind.BINARY_EXPR, op='+', children=[Node.int_literal(1)])
        assert optimized(tree.clone()) == tree

    def test_unary_increment(self):
        assert optimized(Node.unary('++', Node.int_literal(41))) == Node.int_literal(42)

    def test_unary_decrement(self):
        assert optimized(Node.unary('--', Node.int_literal(0))) == Node.int_literal(-1)

    def test_unary_other_operator_unfolded(self):
        tree = Node.unary('-', Node.int_literal(3))
        assert optimized(tree.clone()) == tree

    def test_unary_on_variable_unfolded(self):
        tree = Node.unary('++', Node.var('i'))
        assert optimized(tree.clone()) == tree

    def test_folded_node_has_no_operator(self):
        tree = optimized(Node.binary('+', Node.int_literal(1), Node.int_literal(1)))
        assert tree.op is None
        assert tree.children == []

    def test_composition(self):
        tree = Node.binary(
            '*',
            Node.binary('+', Node.int_literal(2), Node.int_literal(3)),
            Node.int_literal(4),
        )
        assert optimized(tree) == Node.int_literal(20)

    @pytest.mark.skipif(not INT_DIGIT_LIMIT, reason="no int/str digit limit")
    def test_result_too_long_to_write_unfolded(self):
        digits = INT_DIGIT_LIMIT - 1
        operand = int('9' * digits)
        tree = Node.binary('*', Node.int_literal(operand), Node.int_literal(operand))
        text = ASTOptimizer().get_optimized_text(tree)
        assert tree.kind is NodeKind.BINARY_EXPR
        assert text.startswith('BINARY_EXPR (*)\n  INT (999')

    def test_fold_inside_statement(self):
        tree = Node.declaration('x', Node.binary('-', Node.int_literal(9), Node.int_literal(4)))
        assert optimized(tree) == Node.declaration('x', Node.int_literal(5))


# ---------- Dead Code Elimination ----------

class TestDeadCodeElimination:
    def test_false_condition(self):
        tree = Node.if_stmt(
            Node.int_literal(0),
            Node.sequence(Node.call('never')),
            Node.sequence(Node.call('else_branch')),
        )
        assert optimized(tree) == Node.sequence()

    def test_true_condition(self):
        then_branch = Node.sequence(Node.call('always'), Node(NodeKind.RETURN_STMT))
        tree = Node.if_stmt(Node.int_literal(5), then_branch.clone(), Node.sequence())
        assert optimized(tree) == then_branch

    def test_true_condition_keeps_branch_kind(self):
        tree = Node.if_stmt(Node.int_literal(1), Node.call('f', Node.var('a')))
        result = optimized(tree)
        assert result.kind is NodeKind.FUNCTION_CALL
        assert result == Node.call('f', Node.var('a'))

    def test_folded_condition(self):
        tree = Node.if_stmt(
            Node.binary('-', Node.int_literal(3), Node.int_literal(3)),
            Node.sequence(Node.call('never')),
        )
        assert optimized(tree) == Node.sequence()

    def test_variable_condition_kept(self):
        tree = Node.if_stmt(Node.var('flag'), Node.sequence(Node.call('maybe')))
        assert optimized(tree.clone()) == tree

    def test_single_child_kept(self):
        tree = Node(NodeKind.IF_STMT, children=[Node.int_literal(1)])
        assert optimized(tree.clone()) == tree

    def test_nested_replacement(self):
        tree = Node.sequence(
            Node.call('before'),
            Node.if_stmt(Node.int_literal(0), Node.sequence(Node.call('dead'))),
            Node.if_stmt(Node.int_literal(2), Node.sequence(Node.call('live'))),
        )
        assert optimized(tree) == Node.sequence(
            Node.call('before'),
            Node.sequence(),
            Node.sequence(Node.call('live')),
        )

    def test_result_independent_of_original_branch(self):
        then_branch = Node.sequence(Node.call('live'))
        parent = Node.sequence(Node.if_stmt(Node.int_literal(1), then_branch))
        optimized(parent)
        assert parent.children[0] is not then_branch
        then_branch.children.clear()
        assert parent.children[0] == Node.sequence(Node.call('live'))


# ---------- Loop Unrolling ----------

class TestLoopUnrolling:
    def test_unroll_three(self):
        tree = optimized(counted_loop(0, 3))
        assert tree == Node.sequence(Node.call('foo'), Node.call('foo'), Node.call('foo'))

    def test_copies_are_independent(self):
        tree = optimized(counted_loop(0, 3))
        first, second, _ = tree.children
        assert first is not second
        first.name = 'bar'
        assert second.name == 'foo'

    def test_unroll_at_limit(self):
        tree = optimized(counted_loop(4, 20))
        assert len(tree.children) == 16

    def test_above_limit_unchanged(self):
        tree = counted_loop(0, 20)
        assert optimized(tree.clone()) == tree

    def test_custom_limit(self):
        tree = counted_loop(0, 20)
        assert len(optimized(tree, unroll_limit=32).children) == 20

    @pytest.mark.parametrize("start, end", [(3, 3), (5, 1)])
    def test_empty_or_negative_range_unchanged(self, start, end):
        tree = counted_loop(start, end)
        assert optimized(tree.clone()) == tree

    def test_negative_start(self):
        assert len(optimized(counted_loop(-2, 2)).children) == 4

    def test_body_not_specialized(self):
        body = Node.call('print', Node.var('i'))
        tree = optimized(counted_loop(0, 2, body=body))
        assert tree.children == [body, body]

    def test_sequence_body(self):
        body = Node.sequence(Node.call('a'), Node.call('b'))
        tree = optimized(counted_loop(0, 2, body=body))
        assert tree == Node.sequence(body, body)

    @pytest.mark.parametrize("kwargs", [
        {'names': ('i', 'j', 'i')},
        {'names': ('i', 'i', 'j')},
        {'cmp': '<='},
        {'step': '--'},
    ])
    def test_shape_mismatch_unchanged(self, kwargs):
        tree = counted_loop(0, 3, **kwargs)
        assert optimized(tree.clone()) == tree

    def test_non_literal_bound_unchanged(self):
        tree = counted_loop(0, 3)
        tree.children[1].children[1] = Node.var('n')
        assert optimized(tree.clone()) == tree

    def test_three_children_unchanged(self):
        tree = counted_loop(0, 3)
        del tree.children[3]
        assert optimized(tree.clone()) == tree

    def test_folded_bound(self):
        tree = counted_loop(0, 0)
        tree.children[1].children[1] = Node.binary('+', Node.int_literal(1), Node.int_literal(1))
        assert optimized(tree) == Node.sequence(Node.call('foo'), Node.call('foo'))

    def test_loop_inside_live_branch(self):
        tree = Node.if_stmt(Node.int_literal(1), counted_loop(0, 2))
        assert optimized(tree) == Node.sequence(Node.call('foo'), Node.call('foo'))


# ---------- Driver ----------

class TestASTOptimizer:
    def setup_method(self):
        self.optimizer = ASTOptimizer()

    def test_optimize_returns_none(self):
        assert self.optimizer.optimize(Node.sequence()) is None

    def test_root_replaced_in_place(self):
        tree = Node.binary('+', Node.int_literal(1), Node.int_literal(2))
        original = tree
        self.optimizer.optimize(tree)
        assert tree is original
        assert tree == Node.int_literal(3)

    def test_idempotent(self):
        tree = Node.function_def('main', Node.sequence(
            Node.if_stmt(Node.int_literal(1), counted_loop(0, 2)),
            Node.declaration('x', Node.unary('--', Node.int_literal(10))),
            counted_loop(0, 40),
            Node.binary('/', Node.int_literal(1), Node.int_literal(0)),
        ))
        self.optimizer.optimize(tree)
        once = tree.clone()
        ASTOptimizer().optimize(tree)
        assert tree == once

    def test_stats(self):
        tree = Node.sequence(
            Node.binary('+', Node.int_literal(1), Node.int_literal(2)),
            Node.if_stmt(Node.int_literal(0), Node.sequence()),
            counted_loop(0, 2),
        )
        self.optimizer.optimize(tree)
        assert self.optimizer.stats['constants_folded'] == 1
        assert self.optimizer.stats['dead_branches_removed'] == 1
        assert self.optimizer.stats['loops_unrolled'] == 1

    def test_selected_passes(self):
        tree = Node.if_stmt(
            Node.int_literal(1),
            Node.binary('+', Node.int_literal(1), Node.int_literal(2)),
        )
        ASTOptimizer(passes=['constant_fold']).optimize(tree)
        assert tree.kind is NodeKind.IF_STMT
        assert tree.children[1] == Node.int_literal(3)

    def test_unknown_pass_ignored(self):
        optimizer = ASTOptimizer(passes=['constant_fold', 'inline'])
        tree = Node.unary('++', Node.int_literal(1))
        optimizer.optimize(tree)
        assert tree == Node.int_literal(2)

    def test_empty_pass_list(self):
        tree = Node.unary('++', Node.int_literal(1))
        optimizer = ASTOptimizer(passes=[])
        optimizer.optimize(tree)
        assert tree == Node.unary('++', Node.int_literal(1))
        assert optimizer.enabled_passes == []

    def test_tree_deeper_than_limit_unchanged(self):
        innermost = Node.binary('+', Node.int_literal(1), Node.int_literal(2))
        tree = innermost
        for _ in range(2000):
            tree = Node.sequence(tree)
        self.optimizer.optimize(tree)
        assert tree.depth() == 2002
        assert innermost.kind is NodeKind.BINARY_EXPR
        assert self.optimizer.stats['constants_folded'] == 0

    def test_custom_depth_limit(self):
        tree = Node.sequence(Node.sequence(Node.unary('--', Node.int_literal(3))))
        ASTOptimizer(max_depth=4).optimize(tree)
        assert tree == Node.sequence(Node.sequence(Node.int_literal(2)))
        shallow = Node.sequence(Node.sequence(Node.unary('--', Node.int_literal(3))))
        ASTOptimizer(max_depth=3).optimize(shallow)
        assert shallow.children[0].children[0].kind is NodeKind.UNARY_EXPR

    def test_get_optimized_text(self):
        tree = parse_text("RETURN_STMT\n  BINARY_EXPR (*)\n    INT (6)\n    INT (7)\n")
        assert self.optimizer.get_optimized_text(tree) == "RETURN_STMT\n  INT (42)\n"


class TestRewriters:
    def test_rewriter_ignores_other_kinds(self):
        stats = {}
        node = Node.var('x')
        assert ConstantFolder(stats).rewrite(node) is node
        assert DeadCodeEliminator(stats).rewrite(node) is node
        assert LoopUnroller(stats).rewrite(node) is node
