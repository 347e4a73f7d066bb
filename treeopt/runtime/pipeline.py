"""
Optimization Pipeline
=====================

Runs the three stages over a document:

  Reader    -> text lines to tree
  Optimizer -> in-place rewrite
  Writer    -> tree to text lines

A document that fails to parse stops the pipeline before optimization;
``run_file`` then reports the offending line, leaves the destination
untouched and returns a non-zero status.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..compiler.ast_optimizer import ASTOptimizer
from ..compiler.reader import TreeReader
from ..compiler.writer import TreeWriter
from ..errors import ParseError
from ..model.nodes import Node
from ..utils.helpers import Timer

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class OptimizationPipeline:
    """
    Reader, optimizer and writer wired together.

    Usage:
        >>> pipeline = OptimizationPipeline()
        >>> pipeline.run_text("BINARY_EXPR (+)\\n  INT (2)\\n  INT (3)\\n")
        'INT (5)\\n'
    """

    def __init__(
        self,
        passes: Optional[List[str]] = None,
        unroll_limit: int = ASTOptimizer.UNROLL_LIMIT,
        max_depth: int = TreeReader.MAX_DEPTH,
        enable_logging: bool = False,
    ):
        self.passes = passes
        self.unroll_limit = unroll_limit
        self.max_depth = max_depth
        self.last_stats: Dict[str, int] = {}

        self._reader = TreeReader(max_depth=max_depth)
        self._writer = TreeWriter()

        if enable_logging:
            logging.basicConfig(level=logging.DEBUG)

    def run_tree(self, tree: Node) -> Node:
        """Optimize an already-parsed tree in place and return it."""
        optimizer = ASTOptimizer(
            passes=self.passes,
            unroll_limit=self.unroll_limit,
            max_depth=self.max_depth,
        )
        with Timer() as t:
            optimizer.optimize(tree)
        self.last_stats = dict(optimizer.stats)
        logger.debug(f"Optimized {tree.count()} nodes in {t.elapsed}")
        return tree

    def run_lines(self, lines) -> List[str]:
        with Timer() as t:
            tree = self._reader.parse(lines)
        logger.debug(f"Parsed {tree.count()} nodes in {t.elapsed}")

        self.run_tree(tree)
        return self._writer.write(tree)

    def run_text(self, text: str) -> str:
        """Optimize a whole document. Raises ParseError on malformed input."""
        return ''.join(line + '\n' for line in self.run_lines(text.splitlines()))

    def run_file(self, source: PathLike, destination: PathLike) -> int:
        """
        Optimize ``source`` into ``destination``.

        Returns 0 on success and 1 when the source cannot be read or parsed,
        in which case nothing is written.
        """
        try:
            with open(source, 'r', encoding='utf-8') as f:
                output = self.run_lines(f)
        except ParseError as e:
            self._report(f"Failed to parse {source}: {e}")
            return 1
        except UnicodeDecodeError as e:
            self._report(f"Failed to read input file {source}: {e}")
            return 1
        except OSError as e:
            self._report(f"Failed to open input file {source}: {e}")
            return 1

        try:
            with open(destination, 'w', encoding='utf-8') as f:
                f.writelines(line + '\n' for line in output)
        except OSError as e:
            self._report(f"Failed to open output file {destination}: {e}")
            return 1

        logger.info(f"Wrote {len(output)} lines to {destination}")
        return 0

    def _report(self, message: str):
        logger.error(message)
        print(message, file=sys.stderr)


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

_default_pipeline = OptimizationPipeline()


def optimize_text(text: str) -> str:
    """
    Optimize a document with the default settings.

    Usage:
        from treeopt import optimize_text

        print(optimize_text(open('ast.txt').read()))
    """
    return _default_pipeline.run_text(text)


def optimize_file(source: PathLike, destination: PathLike) -> int:
    """Optimize ``source`` into ``destination``; returns an exit status."""
    return _default_pipeline.run_file(source, destination)
