"""
Single-pass node dispatch.

The tree is walked once, pre-order. At each node every handler registered
for the node's kind runs, in registration order, against the same node. A
failing handler is logged and recorded; it never stops the other handlers
or the rest of the walk.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from .errors import RuleProgrammingError
from .reporter import rule_name_of
from .registry import NodeLintRegistry
from .syntax import SyntaxNode, SyntaxTree
from .types import HandlerFailure

logger = logging.getLogger(__name__)


def traverse(tree: SyntaxTree, registry: NodeLintRegistry, strict: bool = False,
             timing: Optional[Dict[str, Dict[str, Any]]] = None) -> List[HandlerFailure]:
    """Visit every node of ``tree`` once and run the registered handlers.

    Args:
        tree: The resolved syntax tree
        registry: Node processors for this traversal (frozen on entry)
        strict: Re-raise rule programming errors instead of isolating them
        timing: Optional dict collecting rule name -> {"total_ms", "call_count"}

    Returns:
        Handler failures, in the order they happened
    """
    registry.freeze()
    failures: List[HandlerFailure] = []
    visited = 0

    for node in tree.walk():
        visited += 1
        for rule, handler in registry.processors_for(node.kind):
            rule_start = time.perf_counter() if timing is not None else 0.0
            try:
                handler(node)
            except RuleProgrammingError as e:
                if strict:
                    raise
                failures.append(_record_failure(tree, rule, node, e))
            except Exception as e:
                failures.append(_record_failure(tree, rule, node, e))
            finally:
                if timing is not None:
                    _record_timing(timing, rule_name_of(rule), rule_start)

    logger.debug(f"Visited {visited} nodes in {tree.file_path} ({len(failures)} handler failures)")
    return failures


def _record_failure(tree: SyntaxTree, rule, node: SyntaxNode, error: Exception) -> HandlerFailure:
    name = rule_name_of(rule)
    logger.warning(f"Rule '{name}' failed on {node.kind.value} at "
                   f"{tree.file_path}:{tree.line_col(node.offset)[0]}: {error!r}")
    return HandlerFailure(
        rule=name,
        node_kind=node.kind.value,
        file=tree.file_path,
        start_byte=node.span[0],
        end_byte=node.span[1],
        error=f"{type(error).__name__}: {error}",
    )


def _record_timing(timing: Dict[str, Dict[str, Any]], rule_name: str, rule_start: float) -> None:
    elapsed_ms = (time.perf_counter() - rule_start) * 1000
    entry = timing.setdefault(rule_name, {"total_ms": 0.0, "call_count": 0})
    entry["total_ms"] += elapsed_ms
    entry["call_count"] += 1
