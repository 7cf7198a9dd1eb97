"""
Asynchronous execution boundary detection.

A reference to a routine is "inside an async boundary" when the code that
contains it is handed to another thread of execution: it is an argument of a
thread constructor (``Thread(target=...)``), of an executor factory, or of a
scheduling method such as ``executor.submit(...)``. Control does not flow
back across such a hand-off in static call graph terms.

The check is a syntactic, name-based heuristic. Receiver types are not
resolved, so shadowed or coincidental names can produce false positives and
negatives.
"""

import ast
from typing import Any, Dict, Iterable, Optional

from callpath.analysis.ast_parser import get_dotted_name
from callpath.analysis.import_tracker import ImportTracker
from callpath.config import DEFAULT_CONFIG
from callpath.logger import get_logger

logger = get_logger("callpath.analysis.boundary")


class AsyncBoundaryDetector:
    """Decides whether a syntax node sits inside a thread/executor hand-off."""

    def __init__(
        self,
        thread_constructors: Optional[Iterable[str]] = None,
        executor_types: Optional[Iterable[str]] = None,
        executor_methods: Optional[Iterable[str]] = None,
    ):
        self.thread_constructors = frozenset(
            DEFAULT_CONFIG["thread_constructors"]
            if thread_constructors is None
            else thread_constructors
        )
        self.executor_types = frozenset(
            DEFAULT_CONFIG["executor_types"] if executor_types is None else executor_types
        )
        self.executor_methods = frozenset(
            DEFAULT_CONFIG["executor_methods"]
            if executor_methods is None
            else executor_methods
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AsyncBoundaryDetector":
        return cls(
            config.get("thread_constructors"),
            config.get("executor_types"),
            config.get("executor_methods"),
        )

    def is_async_boundary(
        self,
        node: ast.AST,
        parent_map: Dict[ast.AST, ast.AST],
        stop_at: Optional[ast.AST] = None,
        imports: Optional[ImportTracker] = None,
    ) -> bool:
        """
        Walk outward from ``node`` (inclusive) and report a hand-off.

        Args:
            node: The referencing node (a call or a bare callable reference)
            parent_map: Child to parent mapping of the module
            stop_at: The enclosing routine's def node; the walk ends there.
                None walks up to the module root.
            imports: Import aliases of the module, used to expand names
                such as ``T`` in ``from threading import Thread as T``

        Returns:
            True if the node is inside an async boundary
        """
        current: Optional[ast.AST] = node
        while current is not None and current is not stop_at:
            if isinstance(current, ast.Call) and self._is_handoff_call(current, imports):
                return True
            current = parent_map.get(current)
        return False

    def _is_handoff_call(self, call: ast.Call, imports: Optional[ImportTracker]) -> bool:
        func = call.func
        if isinstance(func, ast.Attribute) and func.attr in self.executor_methods:
            return True

        dotted = get_dotted_name(func)
        if not dotted:
            return False
        if imports is not None:
            dotted = imports.expand_dotted(dotted)
        last = dotted.rsplit(".", 1)[-1]
        return last in self.thread_constructors or last in self.executor_types
