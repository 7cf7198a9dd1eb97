"""
Data models for callpath.

Routines and call sites are read-only records produced by the code index;
reports are produced by the call path detector.
"""

from typing import Any, Dict, List, Optional, Tuple

# A discovered call path: routine names in start -> target order, the
# target's own name excluded.
Path = Tuple[str, ...]


class SearchOutcome:
    """Outcome taxonomy of a call path search (values, not exceptions)."""

    PATHS_FOUND = "paths_found"
    NO_PATH_FOUND = "no_path_found"
    EMPTY_START = "empty_start"
    NO_TARGET_NAME = "no_target_name"
    TARGET_NOT_FOUND = "target_not_found"
    TARGET_HAS_NO_BODY = "target_has_no_body"
    TARGET_IS_START = "target_is_start"
    CANCELED = "canceled"

    # Conditions detected before any graph work for the whole invocation
    PRECONDITIONS = (EMPTY_START, NO_TARGET_NAME, TARGET_NOT_FOUND)


class Routine:
    """
    A declared function or method in the indexed codebase.

    Identity is the declaration site (file, line, qualified name), so two
    routines that share a name are still distinct.
    """

    __slots__ = (
        "key",
        "name",
        "qualname",
        "module",
        "file_path",
        "line_no",
        "end_line_no",
        "class_name",
        "is_async",
        "has_body",
    )

    def __init__(
        self,
        name: str,
        qualname: str,
        module: str,
        file_path: str,
        line_no: int,
        end_line_no: int = 0,
        class_name: Optional[str] = None,
        is_async: bool = False,
        has_body: bool = True,
    ):
        self.name = name
        self.qualname = qualname
        self.module = module
        self.file_path = file_path
        self.line_no = line_no
        self.end_line_no = end_line_no if end_line_no > 0 else line_no
        self.class_name = class_name
        self.is_async = is_async
        self.has_body = has_body
        self.key = f"{file_path}:{line_no}:{qualname}"

    @property
    def full_name(self) -> str:
        """Dotted name including the module, e.g. ``pkg.mod.Class.method``."""
        return f"{self.module}.{self.qualname}" if self.module else self.qualname

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Routine):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __lt__(self, other: "Routine") -> bool:
        return (self.file_path, self.line_no, self.qualname) < (
            other.file_path,
            other.line_no,
            other.qualname,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "qualname": self.qualname,
            "module": self.module,
            "file": self.file_path,
            "line": self.line_no,
            "end_line": self.end_line_no,
            "class_name": self.class_name,
            "is_async": self.is_async,
            "has_body": self.has_body,
        }

    def __repr__(self) -> str:
        return f"Routine(qualname='{self.qualname}', file='{self.file_path}', line={self.line_no})"


class CallSite:
    """
    One syntactic reference to a routine.

    ``kind`` is ``"call"`` for a call expression and ``"reference"`` for a
    bare callable reference (for example ``Thread(target=self.work)``).
    ``caller`` is None when the reference is not inside any routine body.
    """

    __slots__ = (
        "callee",
        "caller",
        "file_path",
        "line",
        "col",
        "kind",
        "expression",
        "inside_async_boundary",
    )

    def __init__(
        self,
        callee: Routine,
        caller: Optional[Routine],
        file_path: str,
        line: int,
        col: int = 0,
        kind: str = "call",
        expression: str = "",
        inside_async_boundary: bool = False,
    ):
        self.callee = callee
        self.caller = caller
        self.file_path = file_path
        self.line = line
        self.col = col
        self.kind = kind
        self.expression = expression
        self.inside_async_boundary = inside_async_boundary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "callee": self.callee.qualname,
            "caller": self.caller.qualname if self.caller else None,
            "file": self.file_path,
            "line": self.line,
            "col": self.col,
            "kind": self.kind,
            "expression": self.expression,
            "inside_async_boundary": self.inside_async_boundary,
        }

    def __repr__(self) -> str:
        caller = self.caller.qualname if self.caller else None
        return (
            f"CallSite(callee='{self.callee.qualname}', caller='{caller}', "
            f"line={self.line}, async_boundary={self.inside_async_boundary})"
        )


class CandidateResult:
    """Search result for one target candidate."""

    def __init__(
        self, target: Routine, outcome: str, paths: Optional[List[Path]] = None
    ):
        self.target = target
        self.outcome = outcome
        self.paths: List[Path] = list(paths or [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "outcome": self.outcome,
            "path_count": len(self.paths),
            "paths": [list(path) for path in self.paths],
        }

    def __repr__(self) -> str:
        return f"CandidateResult(target='{self.target.qualname}', outcome='{self.outcome}', paths={len(self.paths)})"


class SearchReport:
    """Result of one detector invocation: a start routine and a target name."""

    def __init__(
        self,
        start: Optional[Routine],
        target_name: Optional[str],
        outcome: str,
        candidates: Optional[List[CandidateResult]] = None,
        elapsed: float = 0.0,
    ):
        self.start = start
        self.target_name = target_name
        self.outcome = outcome
        self.candidates: List[CandidateResult] = list(candidates or [])
        self.elapsed = elapsed

    @property
    def is_precondition_failure(self) -> bool:
        return self.outcome in SearchOutcome.PRECONDITIONS

    def all_paths(self) -> List[Path]:
        """All discovered paths, candidate by candidate."""
        paths: List[Path] = []
        for candidate in self.candidates:
            paths.extend(candidate.paths)
        return paths

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.to_dict() if self.start else None,
            "target_name": self.target_name,
            "outcome": self.outcome,
            "elapsed": round(self.elapsed, 4),
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "summary": {
                "candidate_count": len(self.candidates),
                "path_count": len(self.all_paths()),
            },
        }

    def __repr__(self) -> str:
        return f"SearchReport(target_name='{self.target_name}', outcome='{self.outcome}', candidates={len(self.candidates)})"
