"""
Call path analysis for callpath.

- `ast_parser` / `import_tracker` - parse modules, collect routines and imports
- `call_resolver` - resolve callee expressions to indexed routines
- `boundary` - thread and executor hand-off detection
- `index` - immutable code index of routines and call sites
- `path_search` - backward depth-first path enumeration
- `detector` - per-candidate search driver and outcomes
"""

from callpath.analysis.boundary import AsyncBoundaryDetector
from callpath.analysis.detector import CallPathDetector
from callpath.analysis.index import CodeIndex
from callpath.analysis.path_search import (
    CancellationToken,
    PathFinder,
    SearchCanceled,
    find_call_paths,
)

__all__ = [
    "AsyncBoundaryDetector",
    "CallPathDetector",
    "CancellationToken",
    "CodeIndex",
    "PathFinder",
    "SearchCanceled",
    "find_call_paths",
]
