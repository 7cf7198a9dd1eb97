"""path_search.py
Backward depth-first enumeration of call paths from a target routine to a
start routine.

Each recursive step owns its own ``path`` tuple and ``visited`` frozenset,
so sibling branches never observe each other's state. A routine may
therefore appear in several discovered paths, but never twice in one.
"""

import sys
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Set, Tuple

from callpath.logger import debug, get_logger, log_paths
from callpath.models import Path, Routine

__all__ = [
    "BOUNDARY_POLICIES",
    "CancellationToken",
    "PathFinder",
    "SearchCanceled",
    "find_call_paths",
]

logger = get_logger("callpath.analysis.path_search")

# "sever_branch": the first call site inside an async boundary ends the
# expansion of the current routine; paths found through earlier call sites
# are kept. "skip_call_site": only the guarded call site is ignored.
BOUNDARY_POLICIES = ("sever_branch", "skip_call_site")

ProgressCallback = Callable[[int, Routine], None]
RoutineChain = Tuple[Routine, ...]

# Frames used per expanded routine, plus slack for the caller's own stack
_FRAMES_PER_LEVEL = 2
_RECURSION_SLACK = 1000


class SearchCanceled(Exception):
    """Raised inside the search when its cancellation token fires."""


class CancellationToken:
    """
    Cooperative cancellation flag, optionally with a deadline.

    Args:
        timeout: Seconds after which the token counts as cancelled
    """

    def __init__(self, timeout: Optional[float] = None):
        self._cancelled = False
        self.deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if not self._cancelled and self.deadline is not None:
            if time.monotonic() >= self.deadline:
                self._cancelled = True
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SearchCanceled("Call path search was canceled")


@contextmanager
def recursion_headroom(depth: int):
    """Temporarily raise the interpreter recursion limit for ``depth`` levels."""
    previous = sys.getrecursionlimit()
    required = depth * _FRAMES_PER_LEVEL + _RECURSION_SLACK
    if required > previous:
        sys.setrecursionlimit(required)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def path_element_names(chains: List[RoutineChain]) -> Dict[Routine, str]:
    """
    Name every routine of ``chains`` by its qualified name.

    Distinct routines sharing a qualified name (``helper`` in two modules)
    are named with their module instead, so their paths stay distinguishable.
    """
    by_qualname: Dict[str, Set[Routine]] = defaultdict(set)
    for chain in chains:
        for routine in chain:
            by_qualname[routine.qualname].add(routine)

    names: Dict[Routine, str] = {}
    for qualname, routines in by_qualname.items():
        for routine in routines:
            names[routine] = qualname if len(routines) == 1 else routine.full_name
    return names


class PathFinder:
    """
    Enumerate acyclic backward paths from a target to ``start``.

    Args:
        provider: Call site source exposing ``find_call_sites(routine)`` and
            ``routines`` (sizes the recursion limit), usually a
            :class:`~callpath.analysis.index.CodeIndex`
        start: The routine every path must begin with
        cancellation: Token polled at each expansion step
        progress: Called with (expanded routine count, current routine)
        boundary_policy: One of :data:`BOUNDARY_POLICIES`
    """

    def __init__(
        self,
        provider,
        start: Routine,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
        boundary_policy: str = "sever_branch",
    ):
        if boundary_policy not in BOUNDARY_POLICIES:
            raise ValueError(
                f"Unknown async boundary policy '{boundary_policy}', "
                f"expected one of {', '.join(BOUNDARY_POLICIES)}"
            )
        self.provider = provider
        self.start = start
        self.cancellation = cancellation
        self.progress = progress
        self.boundary_policy = boundary_policy
        self.expanded = 0

    @log_paths
    def find_call_paths(self, target: Routine) -> List[Path]:
        """
        All distinct call paths from ``start`` to ``target``.

        Each path lists routine names in start-to-target order, the target's
        own name excluded.

        Raises:
            SearchCanceled: If the cancellation token fires
        """
        self.expanded = 0
        with recursion_headroom(len(self.provider.routines) or 1):
            found = self._search(target, (), frozenset())

        # Identical chains can arise from repeated call sites
        chains: List[RoutineChain] = list(dict.fromkeys(found))
        names = path_element_names(chains)
        paths: List[Path] = [tuple(names[routine] for routine in chain) for chain in chains]
        debug(
            f"Search {self.start.qualname} -> {target.qualname}: "
            f"{self.expanded} routines expanded, {len(paths)} paths"
        )
        return paths

    def _search(
        self, current: Optional[Routine], path: RoutineChain, visited: frozenset
    ) -> List[RoutineChain]:
        if current is None or current in visited:
            return []
        if self.cancellation is not None:
            self.cancellation.raise_if_cancelled()

        visited = visited | {current}
        path = path + (current,)

        if current == self.start:
            # path[0] is the target itself
            return [tuple(reversed(path[1:]))]

        self.expanded += 1
        if self.progress is not None:
            self.progress(self.expanded, current)

        results: List[RoutineChain] = []
        for site in self.provider.find_call_sites(current):
            if site.inside_async_boundary:
                debug(
                    f"Async boundary at {site.file_path}:{site.line} "
                    f"({site.expression}) while expanding {current.qualname}"
                )
                if self.boundary_policy == "sever_branch":
                    break
                continue

            caller = site.caller
            if caller is None or caller in visited:
                continue
            results.extend(self._search(caller, path, visited))
        return results


def find_call_paths(
    provider,
    target: Routine,
    start: Routine,
    cancellation: Optional[CancellationToken] = None,
    progress: Optional[ProgressCallback] = None,
    boundary_policy: str = "sever_branch",
) -> List[Path]:
    """Convenience wrapper around :class:`PathFinder` for a single target."""
    finder = PathFinder(
        provider,
        start,
        cancellation=cancellation,
        progress=progress,
        boundary_policy=boundary_policy,
    )
    return finder.find_call_paths(target)
