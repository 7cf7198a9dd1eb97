"""
Call path detector: runs one search per target candidate and folds the
results into a :class:`~callpath.models.SearchReport`.

Refusals such as an empty start routine or an unknown target name are
reported as outcomes, never raised.
"""

import time
from typing import Any, Dict, List, Optional

from callpath.analysis.index import CodeIndex
from callpath.analysis.path_search import (
    CancellationToken,
    PathFinder,
    ProgressCallback,
    SearchCanceled,
)
from callpath.config import merge_configuration
from callpath.logger import conditional_log, debug, get_logger, info, warning
from callpath.models import CandidateResult, Routine, SearchOutcome, SearchReport

logger = get_logger("callpath.analysis.detector")


class CallPathDetector:
    """
    Find call paths from a start routine to every routine named like the target.

    Args:
        index: The code index to search
        config: Partial configuration; defaults to the index configuration
    """

    def __init__(self, index: CodeIndex, config: Optional[Dict[str, Any]] = None):
        self.index = index
        self.config = merge_configuration(config) if config is not None else index.config

    @conditional_log("target_name", "Searching call paths to '{param}'")
    def detect(
        self,
        start: Optional[Routine],
        target_name: Optional[str],
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> SearchReport:
        began = time.monotonic()

        def report(outcome: str, candidates: Optional[List[CandidateResult]] = None) -> SearchReport:
            return SearchReport(
                start, target_name, outcome, candidates, time.monotonic() - began
            )

        if start is None or not start.has_body:
            warning(f"Start routine {start.qualname if start else None} has no body")
            return report(SearchOutcome.EMPTY_START)

        if target_name is None or not target_name.strip():
            warning("No target routine name provided")
            return report(SearchOutcome.NO_TARGET_NAME)

        target_name = target_name.strip()
        candidates = self.index.resolve_routines_by_name(target_name)
        if not candidates:
            warning(f"Target routine '{target_name}' not found")
            return report(SearchOutcome.TARGET_NOT_FOUND)

        if self.config["target_without_body"] == "abort":
            for candidate in candidates:
                if candidate != start and not candidate.has_body:
                    warning(
                        f"Target candidate {candidate.qualname} has no body, aborting search"
                    )
                    return report(SearchOutcome.TARGET_HAS_NO_BODY)

        if cancellation is None and self.config.get("timeout"):
            cancellation = CancellationToken(self.config["timeout"])

        results: List[CandidateResult] = []
        try:
            for candidate in candidates:
                if candidate == start:
                    debug(f"Candidate {candidate.qualname} is the start routine")
                    results.append(CandidateResult(candidate, SearchOutcome.TARGET_IS_START))
                    continue

                if not candidate.has_body:
                    info(f"Skipping target candidate {candidate.qualname}: no body")
                    results.append(CandidateResult(candidate, SearchOutcome.TARGET_HAS_NO_BODY))
                    continue

                finder = PathFinder(
                    self.index,
                    start,
                    cancellation=cancellation,
                    progress=progress,
                    boundary_policy=self.config["async_boundary_policy"],
                )
                paths = finder.find_call_paths(candidate)
                outcome = SearchOutcome.PATHS_FOUND if paths else SearchOutcome.NO_PATH_FOUND
                results.append(CandidateResult(candidate, outcome, paths))
        except SearchCanceled:
            warning("Call path search canceled, discarding partial results")
            return report(SearchOutcome.CANCELED)

        if any(result.outcome == SearchOutcome.PATHS_FOUND for result in results):
            overall = SearchOutcome.PATHS_FOUND
        elif results and all(
            result.outcome == SearchOutcome.TARGET_HAS_NO_BODY for result in results
        ):
            overall = SearchOutcome.TARGET_HAS_NO_BODY
        elif results and all(
            result.outcome == SearchOutcome.TARGET_IS_START for result in results
        ):
            overall = SearchOutcome.TARGET_IS_START
        else:
            overall = SearchOutcome.NO_PATH_FOUND
        return report(overall, results)
