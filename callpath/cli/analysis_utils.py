"""
Analysis Utilities Module - Index building, search execution and summaries for the CLI.
"""

import datetime
import signal
import sys
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from rich.console import Console

from callpath.analysis.detector import CallPathDetector
from callpath.analysis.index import CodeIndex
from callpath.analysis.path_search import CancellationToken
from callpath.models import Routine, SearchReport
from callpath.utils.decorators import timing_decorator

# Status spinners go to stderr so stdout stays clean for results
status_console = Console(stderr=True)

# Progress messages are refreshed every N expanded routines
PROGRESS_INTERVAL = 50


@timing_decorator
def build_index_with_status(
    target: str, config: Dict[str, Any], verbose: bool = False, debug: bool = False
) -> CodeIndex:
    """Build the code index while showing a status spinner."""
    with status_console.status(f"Indexing {target} ..."):
        index = CodeIndex.build(target, config)

    summary = index.get_summary()
    if not (verbose or debug):
        return index

    print(f"[Index] Finished at: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", file=sys.stderr)
    print(
        f"[Index] {summary['files']} files, {summary['routines']} routines, "
        f"{summary['call_sites']} call sites",
        file=sys.stderr,
    )
    if summary["skipped_files"]:
        print(f"[Index] Skipped {len(summary['skipped_files'])} unparseable files:", file=sys.stderr)
        for file_path in summary["skipped_files"]:
            print(f"  - {file_path}", file=sys.stderr)
    if debug:
        print(f"[Index] Routines without body: {summary['routines_without_body']}", file=sys.stderr)
        print(f"[Index] Call sites inside async boundaries: {summary['async_boundary_call_sites']}", file=sys.stderr)
    return index


@contextmanager
def cancel_on_interrupt(token: CancellationToken):
    """Turn Ctrl-C into a cooperative cancellation of ``token``."""

    def handler(signum, frame):
        token.cancel()

    try:
        previous = signal.signal(signal.SIGINT, handler)
    except ValueError:
        # Not in the main thread; signals cannot be installed
        yield token
        return
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


def run_search_with_status(
    index: CodeIndex,
    start: Routine,
    target_name: Optional[str],
    config: Dict[str, Any],
    timeout: Optional[float] = None,
) -> SearchReport:
    """Run the detector with a live status line and Ctrl-C cancellation."""
    detector = CallPathDetector(index, config)
    token = CancellationToken(timeout if timeout is not None else config.get("timeout"))

    with cancel_on_interrupt(token), status_console.status(
        f"Searching call paths from {start.qualname} to {target_name} ..."
    ) as status:

        def progress(count: int, routine: Routine) -> None:
            if count % PROGRESS_INTERVAL == 0:
                status.update(f"Searching call paths ... {count} routines expanded ({routine.qualname})")

        return detector.detect(start, target_name, cancellation=token, progress=progress)


def prompt_for_target() -> Optional[str]:
    """Ask for the target routine name on stdin."""
    try:
        return input("Method to find call path to: ")
    except EOFError:
        return None


def print_routines(routines: List[Routine], show_location: bool = True) -> None:
    """Print indexed routines, one per line."""
    print("\n" + "=" * 60)
    print(f"ROUTINES ({len(routines)})")
    print("-" * 60)
    for routine in routines:
        marker = "" if routine.has_body else "  [no body]"
        if show_location:
            print(f"  {routine.full_name}  ({routine.file_path}:{routine.line_no}){marker}")
        else:
            print(f"  {routine.full_name}{marker}")
    print("=" * 60)


def print_summary(report: SearchReport) -> None:
    """Print a short summary of a search report."""
    print("\n" + "=" * 60)
    print("CALL PATH SEARCH SUMMARY")
    print("-" * 60)
    print(f"Start: {report.start.full_name if report.start else None}")
    print(f"Target name: {report.target_name}")
    print(f"Outcome: {report.outcome}")
    print(f"Candidates: {len(report.candidates)}")
    for candidate in report.candidates:
        print(f"  {candidate.target.full_name}: {candidate.outcome} ({len(candidate.paths)} paths)")
    print(f"Paths found: {len(report.all_paths())}")
    print(f"Elapsed: {report.elapsed:.2f} seconds")
    print("=" * 60)
