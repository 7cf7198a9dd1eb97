"""
Console formatter for callpath output.

Formats search reports for terminal display with color highlighting.
"""

import sys
from typing import Any, Dict, List

from colorama import Fore, Style, init

from callpath.models import CandidateResult, SearchOutcome, SearchReport
from callpath.output.formatter import OutputFormatter

# Initialize colorama
init()

# (message template, color key) per outcome
OUTCOME_MESSAGES: Dict[str, tuple] = {
    SearchOutcome.EMPTY_START: ("Method is empty", "error"),
    SearchOutcome.NO_TARGET_NAME: ("Method name not provided", "warning"),
    SearchOutcome.TARGET_NOT_FOUND: ("Method {target} not found", "error"),
    SearchOutcome.TARGET_HAS_NO_BODY: ("Method {target} has no body", "warning"),
    SearchOutcome.TARGET_IS_START: ("Method {target} is the start method", "warning"),
    SearchOutcome.NO_PATH_FOUND: ("No call path to {target} found", "info"),
    SearchOutcome.CANCELED: ("Search canceled", "warning"),
}


class ConsoleFormatter(OutputFormatter):
    """
    Formats search reports for terminal display.

    Every discovered path is printed as ``Call path: a -> b -> c``, grouped
    per target candidate.
    """

    def __init__(self, use_color: bool = True):
        """
        Initialize the console formatter.

        Args:
            use_color: Whether to use colored output (default: True)
        """
        super().__init__()
        self.use_color = use_color

        self.colors: Dict[str, str] = {
            "path": Fore.GREEN,
            "error": Fore.RED,
            "warning": Fore.YELLOW,
            "info": Fore.BLUE,
            "header": Fore.CYAN,
            "reset": Style.RESET_ALL,
            "bold": Style.BRIGHT,
        }

        # Disable colors if requested or if not in a TTY (e.g., when piping to a file)
        if not use_color or not sys.stdout.isatty():
            self.use_color = False
            for key in self.colors:
                self.colors[key] = ""

    def format_results(self, report: SearchReport, **kwargs: Any) -> str:
        """
        Format a report for console output.

        Args:
            report: The call path search report.
            **kwargs: Additional arguments:
                - show_summary: Whether to include the summary footer (default: True).
                - show_locations: Whether to show the file and line of each candidate (default: True).

        Returns:
            Formatted string with the search results.
        """
        show_summary = kwargs.get("show_summary", True)
        show_locations = kwargs.get("show_locations", True)

        if report.is_precondition_failure or not report.candidates:
            return self.format_outcome(report.outcome, report.target_name)

        output_lines: List[str] = []
        start = report.start.qualname if report.start else "?"
        output_lines.append(
            self._color(f"Call paths from {start} to {report.target_name}", "header", bold=True)
        )
        output_lines.append("-" * 80)

        for candidate in report.candidates:
            output_lines.extend(self._format_candidate(candidate, show_locations))

        if show_summary:
            path_count = len(report.all_paths())
            output_lines.append("")
            output_lines.append(
                f"{path_count} call path{'' if path_count == 1 else 's'} found "
                f"across {len(report.candidates)} candidate"
                f"{'' if len(report.candidates) == 1 else 's'} "
                f"in {report.elapsed:.2f} seconds."
            )
        return "\n".join(output_lines)

    def format_outcome(self, outcome: str, target_name: Any = None) -> str:
        """Message for an outcome, in the wording of the interactive dialogs."""
        template, color_key = OUTCOME_MESSAGES.get(outcome, (outcome, "info"))
        return self._color(template.format(target=target_name), color_key, bold=True)

    def _format_candidate(self, candidate: CandidateResult, show_locations: bool) -> List[str]:
        target = candidate.target
        header = target.full_name
        if show_locations:
            header += f" ({target.file_path}:{target.line_no})"

        lines = ["", self._color(header, "header", bold=True)]
        if candidate.outcome == SearchOutcome.PATHS_FOUND:
            for path in candidate.paths:
                lines.append("  Call path: " + self._color(" -> ".join(path), "path"))
        else:
            lines.append("  " + self.format_outcome(candidate.outcome, target.qualname))
        return lines

    def _color(self, text: str, color_key: str, bold: bool = False) -> str:
        if not self.use_color:
            return text

        color_code = self.colors.get(color_key, "")
        bold_style = self.colors.get("bold", "") if bold else ""
        reset_code = self.colors.get("reset", "")
        return f"{color_code}{bold_style}{text}{reset_code}"


def format_for_console(report: SearchReport, use_color: bool = True, **kwargs: Any) -> str:
    """
    Convenience function to format a report for console output.

    Args:
        report: The call path search report.
        use_color: Whether to use colored output.
        **kwargs: Additional arguments to pass to ConsoleFormatter.format_results.

    Returns:
        Formatted string with the results.
    """
    return ConsoleFormatter(use_color=use_color).format_results(report, **kwargs)
