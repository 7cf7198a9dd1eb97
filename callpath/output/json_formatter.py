"""
JSON formatter for callpath output.
"""

import datetime
import json
from typing import Any, Dict

from callpath.logger import debug
from callpath.models import SearchReport
from callpath.output.formatter import OutputFormatter


class JSONFormatter(OutputFormatter):
    """Formats search reports as JSON."""

    def format_results(self, report: SearchReport, **kwargs: Any) -> str:
        """
        Format a report as JSON.

        Args:
            report: The call path search report
            **kwargs: Additional options, including:
                - pretty: Whether to pretty-print the JSON (default: False)
                - include_timestamp: Whether to include timestamp (default: True)
                - index_summary: Summary of the code index to embed (default: None)

        Returns:
            JSON string
        """
        pretty = kwargs.get("pretty", False)
        include_timestamp = kwargs.get("include_timestamp", True)
        index_summary = kwargs.get("index_summary")

        result: Dict[str, Any] = report.to_dict()
        if include_timestamp:
            result["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
        if index_summary:
            result["index"] = index_summary

        debug(f"Formatted report with {len(report.candidates)} candidates as JSON")
        if pretty:
            return json.dumps(result, indent=2, ensure_ascii=False)
        return json.dumps(result, ensure_ascii=False)


def format_as_json(report: SearchReport, **kwargs: Any) -> str:
    """
    Convenience function to format a report as JSON.

    Args:
        report: The call path search report
        **kwargs: Additional options to pass to JSONFormatter.format_results

    Returns:
        JSON string
    """
    return JSONFormatter().format_results(report, **kwargs)
