"""
Output module for callpath.

Formatters converting call path search reports into console text or JSON.
"""

from callpath.output.console_formatter import ConsoleFormatter, format_for_console
from callpath.output.formatter import OutputFormatter
from callpath.output.json_formatter import JSONFormatter, format_as_json


__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "format_as_json",
    "ConsoleFormatter",
    "format_for_console",
]
