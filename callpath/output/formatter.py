"""
Base formatter for callpath output.

Every formatter turns one :class:`~callpath.models.SearchReport` into text.
Writing that text to stdout or a file is shared here.
"""

import abc
import os
import sys
from typing import Any, Optional

from callpath.models import SearchReport
from callpath.utils.fs_utils import ensure_directory_exists


class OutputFormatter(abc.ABC):
    """Base class for report formatters."""

    @abc.abstractmethod
    def format_results(self, report: SearchReport, **kwargs: Any) -> str:
        """
        Render a search report.

        Args:
            report: The call path search report.
            **kwargs: Formatter-specific options.
        """

    def write_results(
        self,
        report: SearchReport,
        output_file: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Render ``report`` and write it, newline-terminated.

        Args:
            report: The call path search report.
            output_file: Destination file; stdout when None. Missing parent
                directories are created.
            **kwargs: Passed on to :meth:`format_results`.
        """
        text = self.format_results(report, **kwargs) + "\n"
        if not output_file:
            sys.stdout.write(text)
            sys.stdout.flush()
            return

        ensure_directory_exists(os.path.dirname(os.path.abspath(output_file)))
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(text)
