"""
MCP request handlers for callpath.

This module implements the handlers for MCP requests to callpath.
"""

import logging
import os
from typing import Any, Dict, Optional

from callpath.__version__ import __version__
from callpath.analysis.detector import CallPathDetector
from callpath.analysis.index import CodeIndex
from callpath.analysis.path_search import CancellationToken
from callpath.cli.config_utils import load_configuration
from callpath.config import merge_configuration
from callpath.mcp.models import (
    CallPathCandidate,
    FindCallPathsRequest,
    FindCallPathsResponse,
    ListRoutinesRequest,
    ListRoutinesResponse,
    ServerInfoResponse,
)
from callpath.models import SearchOutcome
from callpath.output.console_formatter import ConsoleFormatter

logger = logging.getLogger(__name__)


class CallPathMCPHandler:
    """Handles MCP protocol requests for callpath."""

    def __init__(self, debug: bool = False):
        """
        Initialize the MCP handler.

        Args:
            debug: Whether to enable debug output
        """
        self.debug = debug
        self.version = __version__
        self._messages = ConsoleFormatter(use_color=False)

    async def get_server_info(self) -> ServerInfoResponse:
        """
        Get information about the MCP server.

        Returns:
            ServerInfoResponse: Information about the server
        """
        return ServerInfoResponse(
            version=self.version,
            capabilities=["find_call_paths", "list_routines"],
        )

    async def find_call_paths(self, request: FindCallPathsRequest) -> FindCallPathsResponse:
        """
        Handle a call path search request.

        Args:
            request: The search request

        Returns:
            FindCallPathsResponse: The search response
        """
        try:
            config = self._resolve_config(request.config, request.config_path)
            index = self._build_index(request.target_path, request.sources, config)
        except (OSError, ValueError) as e:
            logger.exception("Error preparing call path search")
            return FindCallPathsResponse(success=False, errors=[str(e)])

        starts = index.find_routines(request.start)
        if len(starts) != 1:
            problem = "not found" if not starts else "is ambiguous"
            return FindCallPathsResponse(
                success=False,
                errors=[f"Start routine {request.start} {problem}"],
                summary={"start_candidates": [r.to_dict() for r in starts]},
            )

        cancellation = CancellationToken(request.timeout) if request.timeout else None
        report = CallPathDetector(index, config).detect(
            starts[0], request.method, cancellation=cancellation
        )

        return FindCallPathsResponse(
            success=report.outcome in (SearchOutcome.PATHS_FOUND, SearchOutcome.NO_PATH_FOUND),
            outcome=report.outcome,
            message=self._messages.format_outcome(report.outcome, report.target_name)
            if not report.all_paths()
            else f"{len(report.all_paths())} call paths found",
            candidates=[
                CallPathCandidate(
                    target=candidate.target.to_dict(),
                    outcome=candidate.outcome,
                    paths=[list(path) for path in candidate.paths],
                )
                for candidate in report.candidates
            ],
            summary={
                "index": index.get_summary(),
                "elapsed": round(report.elapsed, 4),
                "path_count": len(report.all_paths()),
            },
        )

    async def list_routines(self, request: ListRoutinesRequest) -> ListRoutinesResponse:
        """
        Handle a request to list indexed routines.

        Args:
            request: The listing request

        Returns:
            ListRoutinesResponse: The indexed routines
        """
        try:
            config = self._resolve_config(None, request.config_path)
            index = self._build_index(request.target_path, request.sources, config)
        except (OSError, ValueError) as e:
            logger.exception("Error listing routines")
            return ListRoutinesResponse(success=False, errors=[str(e)])

        routines = index.find_routines(request.name) if request.name else index.routines
        return ListRoutinesResponse(
            success=True, routines=[routine.to_dict() for routine in routines]
        )

    def _resolve_config(
        self, config: Optional[Dict[str, Any]], config_path: Optional[str]
    ) -> Dict[str, Any]:
        if config is not None:
            return merge_configuration(config)
        return load_configuration(config_path, self.debug)

    def _build_index(
        self,
        target_path: Optional[str],
        sources: Optional[Dict[str, str]],
        config: Dict[str, Any],
    ) -> CodeIndex:
        if sources:
            return CodeIndex.from_sources(sources, config)
        if not target_path:
            raise ValueError("Either target_path or sources must be provided")
        if not os.path.exists(target_path):
            raise FileNotFoundError(f"Target path not found: {target_path}")
        return CodeIndex.build(target_path, config)
