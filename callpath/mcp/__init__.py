"""
Model Context Protocol (MCP) support for callpath.

The request handler and models only need pydantic; the FastMCP server lives
in ``callpath.mcp.server`` and is imported on demand.
"""

from callpath.mcp.handlers import CallPathMCPHandler
from callpath.mcp.models import (
    CallPathCandidate,
    FindCallPathsRequest,
    FindCallPathsResponse,
    ListRoutinesRequest,
    ListRoutinesResponse,
    ServerInfoResponse,
)

__all__ = [
    "CallPathMCPHandler",
    "CallPathCandidate",
    "FindCallPathsRequest",
    "FindCallPathsResponse",
    "ListRoutinesRequest",
    "ListRoutinesResponse",
    "ServerInfoResponse",
]
