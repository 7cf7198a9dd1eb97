"""
MCP data models for callpath.

This module defines the Pydantic models used for MCP requests and responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FindCallPathsRequest(BaseModel):
    """Request model for a call path search."""

    start: str = Field(
        ...,
        description="Start routine: path.py:Class.method, module.func, Class.method or name",
    )
    method: Optional[str] = Field(None, description="Name of the target routine")
    target_path: Optional[str] = Field(
        None, description="Local file or directory to index"
    )
    sources: Optional[Dict[str, str]] = Field(
        None, description="In-memory sources keyed by relative path (alternative to target_path)"
    )
    config_path: Optional[str] = Field(
        None, description="Path to a JSON or YAML configuration file"
    )
    config: Optional[Dict[str, Any]] = Field(
        None, description="Configuration data (overrides config_path)"
    )
    timeout: Optional[float] = Field(
        None, description="Cancel the search after this many seconds"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "start": "app/service.py:Service.handle",
                "method": "save",
                "target_path": "/path/to/project",
            }
        }
    }


class CallPathCandidate(BaseModel):
    """Search result for one routine matching the target name."""

    target: Dict[str, Any] = Field(..., description="The target routine")
    outcome: str = Field(..., description="Outcome of the search for this candidate")
    paths: List[List[str]] = Field(
        default_factory=list, description="Discovered call paths, start first"
    )


class FindCallPathsResponse(BaseModel):
    """Response model for a call path search."""

    success: bool = Field(..., description="Whether the search ran to completion")
    outcome: Optional[str] = Field(None, description="Overall search outcome")
    message: str = Field("", description="Human readable outcome")
    candidates: List[CallPathCandidate] = Field(
        default_factory=list, description="Results per target candidate"
    )
    errors: List[str] = Field(
        default_factory=list, description="List of errors encountered during the search"
    )
    summary: Dict[str, Any] = Field(
        default_factory=dict, description="Summary of the index and the search"
    )


class ListRoutinesRequest(BaseModel):
    """Request model for listing indexed routines."""

    target_path: Optional[str] = Field(
        None, description="Local file or directory to index"
    )
    sources: Optional[Dict[str, str]] = Field(
        None, description="In-memory sources keyed by relative path"
    )
    name: Optional[str] = Field(None, description="Only list routines matching this name")
    config_path: Optional[str] = Field(
        None, description="Path to a JSON or YAML configuration file"
    )


class ListRoutinesResponse(BaseModel):
    """Response model for listing indexed routines."""

    success: bool = Field(..., description="Whether the operation was successful")
    routines: List[Dict[str, Any]] = Field(
        default_factory=list, description="Indexed routines"
    )
    errors: List[str] = Field(
        default_factory=list, description="List of error messages"
    )


class ServerInfoResponse(BaseModel):
    """Response model for server information."""

    name: str = Field("callpath MCP Server", description="The name of the server")
    version: str = Field(..., description="The server version")
    description: str = Field(
        "MCP server for callpath static call path search",
        description="The server description",
    )
    capabilities: List[str] = Field(
        default_factory=list, description="List of server capabilities"
    )
