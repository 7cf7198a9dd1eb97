#!/usr/bin/env python
"""
MCP server command-line entry point, implemented using FastMCP.
Provides Model Context Protocol (MCP) functionality for callpath.
"""

import logging
import sys
from typing import Any, Dict, Optional

import click

try:
    from fastmcp import Context, FastMCP
except ImportError:
    raise ImportError(
        "FastMCP dependency not found. "
        "Please install with `pip install callpath[mcp]` "
        "or `pip install fastmcp`"
    )

from callpath.__version__ import __version__
from callpath.mcp.handlers import CallPathMCPHandler
from callpath.mcp.models import FindCallPathsRequest, ListRoutinesRequest


def create_mcp_server(debug: bool = False) -> FastMCP:
    """
    Create FastMCP server instance.

    Args:
        debug: Whether to enable debug mode.

    Returns:
        FastMCP: Server instance.
    """
    # Logs go to stderr; stdout carries the stdio transport
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    mcp_instance = FastMCP(
        "callpath",
        instructions=(
            "Static call path search for Python codebases: finds every acyclic "
            "call chain from a start routine to routines with a given name."
        ),
    )
    handler = CallPathMCPHandler(debug=debug)

    @mcp_instance.tool()
    async def find_call_paths(
        start: str,
        method: str,
        target_path: Optional[str] = None,
        sources: Optional[Dict[str, str]] = None,
        config_path: Optional[str] = None,
        timeout: Optional[float] = None,
        ctx: Optional[Context] = None,
    ) -> Dict[str, Any]:
        """
        Find all call paths from a start routine to routines named ``method``.

        Args:
            start: Start routine (path.py:Class.method, module.func, Class.method or name).
            method: Name of the target routine.
            target_path: Local file or directory to index.
            sources: In-memory sources keyed by relative path, instead of target_path.
            config_path: Optional JSON or YAML configuration file.
            timeout: Cancel the search after this many seconds.
            ctx: MCP context.

        Returns:
            Search results grouped per target candidate.
        """
        if ctx:
            await ctx.info(f"Searching call paths from {start} to {method}")

        result = await handler.find_call_paths(
            FindCallPathsRequest(
                start=start,
                method=method,
                target_path=target_path,
                sources=sources,
                config_path=config_path,
                timeout=timeout,
            )
        )
        if ctx and result.errors:
            await ctx.error("; ".join(result.errors))
        return result.model_dump()

    @mcp_instance.tool()
    async def list_routines(
        target_path: Optional[str] = None,
        sources: Optional[Dict[str, str]] = None,
        name: Optional[str] = None,
        config_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        List the routines of a codebase, optionally filtered by name.

        Args:
            target_path: Local file or directory to index.
            sources: In-memory sources keyed by relative path, instead of target_path.
            name: Only list routines matching this name.
            config_path: Optional JSON or YAML configuration file.

        Returns:
            The indexed routines.
        """
        result = await handler.list_routines(
            ListRoutinesRequest(
                target_path=target_path,
                sources=sources,
                name=name,
                config_path=config_path,
            )
        )
        return result.model_dump()

    @mcp_instance.tool()
    async def get_server_info() -> Dict[str, Any]:
        """Get the server name, version and capabilities."""
        return (await handler.get_server_info()).model_dump()

    return mcp_instance


@click.group()
def cli():
    """callpath MCP server commands."""


@cli.command()
@click.option("--debug", is_flag=True, help="Enable debug mode.")
@click.option("--host", default="127.0.0.1", help="Host address.")
@click.option("--port", default=8000, type=int, help="Port number.")
@click.option(
    "--transport",
    default="stdio",
    type=click.Choice(["stdio", "sse", "http"]),
    help="Transport protocol to use.",
)
def run(debug, host, port, transport):
    """Start the MCP server."""
    click.echo(f"Starting callpath MCP server v{__version__} ({transport})", err=True)
    server = create_mcp_server(debug=debug)
    if transport == "stdio":
        server.run(transport="stdio")
    else:
        click.echo(f"Server Address: http://{host}:{port}", err=True)
        server.run(transport=transport, host=host, port=port)


if __name__ == "__main__":
    cli()
