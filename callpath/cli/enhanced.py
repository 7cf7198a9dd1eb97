#!/usr/bin/env python3
"""
callpath CLI module.

Provides the command-line interface for finding call paths between two
routines of a Python codebase.
"""

import argparse
import sys
import traceback
from typing import List, Optional

from callpath.cli.analysis_utils import (
    build_index_with_status,
    print_routines,
    print_summary,
    prompt_for_target,
    run_search_with_status,
)
from callpath.cli.config_utils import load_configuration, save_output
from callpath.cli.file_utils import list_target_files
from callpath.logger import LogTee, get_timestamp, setup_application_logging
from callpath.models import SearchOutcome
from callpath.output import ConsoleFormatter, JSONFormatter

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELED = 130

# Outcomes of a search that ran to completion
COMPLETED_OUTCOMES = (SearchOutcome.PATHS_FOUND, SearchOutcome.NO_PATH_FOUND)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--target",
        required=True,
        help="Target file or directory to analyze",
    )
    parser.add_argument(
        "--config",
        help="Path to configuration file (JSON or YAML)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--log-file",
        help="Path to log file for debug and analysis output",
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser.

    Returns:
        argparse.ArgumentParser: The argument parser
    """
    parser = argparse.ArgumentParser(
        prog="callpath",
        description="callpath - find call paths between routines of a Python codebase",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    find_parser = subparsers.add_parser(
        "find", help="Find all call paths from a start routine to a target routine"
    )
    _add_common_arguments(find_parser)
    find_parser.add_argument(
        "--start",
        required=True,
        help="Start routine: path.py:Class.method, module.func, Class.method or name",
    )
    find_parser.add_argument(
        "--method",
        help="Name of the target routine (prompted for when omitted)",
    )
    find_parser.add_argument("--output", help="Path to output file (JSON)")
    find_parser.add_argument(
        "--format",
        choices=["console", "json"],
        default="console",
        help="Output format on stdout (default: console)",
    )
    find_parser.add_argument(
        "--pretty", action="store_true", help="Pretty-print JSON output"
    )
    find_parser.add_argument(
        "--no-color", action="store_true", help="Disable colored console output"
    )
    find_parser.add_argument(
        "--timeout",
        type=float,
        help="Cancel the search after this many seconds",
    )

    routines_parser = subparsers.add_parser("routines", help="List indexed routines")
    _add_common_arguments(routines_parser)
    routines_parser.add_argument("--name", help="Only list routines matching this name")

    files_parser = subparsers.add_parser(
        "list-files", help="List all Python files that would be analyzed"
    )
    files_parser.add_argument(
        "--target",
        required=True,
        help="Target file or directory to analyze",
    )
    files_parser.add_argument(
        "--config",
        help="Path to configuration file (JSON or YAML)",
    )

    mcp_parser = subparsers.add_parser("mcp", help="MCP服务器命令")
    mcp_subparsers = mcp_parser.add_subparsers(dest="mcp_command", help="MCP命令")
    run_parser = mcp_subparsers.add_parser("run", help="启动MCP服务器")
    run_parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="主机地址 (默认: 127.0.0.1)",
    )
    run_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="端口号 (默认: 8000)",
    )
    run_parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "http"],
        default="stdio",
        help="传输协议 (默认: stdio)",
    )
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="启用调试模式",
    )

    return parser


def enhanced_cli_main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the callpath CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "mcp":
        return run_mcp_server(args)
    if args.command == "list-files":
        config = load_configuration(args.config)
        list_target_files(args.target, config["exclude_dirs"])
        return EXIT_OK
    if args.command in ("find", "routines"):
        return run_with_logging(args)

    parser.print_help()
    return EXIT_OK


def run_mcp_server(args) -> int:
    """Start the MCP server, if its optional dependencies are installed."""
    try:
        from callpath.mcp.server import create_mcp_server
    except ImportError as e:
        print("错误: MCP 服务器依赖未安装。")
        print("请使用以下命令安装: pip install callpath[mcp]")
        if getattr(args, "debug", False):
            print(f"详细错误: {str(e)}")
        return EXIT_ERROR

    if getattr(args, "mcp_command", None) != "run":
        print("用法: callpath mcp run [--host HOST] [--port PORT] [--transport stdio|sse|http]")
        return EXIT_ERROR

    server = create_mcp_server(debug=args.debug)
    if args.transport == "stdio":
        server.run(transport="stdio")
    else:
        print(f"启动服务器: {args.host}:{args.port}")
        server.run(transport=args.transport, host=args.host, port=args.port)
    return EXIT_OK


def run_with_logging(args) -> int:
    """
    Run ``find`` or ``routines`` with optional output teeing to a log file.

    Args:
        args: Command line arguments

    Returns:
        Exit code
    """
    setup_application_logging(
        log_file=args.log_file, verbose=args.verbose, debug=args.debug
    )

    log_file = None
    original_stdout = sys.stdout
    original_stderr = sys.stderr

    if args.log_file:
        try:
            log_file = open(args.log_file, "a", encoding="utf-8")
            sys.stdout = LogTee(sys.stdout, log_file)
            sys.stderr = LogTee(sys.stderr, log_file)
            print(f"[Log] Time: {get_timestamp()}", file=sys.stderr)
        except OSError as e:
            print(f"[Error] Failed to open log file {args.log_file}: {e}", file=sys.stderr)
            sys.stdout = original_stdout
            sys.stderr = original_stderr

    try:
        if args.debug:
            print(f"[Args] Target: {args.target}", file=sys.stderr)
            print(f"[Args] Config: {args.config}", file=sys.stderr)

        config = load_configuration(args.config, args.debug)
        index = build_index_with_status(
            args.target, config, verbose=args.verbose, debug=args.debug
        )

        if args.command == "routines":
            routines = index.find_routines(args.name) if args.name else list(index.routines)
            print_routines(routines)
            return EXIT_OK
        return run_find(args, index, config)

    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error during analysis: {e}", file=sys.stderr)
        return EXIT_ERROR

    finally:
        if log_file:
            sys.stdout = original_stdout
            sys.stderr = original_stderr
            log_file.close()


def run_find(args, index, config) -> int:
    """Resolve the start routine, run the search and print the report."""
    starts = index.find_routines(args.start)
    if not starts:
        print(f"Start routine {args.start} not found", file=sys.stderr)
        return EXIT_ERROR
    if len(starts) > 1:
        print(f"Start routine {args.start} is ambiguous, candidates:", file=sys.stderr)
        for routine in starts:
            print(f"  {routine.file_path}:{routine.qualname}", file=sys.stderr)
        return EXIT_ERROR
    start = starts[0]

    target_name = args.method if args.method is not None else prompt_for_target()
    report = run_search_with_status(index, start, target_name, config, timeout=args.timeout)

    if args.output:
        save_output(report, args.output, args.pretty, args.debug)

    if args.format == "json":
        JSONFormatter().write_results(
            report, pretty=args.pretty, index_summary=index.get_summary()
        )
    else:
        ConsoleFormatter(use_color=not args.no_color).write_results(report)
        if args.verbose:
            print_summary(report)

    if report.outcome == SearchOutcome.CANCELED:
        return EXIT_CANCELED
    if report.outcome in COMPLETED_OUTCOMES:
        return EXIT_OK
    return EXIT_ERROR


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command-line arguments

    Returns:
        Exit code
    """
    return enhanced_cli_main(args)


if __name__ == "__main__":
    sys.exit(main())
