#!/usr/bin/env python

"""
Console script entry point (``callpath``).
"""

import sys
import traceback
from typing import List, Optional

from callpath.cli.enhanced import EXIT_CANCELED, EXIT_ERROR, enhanced_cli_main
from callpath.logger import error, setup_application_logging


def run_callpath(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and map unexpected failures to an exit code."""
    argv = sys.argv[1:] if argv is None else argv
    # 命令执行前只输出警告，子命令会按 --verbose/--debug 重新配置
    setup_application_logging()

    try:
        return enhanced_cli_main(argv)
    except KeyboardInterrupt:
        # Ctrl-C while indexing; the search itself handles SIGINT
        print("Interrupted", file=sys.stderr)
        return EXIT_CANCELED
    except Exception as e:
        error(f"callpath failed: {type(e).__name__}: {e}")
        if "--debug" in argv:
            error(traceback.format_exc())
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(run_callpath())
