"""
callpath Command Line Interface Package

This package contains the command line interface implementation for callpath.
Correct usage involves importing specific modules rather than executing the package directly.
"""

# 预导入以避免循环导入和导入顺序问题
from callpath.cli.file_utils import list_target_files, gather_target_files
from callpath.cli.config_utils import load_configuration, save_output

from callpath.cli.enhanced import main, enhanced_cli_main

__all__ = [
    "main",
    "enhanced_cli_main",
    "list_target_files",
    "gather_target_files",
    "load_configuration",
    "save_output",
]
