"""
File Utilities Module - Lists and gathers the Python files a run would index.
"""

import os

from callpath.config import DEFAULT_CONFIG
from callpath.utils.fs_utils import get_python_files_in_directory


def gather_target_files(target_path, exclude_dirs=None):
    """Gather the Python files below a file or directory, sorted"""
    if not os.path.exists(target_path):
        raise FileNotFoundError(f"Target not found: {target_path}")
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_CONFIG["exclude_dirs"]
    return get_python_files_in_directory(target_path, exclude_dirs=exclude_dirs)


def list_target_files(target_path, exclude_dirs=None):
    """Print the Python files that would be indexed"""
    files = gather_target_files(target_path, exclude_dirs)
    print(f"[File List] {len(files)} Python files under {target_path}:")
    for idx, file_path in enumerate(files, 1):
        print(f"  {idx}. {file_path}")
    return files
