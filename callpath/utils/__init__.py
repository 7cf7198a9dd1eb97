"""
工具函数包，提供 callpath 所需的通用工具函数。
"""

# 文件实用工具
from callpath.utils.fs_utils import (
    ensure_directory_exists,
    get_python_files_in_directory,
    get_relative_path,
    is_python_file,
)
from callpath.utils.decorators import timing_decorator

__all__ = [
    # 文件实用工具
    "is_python_file",
    "get_python_files_in_directory",
    "ensure_directory_exists",
    "get_relative_path",
    # 装饰器
    "timing_decorator",
]
