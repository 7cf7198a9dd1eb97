"""
文件系统实用工具模块，负责收集待索引的 Python 源文件。

代码索引和 list-files 命令使用同一套规则，保证两者看到的文件完全一致。
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional

from callpath.config import DEFAULT_CONFIG


def is_python_file(file_path: str) -> bool:
    """
    检查文件是否为 Python 源文件（.py 扩展名，不区分大小写）。
    """
    return file_path.lower().endswith(".py")


def get_python_files_in_directory(
    directory: str, recursive: bool = True, exclude_dirs: Optional[Iterable[str]] = None
) -> List[str]:
    """
    收集目录（或单个文件）中的 Python 文件。

    Args:
        directory: 要搜索的目录，也可以是单个 .py 文件
        recursive: 是否进入子目录
        exclude_dirs: 不进入的目录名称，默认使用配置中的 exclude_dirs

    Returns:
        排序后的 Python 文件路径列表，顺序与文件系统遍历顺序无关
    """
    excluded = set(DEFAULT_CONFIG["exclude_dirs"] if exclude_dirs is None else exclude_dirs)

    if os.path.isfile(directory):
        return [directory] if is_python_file(directory) else []

    python_files: List[str] = []
    if not recursive:
        for entry in os.scandir(directory):
            if entry.is_file() and is_python_file(entry.name):
                python_files.append(entry.path)
        return sorted(python_files)

    for root, dirs, files in os.walk(directory):
        # 原地修改 dirs，os.walk 不会进入被排除的目录
        dirs[:] = [d for d in dirs if d not in excluded]
        python_files.extend(os.path.join(root, name) for name in files if is_python_file(name))

    return sorted(python_files)


def ensure_directory_exists(directory_path: str) -> None:
    """
    确保目录存在，如有必要则逐级创建。
    """
    if directory_path:
        Path(directory_path).mkdir(parents=True, exist_ok=True)


def get_relative_path(base_path: str, full_path: str) -> str:
    """
    计算相对于索引根目录的路径，统一使用 "/" 分隔。

    调用点和函数的文件路径都以这种形式记录，使结果在不同平台上保持一致。
    """
    try:
        relative = os.path.relpath(full_path, base_path)
    except ValueError:
        # Windows 上不同驱动器之间没有相对路径
        relative = full_path
    return relative.replace(os.sep, "/")
