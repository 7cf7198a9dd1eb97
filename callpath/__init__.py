"""
callpath - 适用于 Python 项目的静态调用路径分析工具

查找从起始函数到目标函数之间的所有无环调用链，并在线程/执行器边界处截断。
"""

from callpath.__version__ import __version__

# 设置版本信息
__title__ = "callpath"
__description__ = "Static call path finder for Python codebases"
__license__ = "MIT"

# 导出主要接口
from callpath.analysis import CallPathDetector, CancellationToken, CodeIndex
from callpath.models import CallSite, Routine, SearchOutcome, SearchReport

# 导出日志工具
from callpath.logger import (
    # 核心日志函数
    configure_logger,
    get_logger,
    debug,
    info,
    warning,
    error,
    # 日志装饰器
    log_function,
    log_analysis_file,
    conditional_log,
    log_paths,
    # 配置工具
    setup_application_logging,
)

__all__ = [
    "CallPathDetector",
    "CancellationToken",
    "CodeIndex",
    "CallSite",
    "Routine",
    "SearchOutcome",
    "SearchReport",
    "__version__",
    # 日志导出
    "configure_logger",
    "get_logger",
    "debug",
    "info",
    "warning",
    "error",
    "log_function",
    "log_analysis_file",
    "conditional_log",
    "log_paths",
    "setup_application_logging",
]
