"""
callpath 日志模块

所有日志写入 stderr（以及可选的日志文件），stdout 只用于输出结果。
"""

from callpath.logger.core import (
    configure_logger,
    get_logger,
    debug,
    info,
    warning,
    error,
    LogTee,
    get_timestamp,
)

from callpath.logger.decorators import (
    log_function,
    log_analysis_file,
    conditional_log,
    log_paths,
)

from callpath.logger.config import setup_application_logging

__all__ = [
    # 核心日志函数
    "configure_logger",
    "get_logger",
    "debug",
    "info",
    "warning",
    "error",
    # 日志装饰器
    "log_function",
    "log_analysis_file",
    "conditional_log",
    "log_paths",
    # 配置工具
    "setup_application_logging",
    # 输出重定向工具
    "LogTee",
    "get_timestamp",
]
