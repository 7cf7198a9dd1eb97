"""
日志配置工具

命令行、MCP 服务器和库调用者通过 setup_application_logging 统一配置日志。
"""

import logging
import os
from typing import Optional

from callpath.logger.core import DEFAULT_FORMAT, ROOT_LOGGER_NAME, configure_logger


def setup_application_logging(
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
    verbose: bool = False,
    debug: bool = False,
) -> None:
    """
    配置 callpath 日志。

    参数:
        level: 日志级别 (默认: WARNING，保持终端输出只包含路径结果)
        log_file: 日志文件路径，目录不存在时自动创建 (默认: None)
        verbose: 是否启用 INFO 级别日志，例如索引统计 (默认: False)
        debug: 是否启用 DEBUG 级别日志，例如每次剪枝的异步边界 (默认: False)
    """
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

    configure_logger(
        level=level,
        log_format=DEFAULT_FORMAT,
        log_file=log_file,
        verbose=verbose,
        debug=debug,
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.debug(f"callpath 日志已配置 - 级别: {logging.getLevelName(logger.level)}")
    if log_file:
        logger.info(f"日志文件: {log_file}")
