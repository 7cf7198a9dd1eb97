"""
日志装饰器模块 - 为索引构建、文件解析和路径搜索添加日志。
"""

import functools
import inspect
import time
from typing import Any, Callable, TypeVar, cast

from callpath.logger.core import debug, error, info, warning

F = TypeVar("F", bound=Callable[..., Any])

_LOG_FUNCS = {
    "debug": debug,
    "info": info,
    "warning": warning,
    "error": error,
}


def log_function(level: str = "info") -> Callable[[F], F]:
    """
    记录函数开始、结束和耗时的装饰器。

    参数:
        level: 日志级别，可选值: "debug", "info", "warning", "error"

    返回:
        装饰器函数
    """
    log_func = _LOG_FUNCS.get(level, info)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_name = f"{func.__module__}.{func.__qualname__}"
            log_func(f"开始执行 {func_name}")
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                error(f"{func_name} 执行出错: {type(e).__name__}: {e}")
                raise
            log_func(f"完成执行 {func_name} ({time.perf_counter() - started:.3f}s)")
            return result

        return cast(F, wrapper)

    return decorator


def log_analysis_file(func: F) -> F:
    """
    记录源文件解析的装饰器。

    被装饰函数的第一个参数是文件路径。解析失败时只记录 debug 日志并继续抛出，
    是否跳过该文件由调用者决定。
    """

    @functools.wraps(func)
    def wrapper(file_path: str, *args: Any, **kwargs: Any) -> Any:
        debug(f"解析文件: {file_path}")
        try:
            return func(file_path, *args, **kwargs)
        except (SyntaxError, ValueError, OSError) as e:
            debug(f"解析文件出错 {file_path}: {type(e).__name__}: {e}")
            raise

    return cast(F, wrapper)


def conditional_log(
    condition_arg: str, log_message: str, level: str = "info"
) -> Callable[[F], F]:
    """
    参数有值时才记录日志的装饰器。

    参数:
        condition_arg: 要检查的参数名称
        log_message: 日志消息模板，可以使用 '{param}' 引用参数值
        level: 日志级别

    返回:
        装饰器函数
    """
    log_func = _LOG_FUNCS.get(level, info)

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                bound = signature.bind_partial(*args, **kwargs)
            except TypeError:
                # Let the call itself report the bad arguments
                return func(*args, **kwargs)
            param_value = bound.arguments.get(condition_arg)
            if param_value:
                log_func(log_message.format(param=param_value))
            return func(*args, **kwargs)

        return cast(F, wrapper)

    return decorator


def log_paths(func: F) -> F:
    """
    记录调用路径搜索结果的装饰器。

    被装饰的函数返回路径列表，目标函数作为 ``target`` 参数传入。
    """
    signature = inspect.signature(func)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        result = func(*args, **kwargs)

        target = signature.bind_partial(*args, **kwargs).arguments.get("target")
        target_name = getattr(target, "qualname", target)
        if result:
            info(f"发现 {len(result)} 条到 {target_name} 的调用路径")
        else:
            info(f"未发现到 {target_name} 的调用路径")
        return result

    return cast(F, wrapper)
