"""
Default configuration for callpath and helpers to merge user settings.

Configuration is a plain dictionary so it can come from JSON, YAML or the
MCP interface unchanged.
"""

import copy
from typing import Any, Dict, Optional

DEFAULT_CONFIG: Dict[str, Any] = {
    # Directory names never descended into while collecting sources
    "exclude_dirs": [
        "__pycache__",
        "venv",
        ".venv",
        ".git",
        ".github",
        ".tox",
        "build",
        "dist",
        "node_modules",
    ],
    # Constructors that start a new thread of execution
    "thread_constructors": ["Thread", "Timer", "Process", "start_new_thread"],
    # Executor types and factories; a reference inside their construction is
    # handed to another thread
    "executor_types": [
        "ThreadPoolExecutor",
        "ProcessPoolExecutor",
        "Executor",
        "Pool",
        "ThreadPool",
    ],
    # Scheduling methods that hand work to an executor or event loop
    "executor_methods": [
        "execute",
        "submit",
        "invokeAll",
        "invokeAny",
        "invoke_all",
        "invoke_any",
        "map",
        "starmap",
        "apply_async",
        "map_async",
        "run_in_executor",
        "to_thread",
        "create_task",
        "ensure_future",
        "run_coroutine_threadsafe",
    ],
    # unique | all | none
    "ambiguous_attribute_calls": "unique",
    # sever_branch | skip_call_site
    "async_boundary_policy": "sever_branch",
    # skip | abort
    "target_without_body": "skip",
    # Seconds before a search is cancelled, None for no limit
    "timeout": None,
}

_CHOICES = {
    "ambiguous_attribute_calls": ("unique", "all", "none"),
    "async_boundary_policy": ("sever_branch", "skip_call_site"),
    "target_without_body": ("skip", "abort"),
}

_LIST_KEYS = ("exclude_dirs", "thread_constructors", "executor_types", "executor_methods")


def merge_configuration(user_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge user settings on top of DEFAULT_CONFIG.

    Lists replace the defaults instead of extending them. Unknown keys are
    kept so callers can carry their own settings.

    Args:
        user_config: Partial configuration, may be None

    Returns:
        A new, complete configuration dictionary

    Raises:
        ValueError: If a setting has an invalid value
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if not user_config:
        return config

    if not isinstance(user_config, dict):
        raise ValueError(
            f"Configuration must be a mapping, got {type(user_config).__name__}"
        )

    for key, value in user_config.items():
        if key in _CHOICES and value not in _CHOICES[key]:
            allowed = ", ".join(_CHOICES[key])
            raise ValueError(f"Invalid value for '{key}': {value!r} (expected one of: {allowed})")
        if key in _LIST_KEYS:
            if not isinstance(value, (list, tuple)) or not all(
                isinstance(item, str) for item in value
            ):
                raise ValueError(f"'{key}' must be a list of strings")
            value = list(value)
        if key == "timeout" and value is not None:
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"'timeout' must be a positive number, got {value!r}")
        config[key] = value

    return config
