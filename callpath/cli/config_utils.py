"""
Configuration Utilities Module - Provides configuration loading and result saving functionalities.
"""

import json
import os
import sys

import yaml

from callpath.config import merge_configuration
from callpath.utils.fs_utils import ensure_directory_exists


def load_configuration(config_path, debug=False):
    """
    Load a JSON or YAML configuration file merged over the defaults.

    A missing ``config_path`` yields the default configuration.
    """
    if not config_path:
        if debug:
            print("[Config] No configuration file provided, using defaults", file=sys.stderr)
        return merge_configuration(None)

    if debug:
        print(f"[Config] Loading configuration file: {config_path}", file=sys.stderr)

    if not os.path.exists(config_path):
        print(f"[Error] Configuration file not found: {config_path}", file=sys.stderr)
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.lower().endswith((".yaml", ".yml")):
                user_config = yaml.safe_load(f) or {}
            else:
                user_config = json.load(f)
    except json.JSONDecodeError as e:
        print(f"[Error] Configuration file {config_path} contains invalid JSON: {e}", file=sys.stderr)
        raise
    except yaml.YAMLError as e:
        print(f"[Error] Configuration file {config_path} contains invalid YAML: {e}", file=sys.stderr)
        raise

    config = merge_configuration(user_config)
    if debug:
        print("[Config] Successfully loaded configuration, containing:", file=sys.stderr)
        print(f"  - {len(config['thread_constructors'])} thread constructors", file=sys.stderr)
        print(f"  - {len(config['executor_types'])} executor types", file=sys.stderr)
        print(f"  - {len(config['executor_methods'])} executor methods", file=sys.stderr)
        print(f"  - async boundary policy: {config['async_boundary_policy']}", file=sys.stderr)
        print(f"  - target without body: {config['target_without_body']}", file=sys.stderr)
    return config


def save_output(report, output_path, pretty=False, debug=False):
    """Save a search report to a JSON file"""
    if not output_path:
        return

    if debug:
        print(f"[Output] Saving results to: {output_path}", file=sys.stderr)

    ensure_directory_exists(os.path.dirname(os.path.abspath(output_path)))
    data = report.to_dict() if hasattr(report, "to_dict") else report
    with open(output_path, "w", encoding="utf-8") as f:
        if pretty:
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            json.dump(data, f, ensure_ascii=False)

    if debug:
        print(f"[Output] Successfully saved results to {output_path}", file=sys.stderr)
