"""Project-level configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


CONFIG_FILENAME = "rowcalc.yaml"

DEFAULT_CONFIG = {
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
    "max_workers": 1,
    "result_column": "result",
    "error_column": "error",
}


def _flatten_logging_block(user_config: dict[str, Any]) -> dict[str, Any]:
    """Flatten a nested ``logging:`` block into flat config keys.

    Supports::

        logging:
          fsync: true
          tail_bytes: 1048576

    Maps to ``logging_fsync`` and ``logging_tail_bytes``.  Flat keys win
    when both forms are given.
    """
    block = user_config.pop("logging", None)
    if not isinstance(block, dict):
        return user_config
    for key, value in block.items():
        user_config.setdefault(f"logging_{key}", value)
    return user_config


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Load project configuration from ``rowcalc.yaml``, with defaults.

    Args:
        project_dir: Directory that may contain ``rowcalc.yaml``.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = project_dir / CONFIG_FILENAME
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"{config_path} must contain a mapping")
        config.update(_flatten_logging_block(user_config))
    return config
