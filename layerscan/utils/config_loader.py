"""
Helpers for reading JSON configuration overrides.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

LOG = logging.getLogger(__name__)


def load_json_config(
    file_path: str | Path, default: Optional[Dict[str, Any]] = None, encoding: str = "utf-8"
) -> Dict[str, Any]:
    """
    Load a JSON object from disk.

    Args:
        file_path: Path to the JSON file
        default: Returned instead of raising when the file is missing or unreadable
        encoding: File encoding (default: utf-8)

    Returns:
        The decoded JSON object

    Raises:
        FileNotFoundError: If the file is missing and no default is given
        ValueError: If the file is not a JSON object and no default is given
    """
    file_path = Path(file_path)

    if not file_path.exists():
        if default is not None:
            LOG.debug(f"Config file not found: {file_path}, using default")
            return default
        raise FileNotFoundError(f"Config file not found: {file_path}")

    try:
        with open(file_path, "r", encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        if default is not None:
            LOG.warning(f"Invalid JSON in {file_path}: {e}, using default")
            return default
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, dict):
        if default is not None:
            LOG.warning(f"Expected a JSON object in {file_path}, using default")
            return default
        raise ValueError(f"Expected a JSON object in {file_path}, got {type(data).__name__}")

    LOG.debug(f"Loaded config from {file_path}")
    return data
