"""
Utility functions and helpers.
"""

from .config_loader import load_json_config
from .targets import extract_host, load_targets

__all__ = ["load_json_config", "extract_host", "load_targets"]
