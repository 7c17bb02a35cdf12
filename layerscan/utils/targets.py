"""
Target list handling: reading URL files and pulling the host out of a URL.
"""

import logging
from pathlib import Path
from typing import List
from urllib.parse import urlsplit

LOG = logging.getLogger(__name__)


def extract_host(url: str) -> str:
    """
    Return the host part of a target URL.

    Bare hosts ("example.com", "example.com:8443/path") are accepted by
    assuming an https scheme. An empty string comes back when no host can
    be found; callers treat that like any other resolution failure.
    """
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        return urlsplit(candidate).hostname or ""
    except ValueError:
        return ""


def load_targets(targets_file: str | Path) -> List[str]:
    """
    Load target URLs from a text file.

    One URL per line; blank lines and lines starting with '#' are skipped,
    trailing '# comments' are stripped. Order is preserved and duplicates
    are dropped.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    targets_file = Path(targets_file)
    if not targets_file.exists():
        raise FileNotFoundError(f"Targets file not found: {targets_file}")

    targets: List[str] = []
    with open(targets_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            if line in targets:
                LOG.debug(f"Skipping duplicate target {line}")
                continue
            targets.append(line)

    LOG.info(f"Loaded {len(targets)} targets from {targets_file}")
    return targets
