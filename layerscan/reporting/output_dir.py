"""
Per-target output directories: <root>/<sanitized-url>_<YYYYMMDD_HHMMSS>.
"""

import logging
import re
from datetime import datetime
from pathlib import Path

from ..config import MAX_DIR_NAME_LENGTH
from ..core.errors import ArtifactWriteFailure

LOG = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_url(url: str, max_length: int = MAX_DIR_NAME_LENGTH) -> str:
    """
    Turn a URL into a directory-name fragment.

    The scheme is dropped, runs of characters outside [A-Za-z0-9._-] become a
    single underscore and the result is truncated to ``max_length``.
    """
    name = url.strip()
    if "://" in name:
        name = name.split("://", 1)[1]
    name = _UNSAFE_CHARS.sub("_", name).strip("_.")
    return name[:max_length].rstrip("_.") or "target"


def create_target_dir(root: Path, url: str, timestamp: datetime) -> Path:
    """
    Create a fresh output directory for one target.

    A numeric suffix is appended if the directory already exists (same URL
    twice within one second).

    Raises:
        ArtifactWriteFailure: If the directory cannot be created
    """
    base = f"{sanitize_url(url)}_{timestamp:%Y%m%d_%H%M%S}"
    candidate = Path(root) / base
    suffix = 1
    while True:
        try:
            candidate.mkdir(parents=True, exist_ok=False)
            LOG.debug(f"Created output directory {candidate}")
            return candidate
        except FileExistsError:
            suffix += 1
            candidate = Path(root) / f"{base}_{suffix}"
        except OSError as e:
            raise ArtifactWriteFailure(
                f"Cannot create output directory {candidate}: {e}", context={"url": url}
            ) from e
