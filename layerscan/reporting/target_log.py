"""
Per-target text log.

While a target's pipeline runs, every record of the ``layerscan`` logger at
INFO or above is also written to that target's log file, one line per event,
tagged INFO, WARN or ERROR. Tracebacks and multi-line messages are folded
into their event's line.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..core.errors import ArtifactWriteFailure

PACKAGE_LOGGER = "layerscan"
LINE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LINE_SEPARATOR = " | "

_TAGS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


class TaggedFormatter(logging.Formatter):
    """
    Formatter that writes WARNING as WARN and CRITICAL as ERROR and keeps
    every record on a single line.
    """

    def __init__(self):
        super().__init__(LINE_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = _TAGS.get(record.levelno, original)
        try:
            text = super().format(record)
        finally:
            record.levelname = original
        return LINE_SEPARATOR.join(part.strip() for part in text.splitlines() if part.strip())


@contextmanager
def target_log(path: Path) -> Iterator[logging.FileHandler]:
    """
    Attach a file handler for one target to the package logger.

    Raises:
        ArtifactWriteFailure: If the log file cannot be opened
    """
    try:
        handler = logging.FileHandler(path, encoding="utf-8", errors="backslashreplace")
    except OSError as e:
        raise ArtifactWriteFailure(f"Cannot open log file {path}: {e}") from e
    handler.setLevel(logging.INFO)
    handler.setFormatter(TaggedFormatter())

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous_level = package_logger.level
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)
    package_logger.addHandler(handler)
    try:
        yield handler
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
        handler.close()
