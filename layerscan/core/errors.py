"""
Exception hierarchy for layer probes and report output.

Capabilities raise these; probes and the pipeline driver catch them at the
point of failure and turn them into detail lines and log records.
"""

import time
from typing import Any, Dict, Optional


class LayerscanError(Exception):
    """Base exception carrying structured context for logging."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
            "timestamp": self.timestamp,
        }


class ProbeUnavailable(LayerscanError):
    """An OS data source is missing or access to it was denied."""

    pass


class NetworkUnreachable(LayerscanError):
    """DNS, TCP or HTTP failure talking to the target."""

    pass


class ValidationFailure(LayerscanError):
    """Response body did not parse as expected (e.g. invalid JSON)."""

    pass


class ArtifactWriteFailure(LayerscanError):
    """A report file, response body or screenshot could not be written."""

    pass


class ConfigurationError(LayerscanError):
    """Invalid configuration values or an unreadable config file."""

    pass
