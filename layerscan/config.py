# layerscan/config.py

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .core.errors import ConfigurationError
from .utils.config_loader import load_json_config

LOG = logging.getLogger(__name__)

# --- Network defaults ---
DEFAULT_HTTPS_PORT = 443
TLS_TIMEOUT = 10.0
HTTP_TIMEOUT = 15.0
CONNECT_TIMEOUT = 5.0
SCREENSHOT_TIMEOUT = 30.0
LATENCY_SAMPLES = 3

# Floor for elapsed time in the bandwidth calculation (sub-millisecond responses)
MIN_ELAPSED_SECONDS = 0.001

# --- Output ---
DEFAULT_OUTPUT_ROOT = "reports"
LOG_FILE_NAME = "analysis.log"
JSON_FILE_NAME = "report.json"
CSV_FILE_NAME = "report.csv"
HTML_FILE_NAME = "response.html"
SCREENSHOT_FILE_NAME = "screenshot.png"
MAX_DIR_NAME_LENGTH = 80

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _is_int(value: Any) -> bool:
    # bool is an int subclass; JSON true/false must not pass as a count
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ProbeConfig:
    """
    Read-only settings shared by every target in a run.

    Values come from the defaults above, optionally overridden by a JSON
    file (``--config``) and then by CLI flags.
    """

    output_root: Path = Path(DEFAULT_OUTPUT_ROOT)
    https_port: int = DEFAULT_HTTPS_PORT
    tls_timeout: float = TLS_TIMEOUT
    http_timeout: float = HTTP_TIMEOUT
    connect_timeout: float = CONNECT_TIMEOUT
    screenshot_timeout: float = SCREENSHOT_TIMEOUT
    latency_samples: int = LATENCY_SAMPLES
    screenshot: bool = False
    validate_json: bool = False
    notify: bool = True
    user_agent: str = USER_AGENT

    def __post_init__(self):
        """Validate configuration values"""
        if not isinstance(self.output_root, (str, Path)):
            raise ConfigurationError(f"output_root must be a path, got {self.output_root!r}")
        if not isinstance(self.output_root, Path):
            object.__setattr__(self, "output_root", Path(self.output_root))

        for name in ("https_port", "latency_samples"):
            value = getattr(self, name)
            if not _is_int(value):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if not 0 < self.https_port < 65536:
            raise ConfigurationError(f"https_port out of range: {self.https_port}")
        if self.latency_samples <= 0:
            raise ConfigurationError("latency_samples must be positive")

        for name in ("tls_timeout", "http_timeout", "connect_timeout", "screenshot_timeout"):
            value = getattr(self, name)
            if not (_is_int(value) or isinstance(value, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive")

        for name in ("screenshot", "validate_json", "notify"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be true or false")
        if not isinstance(self.user_agent, str):
            raise ConfigurationError("user_agent must be a string")

    def with_overrides(self, **overrides: Any) -> "ProbeConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbeConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            LOG.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise ConfigurationError(f"Invalid config value: {e}") from e

    @classmethod
    def from_file(cls, path: Optional[str | Path]) -> "ProbeConfig":
        """Load a config file; a None path yields the defaults."""
        if path is None:
            return cls()
        try:
            data = load_json_config(path)
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(str(e), context={"path": str(path)}) from e
        return cls.from_dict(data)
