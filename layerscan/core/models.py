"""
Report data model.

One AnalysisReport per target URL, holding exactly one LayerResult per OSI
layer in ascending layer order, plus the process bindings of the Extra layer
and the derived latency/bandwidth metrics. The capability records at the
bottom are what the OS/network data sources hand to the probes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

# Returned by the latency probe when no sample succeeded
LATENCY_UNMEASURED = -1.0


class OsiLayer(IntEnum):
    """The seven fixed measurement layers, numbered as in the OSI model."""

    PHYSICAL = 1
    DATA_LINK = 2
    NETWORK = 3
    TRANSPORT = 4
    SESSION = 5
    PRESENTATION = 6
    APPLICATION = 7

    @property
    def label(self) -> str:
        """Display name used in the JSON and CSV reports."""
        return _LAYER_LABELS[self]


_LAYER_LABELS = {
    OsiLayer.PHYSICAL: "Physical",
    OsiLayer.DATA_LINK: "DataLink",
    OsiLayer.NETWORK: "Network",
    OsiLayer.TRANSPORT: "Transport",
    OsiLayer.SESSION: "Session",
    OsiLayer.PRESENTATION: "Presentation",
    OsiLayer.APPLICATION: "Application",
}


class LayerStatus(Enum):
    """Whether the probe for a layer ran to completion"""

    SUCCESS = "Success"
    ERROR = "Error"


@dataclass
class LayerResult:
    """Findings of one layer probe, in discovery order."""

    layer: OsiLayer
    status: LayerStatus = LayerStatus.SUCCESS
    details: List[str] = field(default_factory=list)

    def add(self, detail: str) -> None:
        self.details.append(detail)

    @classmethod
    def error(cls, layer: OsiLayer, detail: str) -> "LayerResult":
        return cls(layer=layer, status=LayerStatus.ERROR, details=[detail])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layer": self.layer.label,
            "status": self.status.value,
            "details": list(self.details),
        }


@dataclass
class ProcessBinding:
    """A local port with an outbound HTTPS connection and the process owning it."""

    local_port: int
    process_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"localPort": self.local_port, "processName": self.process_name}


@dataclass
class AnalysisReport:
    """
    Complete record of one target's analysis.

    Attributes:
        timestamp: When the capture for this target started
        url: Target URL exactly as given
        latency_ms: Average round-trip time, or LATENCY_UNMEASURED
        bandwidth_kbps: Download rate of the application probe, None if it failed
        layers: One LayerResult per OsiLayer, ascending
        processes: Extra-layer process bindings
        json_validation: None when not attempted, else whether the body parsed as JSON
    """

    timestamp: datetime
    url: str
    latency_ms: float = LATENCY_UNMEASURED
    bandwidth_kbps: Optional[float] = None
    layers: List[LayerResult] = field(default_factory=list)
    processes: List[ProcessBinding] = field(default_factory=list)
    json_validation: Optional[bool] = None

    @property
    def error_layers(self) -> List[OsiLayer]:
        return [r.layer for r in self.layers if r.status == LayerStatus.ERROR]

    @property
    def detail_count(self) -> int:
        return sum(len(r.details) for r in self.layers)

    @classmethod
    def failed(cls, url: str, reason: str, timestamp: Optional[datetime] = None) -> "AnalysisReport":
        """Report for a target whose pipeline faulted as a whole: every layer is an Error."""
        return cls(
            timestamp=timestamp or datetime.now(),
            url=url,
            layers=[LayerResult.error(layer, f"Analysis aborted: {reason}") for layer in OsiLayer],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON report structure."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "url": self.url,
            "latencyMs": self.latency_ms,
            "bandwidthKBps": self.bandwidth_kbps,
            "layers": [r.to_dict() for r in self.layers],
            "processes": [p.to_dict() for p in self.processes],
            "jsonValidation": self.json_validation,
        }


# ============================================================================
# Capability records
# ============================================================================


@dataclass(frozen=True)
class NetworkAdapter:
    name: str
    speed: str
    status: str

    @property
    def is_up(self) -> bool:
        return self.status.lower() == "up"


@dataclass(frozen=True)
class TcpConnection:
    local_port: int
    remote_port: int
    state: str
    owner_pid: Optional[int]
    remote_address: str


@dataclass
class HttpResponse:
    """
    Outcome of a completed HTTP request.

    content_length is the Content-Length header value when the server sent
    one; elapsed is the wall-clock time of the whole request in seconds.
    """

    status_code: int
    body: bytes = b""
    text: str = ""
    content_length: Optional[int] = None
    elapsed: float = 0.0
