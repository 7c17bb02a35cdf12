"""
Core layer-probe pipeline.

Key Components:
- models: AnalysisReport, LayerResult and the capability records
- probes: the seven layer probes plus the Extra process join
- aggregator: ReportBuilder, the per-target owner of the report
- pipeline: PipelineDriver, the per-target state machine
- run_controller: RunController, sequential iteration over targets

Only the data model and errors are re-exported here; the pipeline modules
depend on layerscan.config and are imported directly.
"""

from .errors import (
    LayerscanError,
    ProbeUnavailable,
    NetworkUnreachable,
    ValidationFailure,
    ArtifactWriteFailure,
    ConfigurationError,
)
from .models import (
    LATENCY_UNMEASURED,
    OsiLayer,
    LayerStatus,
    LayerResult,
    ProcessBinding,
    AnalysisReport,
    NetworkAdapter,
    TcpConnection,
    HttpResponse,
)

__all__ = [
    # Errors
    "LayerscanError",
    "ProbeUnavailable",
    "NetworkUnreachable",
    "ValidationFailure",
    "ArtifactWriteFailure",
    "ConfigurationError",
    # Data model
    "LATENCY_UNMEASURED",
    "OsiLayer",
    "LayerStatus",
    "LayerResult",
    "ProcessBinding",
    "AnalysisReport",
    "NetworkAdapter",
    "TcpConnection",
    "HttpResponse",
]
