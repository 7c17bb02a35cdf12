"""
Report aggregation.

ReportBuilder owns the AnalysisReport of one target while the pipeline runs.
Every probe writes exactly one slot; the builder only composes pieces and
refuses a second write to the same layer.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..capabilities.interfaces import ILatencyProber
from .models import AnalysisReport, LayerResult, OsiLayer, ProcessBinding
from .probes import ApplicationOutcome, measure_latency

logger = logging.getLogger(__name__)


class ReportBuilder:
    """Accumulates layer results and derived metrics for one target."""

    def __init__(self, url: str, timestamp: Optional[datetime] = None):
        self.url = url
        self.timestamp = timestamp or datetime.now()
        self._layers: Dict[OsiLayer, LayerResult] = {}
        self._processes: List[ProcessBinding] = []
        self._latency_ms: Optional[float] = None
        self._bandwidth_kbps: Optional[float] = None
        self._json_validation: Optional[bool] = None
        self.response_body: bytes = b""

    def add_layer(self, result: LayerResult) -> None:
        if result.layer in self._layers:
            raise ValueError(f"Layer {result.layer.label} already recorded for {self.url}")
        self._layers[result.layer] = result

    def add_application(self, outcome: ApplicationOutcome) -> None:
        """Record the application layer together with the metrics derived from it."""
        self.add_layer(outcome.result)
        self._bandwidth_kbps = outcome.bandwidth_kbps
        self._json_validation = outcome.json_validation
        self.response_body = outcome.body

    def set_processes(self, bindings: List[ProcessBinding]) -> None:
        self._processes = list(bindings)

    def measure_latency(self, host: str, prober: ILatencyProber, port: int, samples: int) -> float:
        self._latency_ms = measure_latency(host, prober, port, samples)
        return self._latency_ms

    def build(self) -> AnalysisReport:
        """
        Compose the finished report.

        Raises:
            ValueError: If any layer is missing; the pipeline driver guarantees
                every layer contributes an entry, even a failed one.
        """
        missing = [layer.label for layer in OsiLayer if layer not in self._layers]
        if missing:
            raise ValueError(f"Report for {self.url} is missing layers: {', '.join(missing)}")

        report = AnalysisReport(
            timestamp=self.timestamp,
            url=self.url,
            layers=[self._layers[layer] for layer in OsiLayer],
            processes=list(self._processes),
            bandwidth_kbps=self._bandwidth_kbps,
            json_validation=self._json_validation,
        )
        if self._latency_ms is not None:
            report.latency_ms = self._latency_ms
        return report
