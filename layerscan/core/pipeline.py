"""
Pipeline driver: runs the layer probes for one target and hands the report
to the output collaborators.

States, always visited in this order with no skips or retries:

    Init -> L1 -> ... -> L7 -> Extra -> Export -> Notify -> Done

Probes isolate their expected failures themselves. Anything unexpected that
escapes a probe is caught here and recorded as an Error entry for that
layer, so a finished report always holds all seven layers.
"""

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..capabilities import CapabilitySet
from ..config import (
    CSV_FILE_NAME,
    HTML_FILE_NAME,
    JSON_FILE_NAME,
    LOG_FILE_NAME,
    SCREENSHOT_FILE_NAME,
    ProbeConfig,
)
from ..reporting import create_target_dir, target_log, write_bytes, write_csv, write_json
from ..utils.targets import extract_host
from . import probes
from .aggregator import ReportBuilder
from .errors import ArtifactWriteFailure, ProbeUnavailable
from .models import LATENCY_UNMEASURED, AnalysisReport, LayerResult, OsiLayer, TcpConnection

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    INIT = "Init"
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    L4 = "L4"
    L5 = "L5"
    L6 = "L6"
    L7 = "L7"
    EXTRA = "Extra"
    EXPORT = "Export"
    NOTIFY = "Notify"
    DONE = "Done"


PIPELINE_ORDER: List[PipelineState] = list(PipelineState)

LAYER_STATES: Dict[PipelineState, OsiLayer] = {
    PipelineState.L1: OsiLayer.PHYSICAL,
    PipelineState.L2: OsiLayer.DATA_LINK,
    PipelineState.L3: OsiLayer.NETWORK,
    PipelineState.L4: OsiLayer.TRANSPORT,
    PipelineState.L5: OsiLayer.SESSION,
    PipelineState.L6: OsiLayer.PRESENTATION,
    PipelineState.L7: OsiLayer.APPLICATION,
}


@dataclass
class TargetRun:
    """Working state of one target; lives only for the duration of run()."""

    url: str
    host: str
    builder: ReportBuilder
    output_dir: Optional[Path] = None
    addresses: List[str] = field(default_factory=list)
    connections: List[TcpConnection] = field(default_factory=list)
    report: Optional[AnalysisReport] = None
    artifacts: List[Path] = field(default_factory=list)


@dataclass
class TargetOutcome:
    """What the run controller keeps about a target once its report is discarded."""

    url: str
    output_dir: Optional[Path] = None
    error_layers: List[OsiLayer] = field(default_factory=list)
    latency_ms: float = LATENCY_UNMEASURED
    bandwidth_kbps: Optional[float] = None
    artifacts: List[Path] = field(default_factory=list)
    fault: Optional[str] = None

    @property
    def faulted(self) -> bool:
        return self.fault is not None


class PipelineDriver:
    """Runs the fixed probe sequence against one target at a time."""

    def __init__(self, capabilities: CapabilitySet, config: ProbeConfig):
        self.capabilities = capabilities
        self.config = config
        self.state: Optional[PipelineState] = None
        self.states_visited: List[PipelineState] = []
        # Directory of the target being run, None until Init has created it
        self.output_dir: Optional[Path] = None
        self._handlers: Dict[PipelineState, Callable[[TargetRun], None]] = {
            PipelineState.L1: self._physical,
            PipelineState.L2: self._data_link,
            PipelineState.L3: self._network,
            PipelineState.L4: self._transport,
            PipelineState.L5: self._session,
            PipelineState.L6: self._presentation,
            PipelineState.L7: self._application,
            PipelineState.EXTRA: self._extra,
            PipelineState.EXPORT: self._export,
            PipelineState.NOTIFY: self._notify,
        }

    def run(self, url: str) -> TargetOutcome:
        """
        Analyse one target end to end.

        Raises:
            ArtifactWriteFailure: If the target's output directory cannot be
                created; everything after Init is isolated.
        """
        self.states_visited = []
        self.output_dir = None
        self._enter(PipelineState.INIT)
        timestamp = datetime.now()
        run = TargetRun(url=url, host=extract_host(url), builder=ReportBuilder(url, timestamp))
        run.output_dir = self.output_dir = create_target_dir(self.config.output_root, url, timestamp)

        with ExitStack() as stack:
            try:
                stack.enter_context(target_log(run.output_dir / LOG_FILE_NAME))
            except ArtifactWriteFailure as e:
                logger.error(f"Continuing without a text log: {e}")

            logger.info(f"Starting analysis of {url} (host: {run.host or '<none>'})")
            for state in PIPELINE_ORDER[1:-1]:
                self._enter(state)
                self._handlers[state](run)
            logger.info(f"Finished analysis of {url}")

        self._enter(PipelineState.DONE)
        report = run.report
        return TargetOutcome(
            url=url,
            output_dir=run.output_dir,
            error_layers=report.error_layers if report else list(OsiLayer),
            latency_ms=report.latency_ms if report else LATENCY_UNMEASURED,
            bandwidth_kbps=report.bandwidth_kbps if report else None,
            artifacts=list(run.artifacts),
        )

    def export_failed_report(self, url: str, reason: str, output_dir: Optional[Path] = None) -> Optional[Path]:
        """
        Best-effort export of a fully Error-statused report for a target whose
        pipeline faulted outside the probes.

        The report goes into ``output_dir`` (the directory Init created for the
        target, replacing any partial report there); a new directory is only
        created when the target never got one.
        """
        report = AnalysisReport.failed(url, reason)
        try:
            if output_dir is None:
                output_dir = create_target_dir(self.config.output_root, url, report.timestamp)
            write_json(report, output_dir / JSON_FILE_NAME)
            write_csv(report, output_dir / CSV_FILE_NAME)
        except ArtifactWriteFailure as e:
            logger.error(f"Could not record failed report for {url}: {e}")
            logger.debug(f"Failure context: {e.to_dict()}")
            return None
        return output_dir

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self.states_visited.append(state)
        logger.debug(f"Pipeline state -> {state.value}")

    def _guarded_layer(self, run: TargetRun, layer: OsiLayer, probe: Callable[[], LayerResult]) -> None:
        try:
            result = probe()
        except Exception as e:
            logger.error(f"{layer.label} layer probe failed unexpectedly: {e}", exc_info=True)
            result = LayerResult.error(layer, f"Probe failed: {type(e).__name__}: {e}")
        run.builder.add_layer(result)

    # ========================================================================
    # Layer states
    # ========================================================================

    def _physical(self, run: TargetRun) -> None:
        self._guarded_layer(
            run, OsiLayer.PHYSICAL, lambda: probes.probe_physical(self.capabilities.adapters)
        )

    def _data_link(self, run: TargetRun) -> None:
        self._guarded_layer(
            run,
            OsiLayer.DATA_LINK,
            lambda: probes.probe_data_link(self.capabilities.routes, self.capabilities.arp),
        )

    def _network(self, run: TargetRun) -> None:
        def probe() -> LayerResult:
            result, run.addresses = probes.probe_network(
                run.host, self.capabilities.dns, self.capabilities.reachability, self.config.https_port
            )
            return result

        self._guarded_layer(run, OsiLayer.NETWORK, probe)

    def _transport(self, run: TargetRun) -> None:
        def probe() -> LayerResult:
            result, run.connections = probes.probe_transport(run.addresses, self.capabilities.tcp_table)
            return result

        self._guarded_layer(run, OsiLayer.TRANSPORT, probe)

    def _session(self, run: TargetRun) -> None:
        self._guarded_layer(run, OsiLayer.SESSION, lambda: probes.probe_session(run.connections))

    def _presentation(self, run: TargetRun) -> None:
        self._guarded_layer(
            run,
            OsiLayer.PRESENTATION,
            lambda: probes.probe_presentation(run.url, self.capabilities.http, self.config.tls_timeout),
        )

    def _application(self, run: TargetRun) -> None:
        try:
            outcome = probes.probe_application(
                run.url, self.capabilities.http, self.config.http_timeout, self.config.validate_json
            )
        except Exception as e:
            logger.error(f"Application layer probe failed unexpectedly: {e}", exc_info=True)
            run.builder.add_layer(
                LayerResult.error(OsiLayer.APPLICATION, f"Probe failed: {type(e).__name__}: {e}")
            )
            return
        run.builder.add_application(outcome)

    def _extra(self, run: TargetRun) -> None:
        try:
            bindings = probes.probe_processes(
                self.capabilities.tcp_table, self.capabilities.processes, self.config.https_port
            )
        except Exception as e:
            logger.error(f"Extra layer probe failed unexpectedly: {e}", exc_info=True)
            bindings = []
        run.builder.set_processes(bindings)

    # ========================================================================
    # Output states
    # ========================================================================

    def _export(self, run: TargetRun) -> None:
        try:
            run.builder.measure_latency(
                run.host, self.capabilities.latency, self.config.https_port, self.config.latency_samples
            )
        except Exception as e:
            logger.error(f"Latency measurement failed unexpectedly: {e}", exc_info=True)

        report = run.report = run.builder.build()
        output_dir = run.output_dir

        self._write(run, "JSON report", lambda: write_json(report, output_dir / JSON_FILE_NAME))
        self._write(run, "CSV report", lambda: write_csv(report, output_dir / CSV_FILE_NAME))
        if run.builder.response_body:
            self._write(
                run,
                "HTML response",
                lambda: write_bytes(run.builder.response_body, output_dir / HTML_FILE_NAME, "HTML response"),
            )
        if self.config.screenshot:
            self._screenshot(run)

    def _write(self, run: TargetRun, kind: str, writer: Callable[[], Path]) -> None:
        try:
            path = writer()
        except ArtifactWriteFailure as e:
            logger.error(str(e))
            logger.debug(f"Failure context: {e.to_dict()}")
            return
        run.artifacts.append(path)
        logger.info(f"Saved {kind} to {path}")

    def _screenshot(self, run: TargetRun) -> None:
        renderer = self.capabilities.renderer
        if renderer is None:
            logger.warning("Screenshot requested but no renderer is configured")
            return
        try:
            png = renderer.capture(run.url)
        except ProbeUnavailable as e:
            logger.error(f"Screenshot failed: {e}")
            return
        except Exception as e:
            logger.error(f"Screenshot failed unexpectedly: {e}", exc_info=True)
            return
        self._write(
            run, "screenshot", lambda: write_bytes(png, run.output_dir / SCREENSHOT_FILE_NAME, "screenshot")
        )

    def _notify(self, run: TargetRun) -> None:
        report = run.report
        ok = len(report.layers) - len(report.error_layers)
        message = f"{run.url}: {ok}/{len(report.layers)} layers OK. Reports in {run.output_dir}"
        try:
            self.capabilities.notifier.notify("Network analysis complete", message)
        except Exception as e:
            logger.warning(f"Completion notification failed: {e}")
