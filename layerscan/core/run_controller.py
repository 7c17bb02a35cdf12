"""
Run controller: drives the pipeline over a list of targets, one at a time.

A fault that escapes one target's pipeline is logged and recorded as a
fully Error-statused report in that target's output directory; the
remaining targets still run, even when that report cannot be written.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .models import OsiLayer
from .pipeline import PipelineDriver, TargetOutcome

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    outcomes: List[TargetOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def faulted(self) -> List[TargetOutcome]:
        return [o for o in self.outcomes if o.faulted]

    @property
    def with_errors(self) -> List[TargetOutcome]:
        return [o for o in self.outcomes if o.error_layers]

    def summary_line(self) -> str:
        return (
            f"Analysis complete: {self.total} target(s) processed, "
            f"{len(self.with_errors)} with layer errors, {len(self.faulted)} aborted"
        )


class RunController:
    """Sequential iteration of the pipeline driver over targets, in list order."""

    def __init__(
        self,
        pipeline: PipelineDriver,
        on_target_done: Optional[Callable[[TargetOutcome], None]] = None,
    ):
        self.pipeline = pipeline
        self.on_target_done = on_target_done

    def run(self, targets: Iterable[str]) -> RunSummary:
        summary = RunSummary()
        for index, url in enumerate(targets, 1):
            logger.info(f"[{index}] Analysing {url}")
            outcome = self._run_target(url)
            summary.outcomes.append(outcome)
            if self.on_target_done is not None:
                self.on_target_done(outcome)
        logger.info(summary.summary_line())
        return summary

    def _run_target(self, url: str) -> TargetOutcome:
        try:
            return self.pipeline.run(url)
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.error(f"Analysis of {url} aborted: {reason}", exc_info=True)
            output_dir = self._export_failed(url, reason)
            return TargetOutcome(
                url=url,
                output_dir=output_dir,
                error_layers=list(OsiLayer),
                fault=reason,
            )

    def _export_failed(self, url: str, reason: str) -> Optional[Path]:
        try:
            return self.pipeline.export_failed_report(url, reason, self.pipeline.output_dir)
        except Exception as e:
            logger.error(f"Could not record failed report for {url}: {type(e).__name__}: {e}", exc_info=True)
            return None
