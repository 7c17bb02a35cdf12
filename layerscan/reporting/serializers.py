"""
Report serializers: JSON document, flattened CSV, raw HTML body and screenshot.

Every writer raises ArtifactWriteFailure on I/O or encoding errors so the
pipeline can log the failure and carry on with the next artifact. Text that
cannot be encoded (surrogate-escaped bytes from the command line) is written
with backslash escapes.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Iterator, List

from ..core.errors import ArtifactWriteFailure
from ..core.models import AnalysisReport

LOG = logging.getLogger(__name__)

CSV_HEADER = ["Layer", "Status", "Detail"]
ENCODING_ERRORS = "backslashreplace"


def csv_rows(report: AnalysisReport) -> Iterator[List[str]]:
    """One (Layer, Status, Detail) row per detail line, in layer order."""
    for result in report.layers:
        for detail in result.details:
            yield [result.layer.label, result.status.value, detail]


def write_json(report: AnalysisReport, path: Path) -> Path:
    try:
        with open(path, "w", encoding="utf-8", errors=ENCODING_ERRORS) as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
    except (OSError, ValueError) as e:
        raise ArtifactWriteFailure(f"Failed to write JSON report {path}: {e}") from e
    return path


def write_csv(report: AnalysisReport, path: Path) -> Path:
    try:
        with open(path, "w", encoding="utf-8", errors=ENCODING_ERRORS, newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)
            writer.writerows(csv_rows(report))
    except (OSError, ValueError) as e:
        raise ArtifactWriteFailure(f"Failed to write CSV report {path}: {e}") from e
    return path


def write_bytes(data: bytes, path: Path, kind: str) -> Path:
    """Write raw bytes (HTML body, PNG screenshot) unchanged."""
    try:
        path.write_bytes(data)
    except OSError as e:
        raise ArtifactWriteFailure(f"Failed to write {kind} {path}: {e}") from e
    return path
