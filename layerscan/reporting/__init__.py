"""
Report output

Per-target output directory, text log and the JSON/CSV/HTML/PNG artifacts.
"""

from .output_dir import create_target_dir, sanitize_url
from .serializers import CSV_HEADER, csv_rows, write_bytes, write_csv, write_json
from .target_log import TaggedFormatter, target_log

__all__ = [
    "create_target_dir",
    "sanitize_url",
    "CSV_HEADER",
    "csv_rows",
    "write_bytes",
    "write_csv",
    "write_json",
    "TaggedFormatter",
    "target_log",
]
