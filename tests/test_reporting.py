"""
Tests for output directories, serializers and the per-target log.
"""

import csv
import json
import logging
from datetime import datetime

import pytest

from layerscan.core.errors import ArtifactWriteFailure
from layerscan.core.models import AnalysisReport, LayerResult, LayerStatus, OsiLayer, ProcessBinding
from layerscan.reporting import (
    CSV_HEADER,
    TaggedFormatter,
    create_target_dir,
    csv_rows,
    sanitize_url,
    target_log,
    write_bytes,
    write_csv,
    write_json,
)

STAMP = datetime(2024, 3, 9, 14, 5, 7)


@pytest.fixture
def report():
    layers = [LayerResult(layer, details=[f"{layer.label} ok"]) for layer in OsiLayer]
    layers[1].details.append('Gateway MAC: "quoted", with comma')
    layers[6] = LayerResult.error(OsiLayer.APPLICATION, "HTTP Request: FAILED (timeout)")
    return AnalysisReport(
        timestamp=STAMP,
        url="https://example.com",
        latency_ms=12.34,
        layers=layers,
        processes=[ProcessBinding(51000, "firefox")],
    )


class TestSanitizeUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com", "example.com"),
            ("https://example.com/a/b?q=1&x=2", "example.com_a_b_q_1_x_2"),
            ("http://user:pw@host:8080/", "user_pw_host_8080"),
            ("example.com", "example.com"),
            ("https://", "target"),
            ("https://пример.рф/", "target"),
        ],
    )
    def test_sanitize(self, url, expected):
        assert sanitize_url(url) == expected

    def test_truncates_long_urls(self):
        name = sanitize_url("https://example.com/" + "a" * 200)
        assert len(name) == 80
        assert name.startswith("example.com_aaa")


class TestCreateTargetDir:
    def test_directory_name(self, tmp_path):
        path = create_target_dir(tmp_path, "https://example.com/x", STAMP)
        assert path.is_dir()
        assert path.name == "example.com_x_20240309_140507"

    def test_collision_gets_suffix(self, tmp_path):
        first = create_target_dir(tmp_path, "https://example.com", STAMP)
        second = create_target_dir(tmp_path, "https://example.com", STAMP)
        third = create_target_dir(tmp_path, "https://example.com", STAMP)

        assert first != second != third
        assert second.name == first.name + "_2"
        assert third.name == first.name + "_3"

    def test_unwritable_root(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(ArtifactWriteFailure):
            create_target_dir(blocker, "https://example.com", STAMP)


class TestSerializers:
    def test_json_document(self, report, tmp_path):
        path = write_json(report, tmp_path / "report.json")
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data == report.to_dict()
        assert data["layers"][6]["status"] == "Error"

    def test_csv_rows_match_details(self, report, tmp_path):
        path = write_csv(report, tmp_path / "report.csv")
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))

        assert rows[0] == CSV_HEADER
        assert len(rows) - 1 == report.detail_count
        assert ["DataLink", "Success", 'Gateway MAC: "quoted", with comma'] in rows
        assert rows[-1] == ["Application", "Error", "HTTP Request: FAILED (timeout)"]

    def test_csv_rows_without_details(self):
        empty = AnalysisReport(
            timestamp=STAMP, url="https://example.com", layers=[LayerResult(l) for l in OsiLayer]
        )
        assert list(csv_rows(empty)) == []

    def test_bytes_written_unchanged(self, tmp_path):
        body = "<html>ünïcode</html>".encode("utf-8") + b"\x00\xff"
        path = write_bytes(body, tmp_path / "response.html", "HTML response")
        assert path.read_bytes() == body

    @pytest.mark.parametrize("writer", [write_json, write_csv])
    def test_report_write_failure(self, report, tmp_path, writer):
        with pytest.raises(ArtifactWriteFailure):
            writer(report, tmp_path / "missing" / "report")

    def test_bytes_write_failure(self, tmp_path):
        with pytest.raises(ArtifactWriteFailure, match="screenshot"):
            write_bytes(b"png", tmp_path / "missing" / "shot.png", "screenshot")

    def test_undecodable_text_is_escaped(self, report, tmp_path):
        report.url = "https://exa\udcffmple.com"
        report.layers[0].details.append("Adapter: eth\udcff0")

        data = json.loads(write_json(report, tmp_path / "report.json").read_text(encoding="utf-8"))
        with open(write_csv(report, tmp_path / "report.csv"), encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))

        assert data["url"] == report.url
        assert ["Physical", "Success", "Adapter: eth\\udcff0"] in rows


class TestTargetLog:
    def test_levels_are_tagged(self, tmp_path):
        path = tmp_path / "analysis.log"
        log = logging.getLogger("layerscan.tests")
        with target_log(path):
            log.debug("hidden")
            log.info("plain")
            log.warning("careful")
            log.error("broken")
            log.critical("fatal")
        log.info("after close")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 4
        assert "[INFO] plain" in lines[0]
        assert "[WARN] careful" in lines[1]
        assert "[ERROR] broken" in lines[2]
        assert "[ERROR] fatal" in lines[3]

    def test_handler_is_detached_and_level_restored(self, tmp_path):
        package_logger = logging.getLogger("layerscan")
        before_handlers = list(package_logger.handlers)
        before_level = package_logger.level

        with target_log(tmp_path / "analysis.log") as handler:
            assert handler in package_logger.handlers

        assert package_logger.handlers == before_handlers
        assert package_logger.level == before_level

    def test_formatter_leaves_record_untouched(self):
        record = logging.LogRecord("layerscan", logging.WARNING, __file__, 1, "msg", None, None)
        line = TaggedFormatter().format(record)

        assert "[WARN] msg" in line
        assert record.levelname == "WARNING"

    def test_unopenable_log_file(self, tmp_path):
        with pytest.raises(ArtifactWriteFailure):
            with target_log(tmp_path / "missing" / "analysis.log"):
                pass

    def test_traceback_is_folded_into_one_line(self, tmp_path):
        path = tmp_path / "analysis.log"
        log = logging.getLogger("layerscan.tests")
        with target_log(path):
            try:
                raise RuntimeError("driver crashed")
            except RuntimeError:
                log.error("lookup failed\nwith context", exc_info=True)
            log.info("next")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert "[ERROR] lookup failed | with context | Traceback (most recent call last):" in lines[0]
        assert lines[0].endswith("RuntimeError: driver crashed")
        assert "[INFO] next" in lines[1]

    def test_undecodable_message_is_escaped(self, tmp_path):
        path = tmp_path / "analysis.log"
        with target_log(path):
            logging.getLogger("layerscan.tests").info("Starting analysis of https://exa\udcffmple.com")

        assert "https://exa\\udcffmple.com" in path.read_text(encoding="utf-8")


def test_layer_status_values():
    assert [s.value for s in LayerStatus] == ["Success", "Error"]
