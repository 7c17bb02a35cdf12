"""
Tests for the layerscan command line.
"""

import json
from unittest.mock import patch

import pytest

from layerscan.cli import (
    EXIT_OK,
    EXIT_TARGET_FAULT,
    EXIT_USAGE,
    _display,
    build_parser,
    collect_targets,
    main,
)

from .fakes import TARGET_URL, healthy_capabilities


@pytest.fixture
def fake_capabilities():
    capabilities = healthy_capabilities()
    capabilities.latency.samples = [5.0] * 9
    with patch("layerscan.cli.build_default_capabilities", return_value=capabilities) as build:
        yield build, capabilities


def _report_dirs(root):
    return sorted(p for p in root.iterdir() if p.is_dir())


class TestParser:
    def test_flags(self):
        args = build_parser().parse_args(
            ["https://a.example", "--screenshot", "--validate-json", "-o", "out", "--no-notify", "-v"]
        )
        assert args.urls == ["https://a.example"]
        assert args.screenshot and args.validate_json and args.no_notify and args.verbose
        assert args.output_dir == "out"

    def test_collect_targets_merges_and_dedupes(self, tmp_path):
        targets_file = tmp_path / "targets.txt"
        targets_file.write_text("https://b.example\nhttps://a.example\n")

        assert collect_targets(["https://a.example"], str(targets_file)) == [
            "https://a.example",
            "https://b.example",
        ]


class TestMain:
    def test_single_target(self, tmp_path, fake_capabilities):
        build, _ = fake_capabilities
        root = tmp_path / "out"

        assert main([TARGET_URL, "-o", str(root), "--no-notify"]) == EXIT_OK

        config = build.call_args[0][0]
        assert config.output_root == root
        assert config.notify is False
        (report_dir,) = _report_dirs(root)
        assert {p.name for p in report_dir.iterdir()} >= {"analysis.log", "report.json", "report.csv"}

    def test_targets_file(self, tmp_path, fake_capabilities):
        targets_file = tmp_path / "targets.txt"
        targets_file.write_text(f"# list\n{TARGET_URL}\nhttps://example.org\n")
        root = tmp_path / "out"

        assert main(["-f", str(targets_file), "-o", str(root)]) == EXIT_OK
        assert len(_report_dirs(root)) == 2

    def test_validate_json_flag(self, tmp_path, fake_capabilities):
        root = tmp_path / "out"
        main([TARGET_URL, "-o", str(root), "--validate-json"])

        (report_dir,) = _report_dirs(root)
        data = json.loads((report_dir / "report.json").read_text(encoding="utf-8"))
        assert all(layer["status"] == "Error" for layer in data["layers"])

    def test_undecodable_url_is_reported(self, tmp_path, fake_capabilities):
        root = tmp_path / "out"

        assert main(["https://exa\udcffmple.com", TARGET_URL, "-o", str(root)]) == EXIT_OK
        assert len(_report_dirs(root)) == 2

    def test_display_escapes_undecodable_bytes(self):
        assert _display("https://exa\udcffmple.com/[x]") == "https://exa\\udcffmple.com/\\[x]"

    def test_http_session_closed(self, tmp_path, fake_capabilities):
        _, capabilities = fake_capabilities
        capabilities.http.close = lambda: setattr(capabilities.http, "closed", True)

        main([TARGET_URL, "-o", str(tmp_path / "out")])
        assert capabilities.http.closed

    def test_no_targets_is_a_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == EXIT_USAGE

    def test_missing_targets_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["-f", str(tmp_path / "missing.txt")])
        assert exc.value.code == EXIT_USAGE

    def test_bad_config_file(self, tmp_path, fake_capabilities):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"https_port": -1}))

        assert main([TARGET_URL, "--config", str(config)]) == EXIT_USAGE
        fake_capabilities[0].assert_not_called()
