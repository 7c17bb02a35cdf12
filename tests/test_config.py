"""
Tests for ProbeConfig, the JSON config loader and target list helpers.
"""

import json
from pathlib import Path

import pytest

from layerscan.config import DEFAULT_HTTPS_PORT, LATENCY_SAMPLES, ProbeConfig
from layerscan.core.errors import ConfigurationError
from layerscan.utils import extract_host, load_json_config, load_targets


class TestProbeConfig:
    def test_defaults(self):
        config = ProbeConfig()
        assert config.https_port == DEFAULT_HTTPS_PORT
        assert config.latency_samples == LATENCY_SAMPLES
        assert config.output_root == Path("reports")
        assert not config.screenshot
        assert not config.validate_json
        assert config.notify

    def test_output_root_is_coerced_to_path(self):
        assert ProbeConfig(output_root="/tmp/out").output_root == Path("/tmp/out")

    @pytest.mark.parametrize(
        "kwargs",
        [{"https_port": 0}, {"https_port": 70000}, {"http_timeout": 0}, {"latency_samples": 0}],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            ProbeConfig(**kwargs)

    @pytest.mark.parametrize(
        "data",
        [
            {"latency_samples": 2.5},
            {"latency_samples": "3"},
            {"https_port": True},
            {"http_timeout": "15"},
            {"screenshot": "yes"},
            {"notify": 1},
            {"output_root": 5},
            {"user_agent": None},
        ],
    )
    def test_wrongly_typed_values(self, data):
        with pytest.raises(ConfigurationError):
            ProbeConfig.from_dict(data)

    def test_integral_timeout_is_accepted(self):
        assert ProbeConfig.from_dict({"http_timeout": 20}).http_timeout == 20

    def test_overrides_ignore_none(self):
        config = ProbeConfig()
        assert config.with_overrides(screenshot=None, output_root=None) is config

        changed = config.with_overrides(screenshot=True, output_root="out")
        assert changed.screenshot
        assert changed.output_root == Path("out")
        assert not config.screenshot

    def test_from_dict_ignores_unknown_keys(self, caplog):
        config = ProbeConfig.from_dict({"http_timeout": 3.5, "colour": "blue"})
        assert config.http_timeout == 3.5
        assert "colour" in caplog.text

    def test_from_file(self, tmp_path):
        path = tmp_path / "layerscan.json"
        path.write_text(json.dumps({"latency_samples": 5, "validate_json": True}))

        config = ProbeConfig.from_file(path)
        assert config.latency_samples == 5
        assert config.validate_json

    def test_from_file_none_gives_defaults(self):
        assert ProbeConfig.from_file(None) == ProbeConfig()

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ProbeConfig.from_file(tmp_path / "missing.json")

    def test_from_invalid_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            ProbeConfig.from_file(path)


class TestConfigLoader:
    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_json_config(path)

    def test_default_used_for_missing_file(self, tmp_path):
        assert load_json_config(tmp_path / "missing.json", default={"a": 1}) == {"a": 1}


class TestTargets:
    @pytest.mark.parametrize(
        "url,host",
        [
            ("https://example.com/index.html", "example.com"),
            ("http://Example.COM:8080/x", "example.com"),
            ("example.com", "example.com"),
            ("example.com:8443/path", "example.com"),
            ("https://[2001:db8::1]/", "2001:db8::1"),
            ("", ""),
            ("https://", ""),
        ],
    )
    def test_extract_host(self, url, host):
        assert extract_host(url) == host

    def test_load_targets(self, tmp_path):
        path = tmp_path / "targets.txt"
        path.write_text(
            "# production endpoints\n"
            "https://example.com\n"
            "\n"
            "https://api.github.com  # json api\n"
            "https://example.com\n"
        )
        assert load_targets(path) == ["https://example.com", "https://api.github.com"]

    def test_missing_targets_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_targets(tmp_path / "missing.txt")
