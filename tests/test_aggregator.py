"""
Tests for ReportBuilder.
"""

from datetime import datetime

import pytest

from layerscan.core.aggregator import ReportBuilder
from layerscan.core.models import LATENCY_UNMEASURED, LayerResult, LayerStatus, OsiLayer, ProcessBinding
from layerscan.core.probes import ApplicationOutcome

from .fakes import TARGET_HOST, TARGET_URL, FakeLatency


def _builder_with_layers(layers):
    builder = ReportBuilder(TARGET_URL, datetime(2024, 1, 1))
    for layer in layers:
        builder.add_layer(LayerResult(layer, details=[f"{layer.label} detail"]))
    return builder


def test_build_orders_layers_regardless_of_insertion_order():
    builder = _builder_with_layers(reversed(list(OsiLayer)))
    report = builder.build()

    assert [r.layer for r in report.layers] == list(OsiLayer)
    assert report.url == TARGET_URL
    assert report.timestamp == datetime(2024, 1, 1)


def test_duplicate_layer_is_rejected():
    builder = _builder_with_layers([OsiLayer.PHYSICAL])
    with pytest.raises(ValueError, match="already recorded"):
        builder.add_layer(LayerResult(OsiLayer.PHYSICAL))


def test_build_requires_every_layer():
    builder = _builder_with_layers([OsiLayer.PHYSICAL, OsiLayer.DATA_LINK])
    with pytest.raises(ValueError, match="Network"):
        builder.build()


def test_application_outcome_carries_metrics():
    builder = _builder_with_layers(list(OsiLayer)[:-1])
    outcome = ApplicationOutcome(
        result=LayerResult(OsiLayer.APPLICATION, details=["HTTP Status: 200"]),
        bandwidth_kbps=19.53,
        json_validation=True,
        body=b"{}",
    )
    builder.add_application(outcome)
    builder.set_processes([ProcessBinding(51000, "firefox")])
    report = builder.build()

    assert report.bandwidth_kbps == 19.53
    assert report.json_validation is True
    assert report.processes == [ProcessBinding(51000, "firefox")]
    assert builder.response_body == b"{}"
    assert report.layers[-1].status == LayerStatus.SUCCESS


def test_latency_is_unmeasured_until_measured():
    builder = _builder_with_layers(list(OsiLayer))
    assert builder.build().latency_ms == LATENCY_UNMEASURED

    assert builder.measure_latency(TARGET_HOST, FakeLatency([5.0, 7.0]), 443, 2) == 6.0
    assert builder.build().latency_ms == 6.0
