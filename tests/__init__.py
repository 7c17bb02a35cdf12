"""
Test package for layerscan.

Unit tests for the probes, aggregation and serializers, pipeline/run
controller scenario tests driven by in-memory capability fakes (see
fakes.py), and property-based tests for the report invariants.
"""
