"""
layerscan: layer-by-layer network diagnostics for target URLs.

Probes the physical, data link, network, transport, session, presentation
and application layers (plus a process/port join) for each target and
writes a text log, JSON, CSV, HTML body and optional screenshot.
"""

__version__ = "1.0.0"
