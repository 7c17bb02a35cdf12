"""
Layer probes.

Each probe queries one or more capabilities and returns the LayerResult for
its layer (the Extra probe returns process bindings instead). Probes catch
the typed capability errors at the point of failure and turn them into a
detail line plus a log record; nothing they raise on purpose leaves the
probe.

Layer status means "the probe ran", not "the target is healthy". The one
exception is the application layer, where a failed request is a real error.
NETWORK_FAILURE_STATUS spells this out per layer.
"""

import json
import logging
import statistics
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..capabilities.interfaces import (
    IAdapterEnumerator,
    IArpCache,
    IDnsResolver,
    IHttpClient,
    ILatencyProber,
    IProcessTable,
    IReachabilityTester,
    IRouteTable,
    ITcpConnectionTable,
)
from ..config import MIN_ELAPSED_SECONDS
from .errors import NetworkUnreachable, ProbeUnavailable, ValidationFailure
from .models import (
    LATENCY_UNMEASURED,
    HttpResponse,
    LayerResult,
    LayerStatus,
    OsiLayer,
    ProcessBinding,
    TcpConnection,
)

logger = logging.getLogger(__name__)

ESTABLISHED = "ESTABLISHED"

# Status a layer gets when the target itself cannot be reached
NETWORK_FAILURE_STATUS: Dict[OsiLayer, LayerStatus] = {
    OsiLayer.PHYSICAL: LayerStatus.SUCCESS,
    OsiLayer.DATA_LINK: LayerStatus.SUCCESS,
    OsiLayer.NETWORK: LayerStatus.SUCCESS,
    OsiLayer.TRANSPORT: LayerStatus.SUCCESS,
    OsiLayer.SESSION: LayerStatus.SUCCESS,
    OsiLayer.PRESENTATION: LayerStatus.SUCCESS,
    OsiLayer.APPLICATION: LayerStatus.ERROR,
}


@dataclass
class ApplicationOutcome:
    """Everything the application probe contributes to the report."""

    result: LayerResult
    bandwidth_kbps: Optional[float] = None
    json_validation: Optional[bool] = None
    body: bytes = b""


def _network_failure(result: LayerResult, detail: str) -> None:
    result.add(detail)
    result.status = NETWORK_FAILURE_STATUS[result.layer]


# ============================================================================
# Layers 1-2: local host
# ============================================================================


def probe_physical(adapters: IAdapterEnumerator) -> LayerResult:
    """List the adapters that are up: name, link speed, status."""
    result = LayerResult(OsiLayer.PHYSICAL)
    try:
        up = [a for a in adapters.list_adapters() if a.is_up]
    except ProbeUnavailable as e:
        logger.warning(f"Physical layer: {e}")
        result.add(f"Adapter enumeration unavailable: {e}")
        return result

    if not up:
        logger.warning("Physical layer: no active network adapters found")
        return result

    for adapter in up:
        result.add(f"Adapter: {adapter.name} | Speed: {adapter.speed} | Status: {adapter.status}")
    logger.info(f"Physical layer: {len(up)} active adapter(s)")
    return result


def probe_data_link(routes: IRouteTable, arp: IArpCache) -> LayerResult:
    """
    Look up the default gateway and its ARP entry.

    A missing gateway or ARP entry is reported, never treated as a failure.
    """
    result = LayerResult(OsiLayer.DATA_LINK)
    try:
        gateway = routes.default_gateway()
    except ProbeUnavailable as e:
        logger.warning(f"Data link layer: {e}")
        gateway = None

    if not gateway:
        logger.warning("Data link layer: no default gateway found")
        result.add("Default Gateway: not found")
        result.add("Gateway MAC: unavailable (no gateway)")
        return result

    result.add(f"Default Gateway: {gateway}")
    try:
        mac = arp.lookup(gateway)
    except ProbeUnavailable as e:
        logger.warning(f"Data link layer: {e}")
        mac = None

    if mac:
        result.add(f"Gateway MAC: {mac}")
        logger.info(f"Data link layer: gateway {gateway} at {mac}")
    else:
        logger.warning(f"Data link layer: no ARP entry for gateway {gateway}")
        result.add(f"Gateway MAC: no ARP entry for {gateway}")
    return result


# ============================================================================
# Layers 3-5: reachability and connections
# ============================================================================


def probe_network(
    host: str, dns: IDnsResolver, reachability: IReachabilityTester, port: int
) -> Tuple[LayerResult, List[str]]:
    """
    Resolve the host and test TCP reachability on ``port``.

    Returns:
        The layer result and the resolved addresses (empty if DNS failed),
        which the transport probe filters on.
    """
    result = LayerResult(OsiLayer.NETWORK)
    addresses: List[str] = []
    try:
        addresses = dns.resolve(host)
    except NetworkUnreachable as e:
        logger.warning(f"Network layer: {e}")
        _network_failure(result, f"DNS Resolution: FAILED ({e})")

    if addresses:
        result.add(f"DNS Resolution: {host} -> {', '.join(addresses)}")
        logger.info(f"Network layer: {host} resolved to {len(addresses)} address(es)")

    reachable = reachability.is_reachable(host, port)
    result.add(f"TCP {port} Reachable: {reachable}")
    if not reachable:
        logger.warning(f"Network layer: {host}:{port} is not reachable over TCP")
    return result, addresses


def probe_transport(
    addresses: List[str], tcp_table: ITcpConnectionTable
) -> Tuple[LayerResult, List[TcpConnection]]:
    """Established TCP connections to any of the resolved addresses."""
    result = LayerResult(OsiLayer.TRANSPORT)
    if not addresses:
        logger.warning("Transport layer: no resolved addresses to match connections against")
        return result, []

    wanted: Set[str] = set(addresses)
    try:
        connections = [
            c
            for c in tcp_table.connections()
            if c.state == ESTABLISHED and c.remote_address in wanted
        ]
    except ProbeUnavailable as e:
        logger.warning(f"Transport layer: {e}")
        result.add(f"Connection table unavailable: {e}")
        return result, []

    for conn in connections:
        result.add(
            f"LocalPort: {conn.local_port} | RemotePort: {conn.remote_port} | "
            f"State: {conn.state} | PID: {conn.owner_pid}"
        )
    logger.info(f"Transport layer: {len(connections)} established connection(s) to target")
    return result, connections


def probe_session(connections: List[TcpConnection]) -> LayerResult:
    result = LayerResult(OsiLayer.SESSION)
    result.add(f"Active Sessions: {len(connections)}")
    return result


# ============================================================================
# Layers 6-7: HTTP
# ============================================================================


def probe_presentation(url: str, http: IHttpClient, timeout: float) -> LayerResult:
    """A completed HEAD request (any status code) counts as a successful handshake."""
    result = LayerResult(OsiLayer.PRESENTATION)
    try:
        http.head(url, timeout=timeout)
    except NetworkUnreachable as e:
        logger.warning(f"Presentation layer: TLS handshake failed: {e}")
        _network_failure(result, f"TLS Handshake: FAILED ({e})")
        return result

    result.add("TLS Handshake: SUCCESS")
    logger.info("Presentation layer: TLS handshake succeeded")
    return result


def compute_bandwidth(response: HttpResponse) -> float:
    """
    Download rate in KB/s.

    Without a Content-Length header the size is approximated as two bytes
    per decoded character. Elapsed time is floored at MIN_ELAPSED_SECONDS.
    """
    if response.content_length is not None:
        size_bytes = response.content_length
    else:
        size_bytes = len(response.text) * 2
    elapsed = max(response.elapsed, MIN_ELAPSED_SECONDS)
    return round((size_bytes / 1024) / elapsed, 2)


def check_json(text: str) -> None:
    """Raise ValidationFailure unless ``text`` parses as JSON."""
    try:
        json.loads(text)
    except ValueError as e:
        raise ValidationFailure(f"Response body is not valid JSON: {e}") from e


def probe_application(
    url: str, http: IHttpClient, timeout: float, validate_json: bool = False
) -> ApplicationOutcome:
    """
    GET the target and derive bandwidth and (optionally) JSON validity.

    The layer is an Error only when the request itself fails; any HTTP
    status code counts as Success.
    """
    result = LayerResult(OsiLayer.APPLICATION)
    try:
        response = http.get(url, timeout=timeout)
    except NetworkUnreachable as e:
        logger.error(f"Application layer: HTTP request failed: {e}")
        _network_failure(result, f"HTTP Request: FAILED ({e})")
        return ApplicationOutcome(result=result)

    outcome = ApplicationOutcome(
        result=result,
        bandwidth_kbps=compute_bandwidth(response),
        body=response.body,
    )
    result.add(f"HTTP Status: {response.status_code}")
    logger.info(
        f"Application layer: HTTP {response.status_code}, {outcome.bandwidth_kbps} KB/s "
        f"in {response.elapsed:.3f}s"
    )

    if validate_json:
        try:
            check_json(response.text)
            outcome.json_validation = True
            logger.info("Application layer: response body is valid JSON")
        except ValidationFailure as e:
            outcome.json_validation = False
            logger.warning(f"Application layer: {e}")
    return outcome


# ============================================================================
# Extra layer and latency
# ============================================================================


def probe_processes(
    tcp_table: ITcpConnectionTable, processes: IProcessTable, port: int
) -> List[ProcessBinding]:
    """
    Join connections to remote ``port`` with the process table.

    Connections whose process has gone away (or cannot be read) are dropped.
    """
    try:
        connections = [c for c in tcp_table.connections() if c.remote_port == port]
    except ProbeUnavailable as e:
        logger.warning(f"Extra layer: {e}")
        return []

    bindings: List[ProcessBinding] = []
    for conn in connections:
        if conn.owner_pid is None:
            continue
        name = processes.process_name(conn.owner_pid)
        if name is None:
            continue
        bindings.append(ProcessBinding(local_port=conn.local_port, process_name=name))
    logger.info(f"Extra layer: {len(bindings)} process binding(s) on remote port {port}")
    return bindings


def measure_latency(host: str, prober: ILatencyProber, port: int, samples: int) -> float:
    """
    Average of the successful round-trip samples, rounded to 2 decimals.

    Returns LATENCY_UNMEASURED when every sample failed.
    """
    rtts: List[float] = []
    for _ in range(samples):
        try:
            rtts.append(prober.round_trip_ms(host, port))
        except NetworkUnreachable as e:
            logger.debug(f"Latency sample failed: {e}")

    if not rtts:
        logger.warning(f"Latency: all {samples} round-trip samples to {host or '<no host>'} failed")
        return LATENCY_UNMEASURED

    latency = round(statistics.mean(rtts), 2)
    logger.info(f"Latency: {latency} ms over {len(rtts)}/{samples} sample(s)")
    return latency
