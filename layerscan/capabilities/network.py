"""
Target-facing data sources: DNS, TCP reachability, round-trip samples and HTTP.
"""

import logging
import socket
import time
from typing import List, Optional

import requests

from ..config import CONNECT_TIMEOUT, USER_AGENT
from ..core.errors import NetworkUnreachable
from ..core.models import HttpResponse
from .interfaces import IDnsResolver, IHttpClient, ILatencyProber, IReachabilityTester

LOG = logging.getLogger(__name__)


class SocketDnsResolver(IDnsResolver):
    def resolve(self, host: str) -> List[str]:
        """
        Resolve a host to its addresses, in resolver order without duplicates.

        Raises:
            NetworkUnreachable: If the name does not resolve
        """
        if not host:
            raise NetworkUnreachable("No host to resolve")
        try:
            infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
        except (socket.gaierror, UnicodeError) as e:
            raise NetworkUnreachable(f"DNS resolution failed for {host}: {e}", context={"host": host}) from e

        addresses: List[str] = []
        for _family, _type, _proto, _canon, sockaddr in infos:
            address = sockaddr[0]
            if address not in addresses:
                addresses.append(address)
        return addresses


class SocketReachabilityTester(IReachabilityTester):
    def __init__(self, timeout: float = CONNECT_TIMEOUT):
        self.timeout = timeout

    def is_reachable(self, host: str, port: int) -> bool:
        if not host:
            return False
        try:
            with socket.create_connection((host, port), timeout=self.timeout):
                return True
        except (OSError, UnicodeError) as e:
            LOG.debug(f"TCP connect to {host}:{port} failed: {e}")
            return False


class TcpLatencyProber(ILatencyProber):
    """Round-trip samples taken as TCP connect times (no raw-socket privileges needed)."""

    def __init__(self, timeout: float = CONNECT_TIMEOUT):
        self.timeout = timeout

    def round_trip_ms(self, host: str, port: int) -> float:
        if not host:
            raise NetworkUnreachable("No host to measure")
        start = time.perf_counter()
        try:
            with socket.create_connection((host, port), timeout=self.timeout):
                pass
        except (OSError, UnicodeError) as e:
            raise NetworkUnreachable(f"Round-trip sample to {host}:{port} failed: {e}") from e
        return (time.perf_counter() - start) * 1000


class RequestsHttpClient(IHttpClient):
    """HTTP client on a shared requests.Session."""

    def __init__(self, user_agent: str = USER_AGENT, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def head(self, url: str, timeout: float) -> HttpResponse:
        return self._request("HEAD", url, timeout)

    def get(self, url: str, timeout: float) -> HttpResponse:
        return self._request("GET", url, timeout)

    def _request(self, method: str, url: str, timeout: float) -> HttpResponse:
        start = time.perf_counter()
        try:
            response = self.session.request(method, url, timeout=timeout, allow_redirects=True)
            body = response.content
            text = response.text if body else ""
        except requests.RequestException as e:
            raise NetworkUnreachable(
                f"{method} {url} failed: {type(e).__name__}: {e}", context={"url": url}
            ) from e
        elapsed = time.perf_counter() - start

        return HttpResponse(
            status_code=response.status_code,
            body=body,
            text=text,
            content_length=_content_length(response.headers.get("Content-Length")),
            elapsed=elapsed,
        )

    def close(self) -> None:
        self.session.close()


def _content_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None
