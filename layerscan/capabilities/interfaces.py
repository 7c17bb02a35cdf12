"""
Interfaces for the data sources and actions the layer probes consume.

Groups:
1. Local host tables:
   - IAdapterEnumerator: network adapters
   - IRouteTable: default gateway
   - IArpCache: address -> hardware address
   - ITcpConnectionTable: TCP connection table
   - IProcessTable: pid -> process name
2. Target reachability:
   - IDnsResolver, IReachabilityTester, ILatencyProber, IHttpClient
3. Output side:
   - IScreenshotRenderer: headless page capture
   - INotifier: completion notification

Implementations raise ProbeUnavailable when the data source itself is
missing or access is denied, and NetworkUnreachable for failures talking
to the target.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.models import HttpResponse, NetworkAdapter, TcpConnection


class IAdapterEnumerator(ABC):
    @abstractmethod
    def list_adapters(self) -> List[NetworkAdapter]:
        pass


class IRouteTable(ABC):
    @abstractmethod
    def default_gateway(self) -> Optional[str]:
        """Next hop of the default route, None when there is no default route."""
        pass


class IArpCache(ABC):
    @abstractmethod
    def lookup(self, address: str) -> Optional[str]:
        """Hardware address cached for ``address``, None when absent."""
        pass


class IDnsResolver(ABC):
    @abstractmethod
    def resolve(self, host: str) -> List[str]:
        pass


class IReachabilityTester(ABC):
    @abstractmethod
    def is_reachable(self, host: str, port: int) -> bool:
        pass


class ILatencyProber(ABC):
    @abstractmethod
    def round_trip_ms(self, host: str, port: int) -> float:
        """One round-trip sample in milliseconds; raises NetworkUnreachable on failure."""
        pass


class ITcpConnectionTable(ABC):
    @abstractmethod
    def connections(self) -> List[TcpConnection]:
        pass


class IProcessTable(ABC):
    @abstractmethod
    def process_name(self, pid: int) -> Optional[str]:
        """Name of the process, None if it no longer exists or cannot be read."""
        pass


class IHttpClient(ABC):
    @abstractmethod
    def head(self, url: str, timeout: float) -> HttpResponse:
        pass

    @abstractmethod
    def get(self, url: str, timeout: float) -> HttpResponse:
        pass


class IScreenshotRenderer(ABC):
    @abstractmethod
    def capture(self, url: str) -> bytes:
        """PNG bytes of the rendered page; raises ProbeUnavailable on failure."""
        pass


class INotifier(ABC):
    @abstractmethod
    def notify(self, title: str, message: str) -> bool:
        pass
