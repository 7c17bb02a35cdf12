"""
Probe capability set.

CapabilitySet bundles every data source and action the pipeline consumes;
build_default_capabilities() wires the real implementations. Tests build
their own CapabilitySet from fakes.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from ..config import ProbeConfig
from .interfaces import (
    IAdapterEnumerator,
    IArpCache,
    IDnsResolver,
    IHttpClient,
    ILatencyProber,
    INotifier,
    IProcessTable,
    IReachabilityTester,
    IRouteTable,
    IScreenshotRenderer,
    ITcpConnectionTable,
)
from .network import RequestsHttpClient, SocketDnsResolver, SocketReachabilityTester, TcpLatencyProber
from .notifier import ConsoleNotifier, DesktopNotifier
from .renderer import PlaywrightRenderer
from .system import (
    PsutilAdapterEnumerator,
    PsutilConnectionTable,
    PsutilProcessTable,
    SystemArpCache,
    SystemRouteTable,
)


@dataclass
class CapabilitySet:
    """Container for all capabilities used by one run."""

    adapters: IAdapterEnumerator
    routes: IRouteTable
    arp: IArpCache
    dns: IDnsResolver
    reachability: IReachabilityTester
    latency: ILatencyProber
    tcp_table: ITcpConnectionTable
    processes: IProcessTable
    http: IHttpClient
    notifier: INotifier
    renderer: Optional[IScreenshotRenderer] = None


def build_default_capabilities(config: ProbeConfig, console: Optional[Console] = None) -> CapabilitySet:
    """Wire the psutil/socket/requests/playwright implementations for a run."""
    return CapabilitySet(
        adapters=PsutilAdapterEnumerator(),
        routes=SystemRouteTable(),
        arp=SystemArpCache(),
        dns=SocketDnsResolver(),
        reachability=SocketReachabilityTester(timeout=config.connect_timeout),
        latency=TcpLatencyProber(timeout=config.connect_timeout),
        tcp_table=PsutilConnectionTable(),
        processes=PsutilProcessTable(),
        http=RequestsHttpClient(user_agent=config.user_agent),
        notifier=DesktopNotifier(console) if config.notify else ConsoleNotifier(console),
        renderer=(
            PlaywrightRenderer(timeout=config.screenshot_timeout, user_agent=config.user_agent)
            if config.screenshot
            else None
        ),
    )


__all__ = [
    "CapabilitySet",
    "build_default_capabilities",
    "IAdapterEnumerator",
    "IArpCache",
    "IDnsResolver",
    "IHttpClient",
    "ILatencyProber",
    "INotifier",
    "IProcessTable",
    "IReachabilityTester",
    "IRouteTable",
    "IScreenshotRenderer",
    "ITcpConnectionTable",
]
