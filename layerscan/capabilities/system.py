"""
Local host data sources: adapters, routing, ARP, TCP table and processes.

Adapters, connections and processes come from psutil. The default gateway
and ARP cache are read from /proc on Linux, falling back to the platform
tools (ip, netstat, arp) elsewhere.
"""

import ipaddress
import logging
import re
import shutil
import socket
import struct
import subprocess
from pathlib import Path
from typing import List, Optional

import psutil

from ..core.errors import ProbeUnavailable
from ..core.models import NetworkAdapter, TcpConnection
from .interfaces import (
    IAdapterEnumerator,
    IArpCache,
    IProcessTable,
    IRouteTable,
    ITcpConnectionTable,
)

LOG = logging.getLogger(__name__)

PROC_NET_ROUTE = Path("/proc/net/route")
PROC_NET_ARP = Path("/proc/net/arp")
COMMAND_TIMEOUT = 5.0

RTF_GATEWAY = 0x2
ATF_COMPLETE = 0x2

_MAC_RE = re.compile(r"\b([0-9a-fA-F]{1,2}(?:[:-][0-9a-fA-F]{1,2}){5})\b")
_EMPTY_MAC = "00:00:00:00:00:00"


def _run_tool(args: List[str]) -> Optional[str]:
    """
    Run a platform tool and return its stdout.

    Returns None when the tool is not installed, so callers can try the
    next source.
    """
    if shutil.which(args[0]) is None:
        return None
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=COMMAND_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        LOG.debug(f"{' '.join(args)} failed: {e}")
        return None
    return result.stdout


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


class PsutilAdapterEnumerator(IAdapterEnumerator):
    def list_adapters(self) -> List[NetworkAdapter]:
        try:
            stats = psutil.net_if_stats()
        except (psutil.AccessDenied, PermissionError, OSError) as e:
            raise ProbeUnavailable(f"Cannot enumerate network adapters: {e}") from e

        adapters = []
        for name, info in stats.items():
            speed = f"{info.speed} Mbps" if info.speed else "Unknown"
            adapters.append(
                NetworkAdapter(name=name, speed=speed, status="Up" if info.isup else "Down")
            )
        return adapters


class SystemRouteTable(IRouteTable):
    """Default gateway from /proc/net/route, `ip route` or `netstat -rn`."""

    def __init__(self, proc_route: Path = PROC_NET_ROUTE):
        self.proc_route = proc_route

    def default_gateway(self) -> Optional[str]:
        if self.proc_route.exists():
            return self._from_proc()

        output = _run_tool(["ip", "route", "show", "default"])
        if output is not None:
            return self._from_ip_route(output)

        output = _run_tool(["netstat", "-rn"])
        if output is not None:
            return self._from_netstat(output)

        raise ProbeUnavailable("No routing table source available")

    def _from_proc(self) -> Optional[str]:
        try:
            lines = self.proc_route.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise ProbeUnavailable(f"Cannot read {self.proc_route}: {e}") from e

        for line in lines[1:]:
            fields = line.split()
            if len(fields) < 4:
                continue
            destination, gateway, flags = fields[1], fields[2], int(fields[3], 16)
            if destination == "00000000" and flags & RTF_GATEWAY:
                return socket.inet_ntoa(struct.pack("<L", int(gateway, 16)))
        return None

    @staticmethod
    def _from_ip_route(output: str) -> Optional[str]:
        # default via 192.168.1.1 dev eth0 proto dhcp metric 100
        for line in output.splitlines():
            parts = line.split()
            if "via" not in parts:
                continue
            via_index = parts.index("via") + 1
            if via_index < len(parts) and _is_ip(parts[via_index]):
                return parts[via_index]
        return None

    @staticmethod
    def _from_netstat(output: str) -> Optional[str]:
        for line in output.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[0] in ("default", "0.0.0.0") and _is_ip(parts[1]):
                return parts[1]
        return None


class SystemArpCache(IArpCache):
    """Neighbour lookups from /proc/net/arp, `ip neigh` or `arp -an`."""

    def __init__(self, proc_arp: Path = PROC_NET_ARP):
        self.proc_arp = proc_arp

    def lookup(self, address: str) -> Optional[str]:
        if self.proc_arp.exists():
            return self._from_proc(address)

        output = _run_tool(["ip", "neigh", "show", address])
        if output is not None:
            return self._mac_in(output, address)

        output = _run_tool(["arp", "-an"])
        if output is not None:
            return self._mac_in(output, address)

        raise ProbeUnavailable("No ARP cache source available")

    def _from_proc(self, address: str) -> Optional[str]:
        try:
            lines = self.proc_arp.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise ProbeUnavailable(f"Cannot read {self.proc_arp}: {e}") from e

        for line in lines[1:]:
            fields = line.split()
            if len(fields) < 4 or fields[0] != address:
                continue
            if not int(fields[2], 16) & ATF_COMPLETE or fields[3] == _EMPTY_MAC:
                return None
            return fields[3]
        return None

    @staticmethod
    def _mac_in(output: str, address: str) -> Optional[str]:
        # Matches both "(192.168.1.1) at aa:bb:..." and "192.168.1.1 dev eth0 lladdr aa:bb:..."
        token = re.compile(rf"(^|[\s(]){re.escape(address)}([\s)]|$)")
        for line in output.splitlines():
            if not token.search(line):
                continue
            match = _MAC_RE.search(line)
            if match and match.group(1) != _EMPTY_MAC:
                return match.group(1).lower().replace("-", ":")
        return None


class PsutilConnectionTable(ITcpConnectionTable):
    def connections(self) -> List[TcpConnection]:
        try:
            raw = psutil.net_connections(kind="tcp")
        except (psutil.AccessDenied, PermissionError) as e:
            raise ProbeUnavailable(
                "Cannot read TCP connection table (access denied); run with elevated privileges"
            ) from e

        connections = []
        for conn in raw:
            if not conn.raddr:
                continue
            connections.append(
                TcpConnection(
                    local_port=conn.laddr.port if conn.laddr else 0,
                    remote_port=conn.raddr.port,
                    state=conn.status,
                    owner_pid=conn.pid,
                    remote_address=conn.raddr.ip,
                )
            )
        return connections


class PsutilProcessTable(IProcessTable):
    def process_name(self, pid: int) -> Optional[str]:
        try:
            return psutil.Process(pid).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            return None
