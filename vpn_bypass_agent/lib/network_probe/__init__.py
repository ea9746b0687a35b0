"""
Network Probe

Reads the facts the reconcilers act on: which physical interface is the
uplink (with its IPv4 address and scoped default gateway), and whether a
tunnel interface currently carries an IPv4 address.

Main components:
- NetworkProbe: builds a NetworkSnapshot with bounded, failure-tolerant queries
- DarwinNetworkQuery: ifconfig/route text parsing (macOS)
- LinuxNetworkQuery: netlink queries through pyroute2

Usage:
    from vpn_bypass_agent.lib.network_probe import NetworkProbe, create_network_query

    probe = NetworkProbe(create_network_query(), physical_interfaces=["en0"])
    snapshot = await probe.probe()
"""

import sys

from .darwin_query import DarwinNetworkQuery
from .domain import NetworkSnapshot
from .probe import NetworkProbe
from .query import NetworkQuery


def create_network_query(timeout: float = 5) -> NetworkQuery:
    """Pick the query backend for the running platform"""
    if sys.platform.startswith("linux"):
        # netlink is only available on Linux
        from .linux_query import LinuxNetworkQuery

        return LinuxNetworkQuery()
    return DarwinNetworkQuery(timeout=timeout)


__all__ = [
    "NetworkProbe",
    "NetworkQuery",
    "NetworkSnapshot",
    "DarwinNetworkQuery",
    "create_network_query",
]
