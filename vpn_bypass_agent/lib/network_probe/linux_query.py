import logging
import socket
from ipaddress import IPv4Address
from typing import Optional

from pyroute2 import IPRoute

from vpn_bypass_agent.util_decorators import async_wrap

from .query import NetworkQuery


@async_wrap
def _link_names() -> list[str]:
    with IPRoute() as ipr:
        return [link.get_attr("IFLA_IFNAME") for link in ipr.get_links()]


@async_wrap
def _ipv4_addresses(interface: str) -> list[str]:
    with IPRoute() as ipr:
        indexes = ipr.link_lookup(ifname=interface)
        if not indexes:
            return []
        addresses = []
        for msg in ipr.get_addr(family=socket.AF_INET, index=indexes[0]):
            address = msg.get_attr("IFA_LOCAL") or msg.get_attr("IFA_ADDRESS")
            if address and not IPv4Address(address).is_loopback:
                addresses.append(address)
        return addresses


@async_wrap
def _default_gateway(interface: str) -> Optional[str]:
    with IPRoute() as ipr:
        indexes = ipr.link_lookup(ifname=interface)
        if not indexes:
            return None
        for route in ipr.get_default_routes(family=socket.AF_INET):
            if route.get_attr("RTA_OIF") == indexes[0] and route.get_attr("RTA_GATEWAY"):
                return route.get_attr("RTA_GATEWAY")
        return None


class LinuxNetworkQuery(NetworkQuery):
    """Reads the network configuration over netlink"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def list_interfaces(self) -> list[str]:
        return await _link_names()

    async def ipv4_addresses(self, interface: str) -> list[str]:
        return await _ipv4_addresses(interface)

    async def default_gateway(self, interface: str) -> Optional[str]:
        return await _default_gateway(interface)
