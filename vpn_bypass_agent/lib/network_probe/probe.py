import asyncio
import logging
from typing import Any, Awaitable, Iterable, Optional

from .domain import NetworkSnapshot
from .query import NetworkQuery

# Used when the interface list itself cannot be read
FALLBACK_TUNNEL_SCAN_DEPTH = 16


class NetworkProbe:
    """Builds a NetworkSnapshot from a NetworkQuery, one bounded query at a time"""

    def __init__(
        self,
        query: NetworkQuery,
        physical_interfaces: Optional[Iterable[str]] = None,
        tunnel_interface_prefixes: Iterable[str] = ("utun",),
        query_timeout: float = 5,
    ):
        self.logger = logging.getLogger(__name__)
        self.query = query
        self.physical_interfaces = list(physical_interfaces or [])
        self.tunnel_interface_prefixes = tuple(tunnel_interface_prefixes)
        self.query_timeout = query_timeout

    async def probe(self) -> NetworkSnapshot:
        """
        Read the current network truth.

        Never raises for query failures: a failed lookup leaves the matching
        snapshot field absent.
        """
        interfaces = await self._bounded(self.query.list_interfaces(), "list interfaces")

        physical_interface, physical_ip, gateway = await self._detect_physical(interfaces)
        tunnel_interface, tunnel_ip = await self._detect_tunnel(interfaces)

        return NetworkSnapshot(
            physical_interface=physical_interface,
            physical_ip=physical_ip,
            gateway=gateway,
            tunnel_interface=tunnel_interface,
            tunnel_ip=tunnel_ip,
        )

    def is_tunnel_interface(self, interface: str) -> bool:
        return interface.startswith(self.tunnel_interface_prefixes)

    def physical_candidates(self, interfaces: Optional[list[str]]) -> list[str]:
        if self.physical_interfaces:
            return list(self.physical_interfaces)
        if not interfaces:
            return []
        return [
            name
            for name in interfaces
            if not name.startswith("lo") and not self.is_tunnel_interface(name)
        ]

    def tunnel_candidates(self, interfaces: Optional[list[str]]) -> list[str]:
        if interfaces is None:
            return [
                f"{prefix}{i}"
                for prefix in self.tunnel_interface_prefixes
                for i in range(FALLBACK_TUNNEL_SCAN_DEPTH)
            ]
        return [name for name in interfaces if self.is_tunnel_interface(name)]

    async def _detect_physical(
        self, interfaces: Optional[list[str]]
    ) -> tuple[Optional[str], Optional[str], Optional[str]]:
        first_with_address: Optional[tuple[str, str]] = None

        for candidate in self.physical_candidates(interfaces):
            addresses = await self._bounded(
                self.query.ipv4_addresses(candidate), f"read addresses of {candidate}"
            )
            if not addresses:
                continue
            address = addresses[0]
            if first_with_address is None:
                first_with_address = (candidate, address)

            gateway = await self._bounded(
                self.query.default_gateway(candidate), f"read gateway of {candidate}"
            )
            if gateway:
                return candidate, address, gateway

        if first_with_address is not None:
            self.logger.warning(
                f"No default gateway found for {first_with_address[0]}; uplink is incomplete"
            )
            return first_with_address[0], first_with_address[1], None
        return None, None, None

    async def _detect_tunnel(
        self, interfaces: Optional[list[str]]
    ) -> tuple[Optional[str], Optional[str]]:
        for candidate in self.tunnel_candidates(interfaces):
            addresses = await self._bounded(
                self.query.ipv4_addresses(candidate), f"read addresses of {candidate}"
            )
            if addresses:
                return candidate, addresses[0]
        return None, None

    async def _bounded(self, awaitable: Awaitable[Any], description: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.query_timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"Timed out trying to {description}")
        except Exception as e:
            self.logger.warning(f"Failed to {description}: {e}")
        return None
