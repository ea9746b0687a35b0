import abc
from typing import Optional


class NetworkQuery(abc.ABC):
    """
    Narrow read-only view of the OS network configuration used by the probe.

    Implementations raise on query failure; the probe decides which fields
    of the snapshot become absent as a result.
    """

    @abc.abstractmethod
    async def list_interfaces(self) -> list[str]:
        """Names of all interfaces, in the order the OS reports them."""

    @abc.abstractmethod
    async def ipv4_addresses(self, interface: str) -> list[str]:
        """Non-loopback IPv4 addresses configured on ``interface``."""

    @abc.abstractmethod
    async def default_gateway(self, interface: str) -> Optional[str]:
        """Default gateway scoped to ``interface``, or None if there is none."""
