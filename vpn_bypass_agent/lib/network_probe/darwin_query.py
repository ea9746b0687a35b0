import logging
import re
from ipaddress import IPv4Address, AddressValueError
from typing import Optional

from vpn_bypass_agent.models.runcommand_error import RunCommandError
from vpn_bypass_agent.utils import run_command_async

from .query import NetworkQuery

INET_PATTERN = re.compile(r"^\s*inet\s+(\d{1,3}(?:\.\d{1,3}){3})\b")
GATEWAY_PATTERN = re.compile(r"^\s*gateway:\s*(\S+)")


def parse_interface_list(output: str) -> list[str]:
    """Parse the output of ``ifconfig -l``"""
    return output.split()


def parse_ipv4_addresses(output: str) -> list[str]:
    """Parse the non-loopback IPv4 addresses from ``ifconfig <interface>`` output"""
    addresses = []
    for line in output.splitlines():
        match = INET_PATTERN.match(line)
        if not match:
            continue
        try:
            address = IPv4Address(match.group(1))
        except AddressValueError:
            continue
        if address.is_loopback:
            continue
        addresses.append(str(address))
    return addresses


def parse_route_gateway(output: str) -> Optional[str]:
    """
    Parse the gateway from ``route -n get -ifscope <interface> default`` output.

    Returns None for link-layer gateways (``link#5``) and missing routes.
    """
    for line in output.splitlines():
        match = GATEWAY_PATTERN.match(line)
        if match:
            try:
                return str(IPv4Address(match.group(1)))
            except AddressValueError:
                return None
    return None


class DarwinNetworkQuery(NetworkQuery):
    """Reads the network configuration with ifconfig and route"""

    def __init__(self, timeout: float = 5):
        self.logger = logging.getLogger(__name__)
        self.timeout = timeout

    async def list_interfaces(self) -> list[str]:
        result = await run_command_async(["ifconfig", "-l"], timeout=self.timeout)
        return parse_interface_list(result.stdout)

    async def ipv4_addresses(self, interface: str) -> list[str]:
        result = await run_command_async(
            ["ifconfig", interface], raise_on_fail=False, timeout=self.timeout
        )
        if not result.success:
            # Interface does not exist (anymore)
            self.logger.debug(f"ifconfig {interface} failed: {result.stderr.strip()}")
            return []
        return parse_ipv4_addresses(result.stdout)

    async def default_gateway(self, interface: str) -> Optional[str]:
        result = await run_command_async(
            ["route", "-n", "get", "-ifscope", interface, "default"],
            raise_on_fail=False,
            timeout=self.timeout,
        )
        if not result.success:
            # "not in table" is the normal answer for an interface without a default route
            if "not in table" in result.stderr:
                return None
            raise RunCommandError(result.stderr, result.return_code, ["route", "get", interface])
        return parse_route_gateway(result.stdout)
