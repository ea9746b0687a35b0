import asyncio
import logging
from ipaddress import IPv4Address
from typing import Optional

import aiohttp


def parse_public_address(body: str) -> Optional[str]:
    candidate = body.strip()
    try:
        return str(IPv4Address(candidate))
    except ValueError:
        return None


class PublicAddressResolver:
    """Asks an echo service which public address traffic from a local address leaves with"""

    def __init__(self, url: str = "http://checkip.amazonaws.com", timeout: float = 10):
        self.logger = logging.getLogger(__name__)
        self.url = url
        self.timeout = timeout

    async def resolve(self, local_ip: str) -> Optional[str]:
        connector = aiohttp.TCPConnector(local_addr=(local_ip, 0))
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
                async with session.get(self.url) as response:
                    if response.status != 200:
                        self.logger.warning(f"{self.url} answered {response.status}")
                        return None
                    body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self.logger.warning(f"Unable to resolve public IP via {local_ip}: {e}")
            return None

        address = parse_public_address(body)
        if address is None:
            self.logger.warning(f"Invalid public IP answer from {self.url}: {body[:64]!r}")
        return address
