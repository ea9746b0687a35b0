import asyncio
import logging

import aiohttp

from vpn_bypass_agent.models.exceptions import MediaServerError
from vpn_bypass_agent.structures import FlatResponse


class MediaServerClient:
    def __init__(self, base_url: str = "http://localhost:32400", timeout: float = 10):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def set_custom_connections(self, connection_url: str, token: str) -> FlatResponse:
        """
        Publish the URL remote clients should use to reach the server.

        :raises MediaServerError: if the server cannot be reached
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.put(
                    f"{self.base_url}/:/prefs",
                    params={"customConnections": connection_url, "X-Plex-Token": token},
                ) as response:
                    # Flatten so nothing outlives the session context
                    content = await response.read()
                    return FlatResponse(
                        headers=response.headers,
                        url=str(response.url),
                        status_code=response.status,
                        reason=response.reason,
                        content=content,
                        encoding=response.charset,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise MediaServerError(f"Unable to reach media server at {self.base_url}: {e}") from e
