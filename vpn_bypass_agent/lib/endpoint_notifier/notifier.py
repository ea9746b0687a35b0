import logging
from typing import Optional

from vpn_bypass_agent.lib.desktop_notifier import DesktopNotifier
from vpn_bypass_agent.lib.network_probe.domain import NetworkSnapshot
from vpn_bypass_agent.models.exceptions import CredentialLookupError, MediaServerError

from .credentials import MediaServerCredentialStore
from .domain import NotifyResult, PublicEndpointRecord
from .media_server_client import MediaServerClient
from .public_address import PublicAddressResolver


class EndpointNotifier:
    """
    Tells the media server the public address it is reachable on outside the VPN.

    The record only moves after the server accepted the new address, so a
    failed push is retried on the next call.
    """

    def __init__(
        self,
        resolver: PublicAddressResolver,
        credentials: MediaServerCredentialStore,
        client: MediaServerClient,
        connection_scheme: str = "https",
        connection_port: int = 32400,
        notifier: Optional[DesktopNotifier] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.resolver = resolver
        self.credentials = credentials
        self.client = client
        self.connection_scheme = connection_scheme
        self.connection_port = connection_port
        self.notifier = notifier
        self.record = PublicEndpointRecord()

    def connection_url(self, public_ip: str) -> str:
        return f"{self.connection_scheme}://{public_ip}:{self.connection_port}"

    async def notify_if_changed(self, snapshot: NetworkSnapshot) -> NotifyResult:
        if not snapshot.physical_ip:
            self.logger.debug("No physical IP; skipping public IP check")
            return NotifyResult.SKIPPED

        public_ip = await self.resolver.resolve(snapshot.physical_ip)
        if public_ip is None:
            return NotifyResult.SKIPPED
        if public_ip == self.record.last_known_public_ip:
            return NotifyResult.UNCHANGED

        previous = self.record.last_known_public_ip or "unknown"
        self.logger.info(f"Public IP changed: {previous} -> {public_ip}")
        if self.notifier:
            self.notifier.notify("Public IP Changed", f"{previous} -> {public_ip}")

        try:
            token = self.credentials.lookup()
        except CredentialLookupError as e:
            self.logger.warning(f"Not updating media server: {e}")
            return NotifyResult.SKIPPED

        url = self.connection_url(public_ip)
        try:
            response = await self.client.set_custom_connections(url, token)
        except MediaServerError as e:
            self.logger.error(f"Failed to update media server, will retry: {e}")
            return NotifyResult.FAILED

        if not response.ok:
            self.logger.error(
                f"Media server rejected custom connection {url}: "
                f"{response.status_code} {response.reason or ''}".rstrip()
            )
            return NotifyResult.FAILED

        self.record = PublicEndpointRecord(last_known_public_ip=public_ip)
        self.logger.info(f"Media server custom connection set to {url}")
        return NotifyResult.PUSHED
