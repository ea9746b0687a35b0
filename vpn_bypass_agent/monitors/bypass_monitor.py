import logging
import os
from typing import Optional

from vpn_bypass_agent.lib.configuration.schemas import AgentConfig
from vpn_bypass_agent.lib.desktop_notifier import DesktopNotifier
from vpn_bypass_agent.lib.endpoint_notifier import (
    EndpointNotifier,
    MediaServerClient,
    MediaServerCredentialStore,
    NotifyResult,
    PublicAddressResolver,
    resolve_operator_path,
)
from vpn_bypass_agent.lib.firewall import (
    FirewallReconciler,
    PacketFilterControl,
    ReconcileResult,
    default_anchor,
)
from vpn_bypass_agent.lib.network_probe import NetworkProbe, create_network_query
from vpn_bypass_agent.utils import get_hostname


class BypassMonitor:
    """Privileged loop: keeps the media server reachable outside the VPN."""

    name = "plex-vpn-bypass"

    def __init__(
        self,
        probe: NetworkProbe,
        reconciler: FirewallReconciler,
        endpoint_notifier: Optional[EndpointNotifier] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.probe = probe
        self.reconciler = reconciler
        self.endpoint_notifier = endpoint_notifier

    async def tick(self) -> tuple[Optional[ReconcileResult], Optional[NotifyResult]]:
        snapshot = await self.probe.probe()
        self.logger.debug(f"Snapshot: {snapshot.describe()}")
        if not snapshot.uplink_known:
            self.logger.warning("Could not determine physical network; skipping this check")
            return None, None

        reconcile_result = None
        try:
            reconcile_result = await self.reconciler.reconcile(snapshot)
        except Exception:
            self.logger.exception("Firewall reconcile failed")

        if self.endpoint_notifier is None:
            return reconcile_result, None
        if not snapshot.uplink_complete:
            self.logger.debug("No gateway on the uplink; not checking the public IP")
            return reconcile_result, None

        notify_result = None
        try:
            notify_result = await self.endpoint_notifier.notify_if_changed(snapshot)
        except Exception:
            self.logger.exception("Endpoint notification failed")

        return reconcile_result, notify_result


def operator_home(config: AgentConfig) -> Optional[str]:
    username = config.General.operator_username
    if not username:
        return None
    home = os.path.expanduser(f"~{username}")
    # expanduser leaves unknown users untouched
    return None if home.startswith("~") else home


def build_bypass_monitor(config: AgentConfig) -> BypassMonitor:
    settings = config.Bypass
    media = config.MediaServer
    hostname_lower = config.hostname_lower(get_hostname())

    probe = NetworkProbe(
        create_network_query(timeout=settings.query_timeout),
        physical_interfaces=settings.physical_interfaces,
        tunnel_interface_prefixes=config.TunnelWatch.tunnel_interface_prefixes,
        query_timeout=settings.query_timeout,
    )
    pf_control = PacketFilterControl(
        settings.anchor or default_anchor(hostname_lower), timeout=settings.pfctl_timeout
    )
    reconciler = FirewallReconciler(
        pf_control,
        service_port=settings.service_port,
        private_networks=settings.private_networks,
    )

    home = operator_home(config)
    endpoint_notifier = EndpointNotifier(
        resolver=PublicAddressResolver(settings.public_ip_url, timeout=settings.public_ip_timeout),
        credentials=MediaServerCredentialStore(
            resolve_operator_path(media.token_config_path, home),
            resolve_operator_path(media.preferences_path, home),
        ),
        client=MediaServerClient(media.url, timeout=media.request_timeout),
        connection_scheme=media.connection_scheme,
        connection_port=media.connection_port,
        notifier=DesktopNotifier(
            group=f"{hostname_lower}-plex-vpn-bypass",
            sender=media.notification_sender,
            run_as_user=config.General.operator_username,
        ),
    )
    return BypassMonitor(probe, reconciler, endpoint_notifier)
