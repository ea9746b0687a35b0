import logging

from vpn_bypass_agent.lib.configuration.schemas import AgentConfig
from vpn_bypass_agent.lib.desktop_notifier import DesktopNotifier
from vpn_bypass_agent.lib.network_probe import NetworkProbe, create_network_query
from vpn_bypass_agent.lib.process_supervisor import (
    DarwinAppController,
    ProcessSupervisor,
    SupervisorAction,
)
from vpn_bypass_agent.utils import get_hostname


class TunnelWatchMonitor:
    """User-level loop: the managed application only runs bound to the tunnel."""

    name = "vpn-monitor"

    def __init__(self, probe: NetworkProbe, supervisor: ProcessSupervisor):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.probe = probe
        self.supervisor = supervisor

    async def tick(self) -> SupervisorAction:
        snapshot = await self.probe.probe()
        action = await self.supervisor.handle(snapshot)
        if action is not SupervisorAction.NONE:
            self.logger.info(f"{snapshot.describe()} -> {action.value}")
        return action


def build_tunnel_watch_monitor(config: AgentConfig) -> TunnelWatchMonitor:
    settings = config.TunnelWatch
    hostname_lower = config.hostname_lower(get_hostname())
    probe = NetworkProbe(
        create_network_query(timeout=settings.query_timeout),
        physical_interfaces=config.Bypass.physical_interfaces,
        tunnel_interface_prefixes=settings.tunnel_interface_prefixes,
        query_timeout=settings.query_timeout,
    )
    controller = DarwinAppController(
        settings.app_name,
        settings.app_bundle_id,
        bind_address_key=settings.bind_address_key,
        timeout=settings.command_timeout,
    )
    notifier = DesktopNotifier(
        group=f"{hostname_lower}-vpn-monitor", sender=settings.notification_sender
    )
    return TunnelWatchMonitor(probe, ProcessSupervisor(controller, settings, notifier))
