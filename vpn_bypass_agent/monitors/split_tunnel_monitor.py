import logging

from vpn_bypass_agent.lib.configuration.schemas import AgentConfig
from vpn_bypass_agent.lib.desktop_notifier import DesktopNotifier
from vpn_bypass_agent.lib.split_tunnel_watchdog import SplitTunnelWatchdog, WatchdogResult


class SplitTunnelMonitor:
    """User-level loop: restores the VPN client's split tunnel settings when they drift."""

    name = "pia-monitor"

    def __init__(self, watchdog: SplitTunnelWatchdog):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.watchdog = watchdog

    async def tick(self) -> WatchdogResult:
        return await self.watchdog.check_and_fix()


def build_split_tunnel_monitor(config: AgentConfig) -> SplitTunnelMonitor:
    settings = config.SplitTunnel
    notifier = DesktopNotifier(group="pia-monitor", sender=settings.notification_sender)
    return SplitTunnelMonitor(SplitTunnelWatchdog(settings, notifier))
