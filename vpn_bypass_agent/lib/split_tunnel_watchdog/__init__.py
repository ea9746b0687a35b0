"""Split tunnel configuration drift detection and repair for the VPN client."""

from .settings import configs_match, extract_monitored_fields, normalize
from .watchdog import SplitTunnelWatchdog, WatchdogResult

__all__ = [
    "SplitTunnelWatchdog",
    "WatchdogResult",
    "configs_match",
    "extract_monitored_fields",
    "normalize",
]
