"""
Monitor loops.

Each monitor owns the components for one loop and exposes ``tick()``; the
runner schedules ticks on an interval. Monitors share no state with each
other and are meant to run in separate processes.
"""

from .bypass_monitor import BypassMonitor, build_bypass_monitor
from .runner import MonitorRunner, check_intervals
from .split_tunnel_monitor import SplitTunnelMonitor, build_split_tunnel_monitor
from .tunnel_monitor import TunnelWatchMonitor, build_tunnel_watch_monitor

__all__ = [
    "BypassMonitor",
    "MonitorRunner",
    "SplitTunnelMonitor",
    "TunnelWatchMonitor",
    "build_bypass_monitor",
    "build_split_tunnel_monitor",
    "build_tunnel_watch_monitor",
    "check_intervals",
]
