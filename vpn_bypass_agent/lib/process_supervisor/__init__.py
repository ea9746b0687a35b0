"""
Process lifecycle supervision.

The managed application may only run while the VPN tunnel is up, and only
bound to the tunnel address. ``ProcessSupervisor.handle`` is called with every
network snapshot and performs at most one transition per call.
"""

from .app_control import AppController, DarwinAppController
from .domain import ManagedProcessState, SupervisorAction, SupervisorState
from .supervisor import ProcessSupervisor

__all__ = [
    "AppController",
    "DarwinAppController",
    "ManagedProcessState",
    "ProcessSupervisor",
    "SupervisorAction",
    "SupervisorState",
]
