from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SupervisorState(Enum):
    RUNNING_BOUND = "running_bound"
    STOPPED = "stopped"


class SupervisorAction(Enum):
    NONE = "none"
    TERMINATED = "terminated"
    LAUNCHED = "launched"
    REBOUND = "rebound"
    ADOPTED = "adopted"
    FAILED = "failed"


@dataclass
class ManagedProcessState:
    desired_bind_ip: Optional[str] = None
    running: bool = False
    # Informational only; never used for timing decisions
    tunnel_down_since: Optional[datetime] = None

    @property
    def state(self) -> SupervisorState:
        return SupervisorState.RUNNING_BOUND if self.running else SupervisorState.STOPPED
