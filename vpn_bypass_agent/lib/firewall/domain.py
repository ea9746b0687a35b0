from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from vpn_bypass_agent.lib.network_probe.domain import NetworkSnapshot


class ReconcileResult(Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class AppliedFirewallConfig(BaseModel):
    """Fingerprint of the uplink the anchor's rules were rendered for"""

    model_config = ConfigDict(frozen=True)

    physical_interface: str
    physical_ip: str
    gateway: str

    @classmethod
    def from_snapshot(cls, snapshot: NetworkSnapshot) -> Optional["AppliedFirewallConfig"]:
        if not snapshot.uplink_complete:
            return None
        return cls(
            physical_interface=snapshot.physical_interface,
            physical_ip=snapshot.physical_ip,
            gateway=snapshot.gateway,
        )

    def __str__(self):
        return f"{self.physical_interface}:{self.physical_ip}:{self.gateway}"


class FirewallRuleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: tuple[str, ...] = Field(default_factory=tuple)

    def render(self) -> str:
        return "\n".join(self.lines) + "\n"
