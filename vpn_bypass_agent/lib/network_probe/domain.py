from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NetworkSnapshot(BaseModel):
    """
    The current network truth, as read from the OS in a single probe.

    Snapshots are never mutated; every tick takes a new one. A missing
    ``tunnel_ip`` is the one and only signal that the VPN is down, while a
    missing ``physical_interface`` means the uplink could not be determined.
    """

    model_config = ConfigDict(frozen=True)

    physical_interface: Optional[str] = Field(None, description="Non-tunnel uplink (e.g., en0)")
    physical_ip: Optional[str] = Field(None, description="IPv4 address on the uplink")
    gateway: Optional[str] = Field(None, description="Default gateway scoped to the uplink")
    tunnel_interface: Optional[str] = Field(None, description="Tunnel interface carrying tunnel_ip")
    tunnel_ip: Optional[str] = Field(None, description="First IPv4 found on a tunnel interface")
    taken_at: datetime = Field(default_factory=datetime.now)

    @property
    def vpn_up(self) -> bool:
        return self.tunnel_ip is not None

    @property
    def uplink_known(self) -> bool:
        return self.physical_interface is not None

    @property
    def uplink_complete(self) -> bool:
        return all((self.physical_interface, self.physical_ip, self.gateway))

    def describe(self) -> str:
        uplink = (
            f"{self.physical_interface}/{self.physical_ip or '-'} via {self.gateway or '-'}"
            if self.uplink_known
            else "<undetermined>"
        )
        tunnel = f"{self.tunnel_interface}/{self.tunnel_ip}" if self.vpn_up else "<down>"
        return f"uplink={uplink} tunnel={tunnel}"
