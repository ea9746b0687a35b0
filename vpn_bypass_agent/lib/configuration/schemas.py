from __future__ import annotations

from ipaddress import IPv4Network
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from vpn_bypass_agent.constants import PRIVATE_NETWORKS


class AgentGeneral(BaseModel):
    server_name: str = Field(default="")
    operator_username: str = Field(default="")

    @field_validator("server_name", "operator_username", mode="before")
    def empty_to_str(cls, v):  # noqa: N805
        if v is None:
            return ""
        return v


class BypassSettings(BaseModel):
    poll_interval: float = Field(default=60, gt=0)
    # Empty means com.apple/100.<hostname>.vpn-bypass
    anchor: str = Field(default="")
    service_port: int = Field(default=32400, gt=0, lt=65536)
    physical_interfaces: List[str] = Field(default_factory=lambda: ["en0", "en1", "en2"])
    private_networks: List[str] = Field(default_factory=lambda: list(PRIVATE_NETWORKS))
    public_ip_url: str = Field(default="http://checkip.amazonaws.com")
    public_ip_timeout: float = Field(default=10, gt=0)
    query_timeout: float = Field(default=5, gt=0)
    pfctl_timeout: float = Field(default=10, gt=0)
    log_dir: str = Field(default="")

    @field_validator("private_networks")
    def valid_networks(cls, v):  # noqa: N805
        for network in v:
            IPv4Network(network)
        return v


class TunnelWatchSettings(BaseModel):
    poll_interval: float = Field(default=5, gt=0)
    tunnel_interface_prefixes: List[str] = Field(default_factory=lambda: ["utun"])
    app_name: str = Field(default="Transmission")
    app_bundle_id: str = Field(default="org.m0k.transmission")
    bind_address_key: str = Field(default="BindAddressIPv4")
    # Empty disables parking the bind preference after a kill
    parked_bind_address: str = Field(default="127.0.0.1")
    graceful_timeout: float = Field(default=10, ge=0)
    force_kill_wait: float = Field(default=2, ge=0)
    launch_attempts: int = Field(default=2, ge=1)
    launch_verify_delay: float = Field(default=3, ge=0)
    command_timeout: float = Field(default=10, gt=0)
    query_timeout: float = Field(default=5, gt=0)
    notification_sender: str = Field(default="org.m0k.transmission")
    log_dir: str = Field(default="")


class MediaServerSettings(BaseModel):
    url: str = Field(default="http://localhost:32400")
    connection_scheme: str = Field(default="https")
    connection_port: int = Field(default=32400, gt=0, lt=65536)
    request_timeout: float = Field(default=10, gt=0)
    # Relative paths are resolved against the operator's home directory
    token_config_path: str = Field(default=".config/transmission-done/config.yml")
    preferences_path: str = Field(
        default="Library/Application Support/Plex Media Server/Preferences.xml"
    )
    notification_sender: str = Field(default="com.plexapp.plexmediaserver")


class SplitTunnelSettings(BaseModel):
    poll_interval: float = Field(default=60, gt=0)
    settings_path: str = Field(
        default="/Library/Preferences/com.privateinternetaccess.vpn/settings.json"
    )
    reference_path: str = Field(default="~/.local/etc/pia-split-tunnel-reference.json")
    pause_path: str = Field(default="~/.local/etc/pia-monitor-paused")
    piactl_path: str = Field(default="/usr/local/bin/piactl")
    max_failures: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=300, ge=0)
    reconnect_delay: float = Field(default=3, ge=0)
    settle_delay: float = Field(default=10, ge=0)
    command_timeout: float = Field(default=30, gt=0)
    notification_sender: str = Field(default="com.privateinternetaccess.vpn")
    log_dir: str = Field(default="")


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO")
    max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    console: bool = Field(default=True)


class AgentConfig(BaseModel):
    General: AgentGeneral = Field(default_factory=AgentGeneral)
    Bypass: BypassSettings = Field(default_factory=BypassSettings)
    TunnelWatch: TunnelWatchSettings = Field(default_factory=TunnelWatchSettings)
    MediaServer: MediaServerSettings = Field(default_factory=MediaServerSettings)
    SplitTunnel: SplitTunnelSettings = Field(default_factory=SplitTunnelSettings)
    Logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def hostname_lower(self, fallback: Optional[str] = None) -> str:
        return (self.General.server_name or fallback or "localhost").lower()
