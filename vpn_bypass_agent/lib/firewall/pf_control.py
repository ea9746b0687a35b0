import logging

from vpn_bypass_agent.models.exceptions import FirewallControlError
from vpn_bypass_agent.models.runcommand_error import RunCommandError
from vpn_bypass_agent.utils import run_command_async


class PacketFilterControl:
    """Thin wrapper around pfctl for a single named anchor"""

    def __init__(self, anchor: str, timeout: float = 10, pfctl: str = "pfctl"):
        self.logger = logging.getLogger(__name__)
        self.anchor = anchor
        self.timeout = timeout
        self.pfctl = pfctl

    async def load_anchor(self, rules: str) -> None:
        """Replace the anchor's rules with ``rules``"""
        try:
            await run_command_async(
                [self.pfctl, "-a", self.anchor, "-f", "-"], input=rules, timeout=self.timeout
            )
        except RunCommandError as e:
            raise FirewallControlError(f"Failed to load anchor {self.anchor}: {e}") from e

    async def anchor_rules(self) -> str:
        """Return the rules currently loaded in the anchor (empty if none)"""
        try:
            result = await run_command_async(
                [self.pfctl, "-a", self.anchor, "-sr"], timeout=self.timeout
            )
        except RunCommandError as e:
            raise FirewallControlError(f"Failed to inspect anchor {self.anchor}: {e}") from e
        return result.stdout.strip()

    async def enable(self) -> None:
        """Enable pf globally; already enabled is not an error"""
        try:
            result = await run_command_async(
                [self.pfctl, "-e"], raise_on_fail=False, timeout=self.timeout
            )
        except RunCommandError as e:
            raise FirewallControlError(f"Failed to enable pf: {e}") from e
        if not result.success and "already enabled" not in result.stderr:
            raise FirewallControlError(f"Failed to enable pf: {result.stderr.strip()}")
