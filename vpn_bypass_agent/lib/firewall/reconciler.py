import logging
from typing import Iterable, Optional

from vpn_bypass_agent.constants import PRIVATE_NETWORKS
from vpn_bypass_agent.lib.network_probe.domain import NetworkSnapshot
from vpn_bypass_agent.models.exceptions import FirewallControlError

from .domain import AppliedFirewallConfig, ReconcileResult
from .pf_control import PacketFilterControl
from .rules import build_rule_set


class FirewallReconciler:
    """
    Keeps the bypass anchor loaded with rules matching the current uplink.

    The fingerprint of the last successful load is only a hint: the anchor is
    inspected on every call, and an empty anchor is reloaded whatever the
    fingerprint says. Rules are never flushed by this class.
    """

    def __init__(
        self,
        pf_control: PacketFilterControl,
        service_port: int = 32400,
        private_networks: Optional[Iterable[str]] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for anchor {pf_control.anchor}")
        self.pf_control = pf_control
        self.service_port = service_port
        self.private_networks = list(private_networks or PRIVATE_NETWORKS)
        self._applied: Optional[AppliedFirewallConfig] = None

    @property
    def applied(self) -> Optional[AppliedFirewallConfig]:
        return self._applied

    async def reconcile(self, snapshot: NetworkSnapshot) -> ReconcileResult:
        desired = AppliedFirewallConfig.from_snapshot(snapshot)
        if desired is None:
            self.logger.warning(
                f"Uplink incomplete ({snapshot.describe()}); not touching pf rules"
            )
            return ReconcileResult.SKIPPED

        anchor_populated = await self._anchor_populated()

        if anchor_populated and desired == self._applied:
            self.logger.debug(f"pf rules current for {desired}")
            return ReconcileResult.UNCHANGED

        if not anchor_populated:
            self.logger.info(f"pf anchor {self.pf_control.anchor} is empty; rules need loading")
        if desired != self._applied:
            self.logger.info(
                f"Network config changed ({self._applied or '<none>'} -> {desired})"
            )

        return await self._apply(desired)

    async def _anchor_populated(self) -> bool:
        try:
            return bool(await self.pf_control.anchor_rules())
        except FirewallControlError as e:
            # Unknown anchor state is treated as empty
            self.logger.warning(f"Unable to inspect pf anchor: {e}")
            return False

    async def _apply(self, desired: AppliedFirewallConfig) -> ReconcileResult:
        rule_set = build_rule_set(desired, self.service_port, self.private_networks)

        self.logger.info(f"Loading pf rules into anchor {self.pf_control.anchor}:")
        for line in rule_set.lines:
            self.logger.info(f"  {line}")

        try:
            await self.pf_control.load_anchor(rule_set.render())
        except FirewallControlError as e:
            self.logger.error(f"pf rule reload failed, will retry next tick: {e}")
            return ReconcileResult.FAILED

        try:
            await self.pf_control.enable()
        except FirewallControlError as e:
            self.logger.warning(f"Rules loaded but pf could not be enabled: {e}")

        self._applied = desired
        self.logger.info("pf rules loaded successfully")
        return ReconcileResult.APPLIED
