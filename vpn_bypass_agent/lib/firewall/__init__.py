"""
Firewall Rule Reconciler

Derives pf rules from the current uplink and keeps them loaded in a named
anchor. Loads are skipped when the fingerprint of the last load matches and
the anchor is observed to still hold rules.
"""

from .domain import AppliedFirewallConfig, FirewallRuleSet, ReconcileResult
from .pf_control import PacketFilterControl
from .reconciler import FirewallReconciler
from .rules import build_rule_set


def default_anchor(hostname_lower: str) -> str:
    return f"com.apple/100.{hostname_lower}.vpn-bypass"


__all__ = [
    "AppliedFirewallConfig",
    "FirewallReconciler",
    "FirewallRuleSet",
    "PacketFilterControl",
    "ReconcileResult",
    "build_rule_set",
    "default_anchor",
]
