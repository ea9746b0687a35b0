from typing import Iterable

from .domain import AppliedFirewallConfig, FirewallRuleSet

PRIVATE_TABLE = "rfc1918"


def build_rule_set(
    config: AppliedFirewallConfig,
    service_port: int,
    private_networks: Iterable[str],
) -> FirewallRuleSet:
    """
    Render the bypass rules for an uplink.

    * a table of private networks that must never be forced off the default route
    * inbound connections to the service port, on the physical interface only
    * outbound traffic from the physical address to anything public is routed
      out the physical interface and gateway, below the VPN client's reach
    """
    networks = ", ".join(private_networks)
    return FirewallRuleSet(
        lines=(
            f"table <{PRIVATE_TABLE}> const {{ {networks} }}",
            f"pass in quick on {config.physical_interface} proto tcp to port {service_port}",
            (
                f"pass out quick route-to ({config.physical_interface} {config.gateway}) "
                f"from {config.physical_ip} to ! <{PRIVATE_TABLE}>"
            ),
        )
    )
