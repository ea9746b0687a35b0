from vpn_bypass_agent.constants import PRIVATE_NETWORKS
from vpn_bypass_agent.lib.firewall import AppliedFirewallConfig, build_rule_set, default_anchor
from vpn_bypass_agent.lib.network_probe.domain import NetworkSnapshot


def test_rule_set_lines():
    config = AppliedFirewallConfig(
        physical_interface="en0", physical_ip="192.168.1.20", gateway="192.168.1.1"
    )
    rule_set = build_rule_set(config, 32400, PRIVATE_NETWORKS)

    assert rule_set.lines == (
        "table <rfc1918> const { 10.0.0.0/8, 172.16.0.0/12, 192.168.0.0/16, 127.0.0.0/8 }",
        "pass in quick on en0 proto tcp to port 32400",
        "pass out quick route-to (en0 192.168.1.1) from 192.168.1.20 to ! <rfc1918>",
    )
    assert rule_set.render().endswith("<rfc1918>\n")


def test_fingerprint_requires_complete_uplink():
    snapshot = NetworkSnapshot(physical_interface="en0", physical_ip="192.168.1.20")
    assert AppliedFirewallConfig.from_snapshot(snapshot) is None


def test_fingerprint_equality_ignores_tunnel():
    a = NetworkSnapshot(
        physical_interface="en0", physical_ip="192.168.1.20", gateway="192.168.1.1", tunnel_ip="10.0.0.5"
    )
    b = NetworkSnapshot(
        physical_interface="en0", physical_ip="192.168.1.20", gateway="192.168.1.1"
    )
    assert AppliedFirewallConfig.from_snapshot(a) == AppliedFirewallConfig.from_snapshot(b)


def test_default_anchor():
    assert default_anchor("tilsit") == "com.apple/100.tilsit.vpn-bypass"
