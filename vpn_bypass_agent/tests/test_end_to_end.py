import pytest

from vpn_bypass_agent.lib.firewall import FirewallReconciler, ReconcileResult
from vpn_bypass_agent.lib.network_probe import NetworkProbe
from vpn_bypass_agent.lib.process_supervisor import ProcessSupervisor, SupervisorAction
from vpn_bypass_agent.monitors import BypassMonitor, TunnelWatchMonitor


@pytest.fixture
def probe(network_query):
    return NetworkProbe(network_query, physical_interfaces=["en0", "en1", "en2"])


@pytest.fixture
def bypass(probe, packet_filter):
    return BypassMonitor(probe, FirewallReconciler(packet_filter))


@pytest.fixture
def tunnel_watch(probe, app_controller, instant_tunnel_settings):
    return TunnelWatchMonitor(probe, ProcessSupervisor(app_controller, instant_tunnel_settings))


@pytest.mark.asyncio
async def test_vpn_reconnect_with_new_address(
    network_query, packet_filter, app_controller, bypass, tunnel_watch
):
    actions = []
    reconciles = []
    for tunnel_ip in ("10.0.0.5", None, "10.0.0.9"):
        network_query.set_tunnel(tunnel_ip)
        reconcile_result, _ = await bypass.tick()
        reconciles.append(reconcile_result)
        actions.append(await tunnel_watch.tick())

    # The uplink never changed, so the bypass rules are loaded exactly once
    assert reconciles == [
        ReconcileResult.APPLIED,
        ReconcileResult.UNCHANGED,
        ReconcileResult.UNCHANGED,
    ]
    assert len(packet_filter.load_calls) == 1

    assert actions == [
        SupervisorAction.LAUNCHED,
        SupervisorAction.TERMINATED,
        SupervisorAction.LAUNCHED,
    ]
    lifecycle = [c for c in app_controller.calls if c != ("bind", "127.0.0.1")]
    assert lifecycle == [
        ("bind", "10.0.0.5"),
        ("launch", "10.0.0.5"),
        ("quit",),
        ("bind", "10.0.0.9"),
        ("launch", "10.0.0.9"),
    ]


@pytest.mark.asyncio
async def test_steady_state_is_quiet(network_query, packet_filter, app_controller, bypass, tunnel_watch):
    network_query.set_tunnel("10.0.0.5")
    for _ in range(20):
        await bypass.tick()
        await tunnel_watch.tick()

    assert len(packet_filter.load_calls) == 1
    assert [c[0] for c in app_controller.calls].count("launch") == 1


@pytest.mark.asyncio
async def test_undetermined_uplink_skips_bypass_but_not_tunnel_watch(
    network_query, packet_filter, app_controller, bypass, tunnel_watch
):
    network_query.addresses.pop("en0")
    network_query.set_tunnel("10.0.0.5")

    assert await bypass.tick() == (None, None)
    assert packet_filter.load_calls == []
    assert await tunnel_watch.tick() is SupervisorAction.LAUNCHED


@pytest.mark.asyncio
async def test_uplink_change_reloads_rules(network_query, packet_filter, bypass):
    await bypass.tick()
    network_query.addresses = {"en1": ["192.168.50.3"]}
    network_query.gateways = {"en1": "192.168.50.1"}

    reconcile_result, _ = await bypass.tick()
    assert reconcile_result is ReconcileResult.APPLIED
    assert "route-to (en1 192.168.50.1) from 192.168.50.3" in packet_filter.load_calls[-1]
