import pytest

from vpn_bypass_agent.lib.firewall import FirewallReconciler, ReconcileResult
from vpn_bypass_agent.lib.network_probe.domain import NetworkSnapshot
from vpn_bypass_agent.tests.fakes import FakePacketFilter


def uplink(interface="en0", ip="192.168.1.20", gateway="192.168.1.1", **kwargs) -> NetworkSnapshot:
    return NetworkSnapshot(physical_interface=interface, physical_ip=ip, gateway=gateway, **kwargs)


@pytest.fixture
def packet_filter():
    return FakePacketFilter()


@pytest.fixture
def reconciler(packet_filter):
    return FirewallReconciler(packet_filter, service_port=32400)


@pytest.mark.asyncio
async def test_first_reconcile_loads_rules(reconciler, packet_filter):
    assert await reconciler.reconcile(uplink()) is ReconcileResult.APPLIED

    assert len(packet_filter.load_calls) == 1
    assert "route-to (en0 192.168.1.1) from 192.168.1.20" in packet_filter.load_calls[0]
    assert packet_filter.enable_calls == 1
    assert str(reconciler.applied) == "en0:192.168.1.20:192.168.1.1"


@pytest.mark.asyncio
async def test_identical_snapshots_load_once(reconciler, packet_filter):
    results = [await reconciler.reconcile(uplink(tunnel_ip="10.0.0.5")) for _ in range(5)]

    assert results[0] is ReconcileResult.APPLIED
    assert results[1:] == [ReconcileResult.UNCHANGED] * 4
    assert len(packet_filter.load_calls) == 1


@pytest.mark.asyncio
async def test_emptied_anchor_is_reloaded(reconciler, packet_filter):
    await reconciler.reconcile(uplink())
    packet_filter.flush()

    assert await reconciler.reconcile(uplink()) is ReconcileResult.APPLIED
    assert len(packet_filter.load_calls) == 2


@pytest.mark.asyncio
async def test_inspection_failure_forces_reload(reconciler, packet_filter):
    await reconciler.reconcile(uplink())
    packet_filter.fail_inspect = True

    assert await reconciler.reconcile(uplink()) is ReconcileResult.APPLIED
    assert len(packet_filter.load_calls) == 2


@pytest.mark.asyncio
async def test_uplink_change_reloads(reconciler, packet_filter):
    await reconciler.reconcile(uplink())
    assert await reconciler.reconcile(uplink(interface="en1", ip="192.168.50.3", gateway="192.168.50.1")) is (
        ReconcileResult.APPLIED
    )
    assert "pass in quick on en1" in packet_filter.load_calls[-1]
    assert reconciler.applied.physical_interface == "en1"


@pytest.mark.asyncio
async def test_failed_load_keeps_fingerprint_and_retries(reconciler, packet_filter):
    await reconciler.reconcile(uplink())
    previous = reconciler.applied

    packet_filter.fail_load = True
    changed = uplink(ip="192.168.1.77")
    assert await reconciler.reconcile(changed) is ReconcileResult.FAILED
    assert reconciler.applied == previous

    packet_filter.fail_load = False
    assert await reconciler.reconcile(changed) is ReconcileResult.APPLIED
    assert reconciler.applied.physical_ip == "192.168.1.77"


@pytest.mark.asyncio
async def test_enable_failure_still_counts_as_applied(reconciler, packet_filter):
    packet_filter.fail_enable = True
    assert await reconciler.reconcile(uplink()) is ReconcileResult.APPLIED
    assert reconciler.applied is not None


@pytest.mark.asyncio
async def test_incomplete_uplink_is_skipped(reconciler, packet_filter):
    result = await reconciler.reconcile(NetworkSnapshot(physical_interface="en0", physical_ip="192.168.1.20"))

    assert result is ReconcileResult.SKIPPED
    assert packet_filter.load_calls == []
    assert reconciler.applied is None
