import socket

import pytest

pytest.importorskip("pyroute2")

from vpn_bypass_agent.lib.network_probe.linux_query import LinuxNetworkQuery


class NetlinkMessage:
    def __init__(self, **attrs):
        self.attrs = attrs

    def get_attr(self, name):
        return self.attrs.get(name)


@pytest.fixture
def ipr(mocker):
    MockedIPRoute = mocker.patch("vpn_bypass_agent.lib.network_probe.linux_query.IPRoute")
    ipr = MockedIPRoute.return_value.__enter__.return_value
    indexes = {"lo": 1, "eth0": 2, "tun0": 3}
    ipr.link_lookup.side_effect = lambda ifname: [indexes[ifname]] if ifname in indexes else []
    ipr.get_links.return_value = [NetlinkMessage(IFLA_IFNAME=name) for name in indexes]
    return ipr


@pytest.mark.asyncio
async def test_list_interfaces_returns_link_names(ipr):
    assert await LinuxNetworkQuery().list_interfaces() == ["lo", "eth0", "tun0"]


@pytest.mark.asyncio
async def test_ipv4_addresses_skip_loopback(ipr):
    ipr.get_addr.return_value = [
        NetlinkMessage(IFA_LOCAL="127.0.0.1"),
        NetlinkMessage(IFA_LOCAL="192.168.1.20"),
        NetlinkMessage(IFA_ADDRESS="192.168.1.21"),
    ]

    assert await LinuxNetworkQuery().ipv4_addresses("eth0") == ["192.168.1.20", "192.168.1.21"]
    ipr.get_addr.assert_called_once_with(family=socket.AF_INET, index=2)


@pytest.mark.asyncio
async def test_unknown_interface_has_no_addresses_or_gateway(ipr):
    query = LinuxNetworkQuery()

    assert await query.ipv4_addresses("wlan9") == []
    assert await query.default_gateway("wlan9") is None
    ipr.get_addr.assert_not_called()
    ipr.get_default_routes.assert_not_called()


@pytest.mark.asyncio
async def test_default_gateway_matches_output_interface(ipr):
    ipr.get_default_routes.return_value = [
        NetlinkMessage(RTA_OIF=3, RTA_GATEWAY="10.8.0.1"),
        NetlinkMessage(RTA_OIF=2, RTA_GATEWAY="192.168.1.1"),
    ]
    query = LinuxNetworkQuery()

    assert await query.default_gateway("eth0") == "192.168.1.1"
    assert await query.default_gateway("tun0") == "10.8.0.1"


@pytest.mark.asyncio
async def test_default_route_without_gateway_is_ignored(ipr):
    ipr.get_default_routes.return_value = [NetlinkMessage(RTA_OIF=2)]

    assert await LinuxNetworkQuery().default_gateway("eth0") is None
