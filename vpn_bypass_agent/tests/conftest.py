"""
Pytest configuration and shared fixtures for vpn-bypass-agent tests
"""
import logging

import pytest

from vpn_bypass_agent.lib.configuration.schemas import TunnelWatchSettings
from vpn_bypass_agent.lib.logging_utils import setup_logging
from vpn_bypass_agent.tests.fakes import FakeAppController, FakeNetworkQuery, FakePacketFilter


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests with appropriate levels"""
    setup_logging(level=logging.INFO)


@pytest.fixture
def instant_tunnel_settings() -> TunnelWatchSettings:
    """Tunnel watch settings with every delay removed"""
    return TunnelWatchSettings(
        graceful_timeout=0, force_kill_wait=0, launch_verify_delay=0, launch_attempts=2
    )


@pytest.fixture
def network_query() -> FakeNetworkQuery:
    return FakeNetworkQuery(
        interfaces=["lo0", "en0", "en1", "utun0", "utun1"],
        addresses={"en0": ["192.168.1.20"]},
        gateways={"en0": "192.168.1.1"},
    )


@pytest.fixture
def packet_filter() -> FakePacketFilter:
    return FakePacketFilter()


@pytest.fixture
def app_controller() -> FakeAppController:
    return FakeAppController()
