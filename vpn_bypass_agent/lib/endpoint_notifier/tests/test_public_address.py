import pytest

from vpn_bypass_agent.lib.endpoint_notifier.public_address import parse_public_address


@pytest.mark.parametrize(
    "body,expected",
    [
        ("203.0.113.7\n", "203.0.113.7"),
        ("  198.51.100.20  ", "198.51.100.20"),
        ("", None),
        ("<html>captive portal</html>", None),
        ("2001:db8::1", None),
    ],
)
def test_parse_public_address(body, expected):
    assert parse_public_address(body) == expected
