import os

import pytest

from vpn_bypass_agent.lib.endpoint_notifier import MediaServerCredentialStore, resolve_operator_path
from vpn_bypass_agent.lib.endpoint_notifier.credentials import token_from_preferences, token_from_yaml
from vpn_bypass_agent.models.exceptions import CredentialLookupError

PREFERENCES = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<Preferences MachineIdentifier="abc" PlexOnlineToken="xml-token" FriendlyName="tilsit"/>\n'
)


def test_yaml_token():
    assert token_from_yaml("plex:\n  token: yaml-token\n  url: http://localhost:32400\n") == "yaml-token"


def test_yaml_without_plex_section():
    assert token_from_yaml("filebot:\n  format: '{n}'\n") is None


def test_yaml_blank_token():
    assert token_from_yaml("plex:\n  token: ''\n") is None


def test_preferences_token():
    assert token_from_preferences(PREFERENCES) == "xml-token"


def test_preferences_truncated_file_falls_back_to_scan():
    assert token_from_preferences('<Preferences PlexOnlineToken="xml-token" Friendly') == "xml-token"


def test_yaml_wins_over_preferences(tmp_path):
    yaml_path = tmp_path / "config.yml"
    yaml_path.write_text("plex:\n  token: yaml-token\n")
    xml_path = tmp_path / "Preferences.xml"
    xml_path.write_text(PREFERENCES)

    assert MediaServerCredentialStore(str(yaml_path), str(xml_path)).lookup() == "yaml-token"


def test_preferences_fallback(tmp_path):
    xml_path = tmp_path / "Preferences.xml"
    xml_path.write_text(PREFERENCES)

    store = MediaServerCredentialStore(str(tmp_path / "missing.yml"), str(xml_path))
    assert store.lookup() == "xml-token"


def test_invalid_yaml_falls_back(tmp_path):
    yaml_path = tmp_path / "config.yml"
    yaml_path.write_text("plex: [unclosed\n")
    xml_path = tmp_path / "Preferences.xml"
    xml_path.write_text(PREFERENCES)

    assert MediaServerCredentialStore(str(yaml_path), str(xml_path)).lookup() == "xml-token"


def test_no_token_anywhere(tmp_path):
    store = MediaServerCredentialStore(str(tmp_path / "a.yml"), str(tmp_path / "b.xml"))
    with pytest.raises(CredentialLookupError):
        store.lookup()


def test_resolve_operator_path_relative():
    assert resolve_operator_path(".config/x.yml", "/Users/operator") == "/Users/operator/.config/x.yml"


def test_resolve_operator_path_absolute():
    assert resolve_operator_path("/etc/x.yml", "/Users/operator") == "/etc/x.yml"


def test_resolve_operator_path_without_operator():
    assert resolve_operator_path("x.yml", None) == os.path.join(os.path.expanduser("~"), "x.yml")
