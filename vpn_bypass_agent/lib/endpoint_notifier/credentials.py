import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import Optional

import yaml

from vpn_bypass_agent.models.exceptions import CredentialLookupError

TOKEN_ATTRIBUTE = "PlexOnlineToken"
_TOKEN_PATTERN = re.compile(rf'{TOKEN_ATTRIBUTE}="([^"]+)"')


def token_from_yaml(text: str) -> Optional[str]:
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        return None
    section = data.get("plex")
    if not isinstance(section, dict):
        return None
    token = section.get("token")
    if token is None:
        return None
    return str(token).strip() or None


def token_from_preferences(text: str) -> Optional[str]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        # Preferences.xml is sometimes written non-atomically; scrape it instead
        match = _TOKEN_PATTERN.search(text)
        return match.group(1) if match else None
    return root.attrib.get(TOKEN_ATTRIBUTE) or None


class MediaServerCredentialStore:
    """
    Finds the media server API token.

    The post-processing pipeline's YAML config wins; the media server's own
    Preferences.xml is the fallback.
    """

    def __init__(self, token_config_path: Optional[str], preferences_path: Optional[str]):
        self.logger = logging.getLogger(__name__)
        self.token_config_path = token_config_path
        self.preferences_path = preferences_path

    def lookup(self) -> str:
        """:raises CredentialLookupError: when no source yields a token"""
        for path, reader in (
            (self.token_config_path, token_from_yaml),
            (self.preferences_path, token_from_preferences),
        ):
            token = self._read(path, reader)
            if token:
                self.logger.debug(f"Media server token found in {path}")
                return token
        raise CredentialLookupError(
            f"No media server token in {self.token_config_path} or {self.preferences_path}"
        )

    def _read(self, path: Optional[str], reader) -> Optional[str]:
        if not path or not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return reader(f.read())
        except (OSError, yaml.YAMLError, UnicodeDecodeError) as e:
            self.logger.warning(f"Unable to read token from {path}: {e}")
            return None


def resolve_operator_path(path: str, operator_home: Optional[str]) -> str:
    """Expand ``~`` and anchor relative paths in the operator's home directory."""
    path = os.path.expanduser(path)
    if os.path.isabs(path):
        return path
    return os.path.join(operator_home or os.path.expanduser("~"), path)
