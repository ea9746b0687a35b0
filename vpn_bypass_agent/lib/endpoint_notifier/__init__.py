"""
Public endpoint notification.

Keeps the media server's advertised custom connection URL in line with the
public address of the physical uplink.
"""

from .credentials import MediaServerCredentialStore, resolve_operator_path
from .domain import NotifyResult, PublicEndpointRecord
from .media_server_client import MediaServerClient
from .notifier import EndpointNotifier
from .public_address import PublicAddressResolver

__all__ = [
    "EndpointNotifier",
    "MediaServerClient",
    "MediaServerCredentialStore",
    "NotifyResult",
    "PublicAddressResolver",
    "PublicEndpointRecord",
    "resolve_operator_path",
]
