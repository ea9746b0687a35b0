from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotifyResult(Enum):
    UNCHANGED = "unchanged"
    PUSHED = "pushed"
    SKIPPED = "skipped"
    FAILED = "failed"


class PublicEndpointRecord(BaseModel):
    """Last public address the media server accepted. Only changed after a 2xx push."""

    last_known_public_ip: Optional[str] = None
