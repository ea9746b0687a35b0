import json
from typing import Optional

import requests
from requests.compat import chardet
from requests.models import guess_json_utf
from requests.structures import CaseInsensitiveDict


class FlatResponse:
    """Detached copy of an aiohttp response, shaped like a Requests response."""

    def __init__(
        self,
        headers: CaseInsensitiveDict,
        url: str,
        status_code: int,
        content: bytes,
        encoding: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.headers = headers
        self.url = url
        self.status_code = status_code
        self.content = content
        self.encoding = encoding
        self.reason: Optional[str] = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def apparent_encoding(self):
        if chardet is not None:
            return chardet.detect(self.content)["encoding"]
        return "utf-8"

    @property
    def text(self) -> str:
        if not self.content:
            return ""
        encoding = self.encoding or self.apparent_encoding
        try:
            return str(self.content, encoding, errors="replace")
        except (LookupError, TypeError):
            return str(self.content, errors="replace")

    def json(self, **kwargs):
        if not self.encoding and self.content and len(self.content) > 3:
            encoding = guess_json_utf(self.content)
            if encoding is not None:
                try:
                    return json.loads(self.content.decode(encoding), **kwargs)
                except UnicodeDecodeError:
                    pass
                except json.JSONDecodeError as e:
                    raise requests.JSONDecodeError(e.msg, e.doc, e.pos)
        try:
            return json.loads(self.text, **kwargs)
        except json.JSONDecodeError as e:
            raise requests.JSONDecodeError(e.msg, e.doc, e.pos)

    def __repr__(self):
        return f"<FlatResponse [{self.status_code}]>"
