"""Generic JSON-over-HTTP remote client.

Looks objects up at ``GET {base_url}/{resource_type}/{external_id}``. A JSON
object body is a single match, a JSON list is one match per element, and a
404 means no match.
"""

from __future__ import annotations

import asyncio
import json
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from importwright.adapters import RemoteClient, urlopen_safe
from importwright.errors import RemoteError, TransientError

_TIMEOUT = 30  # seconds
_RETRYABLE_STATUS = {408, 425, 429, 500, 502, 503, 504}


class HttpJsonClient(RemoteClient):
    name = "http"

    def __init__(self, base_url: str, headers: dict[str, str] | None = None, timeout: float = _TIMEOUT):
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json", **(headers or {})}
        self._timeout = timeout

    def url_for(self, resource_type: str, external_id: str) -> str:
        quoted = urllib.parse.quote(external_id, safe="")
        return f"{self._base_url}/{resource_type}/{quoted}"

    async def get_by_id(self, resource_type: str, external_id: str) -> list[dict[str, Any]]:
        url = self.url_for(resource_type, external_id)
        body = await asyncio.to_thread(self._get, url)
        if body is None:
            return []
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise RemoteError(f"GET {url}: invalid JSON body") from exc
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list) and all(isinstance(d, dict) for d in data):
            return data
        raise RemoteError(f"GET {url}: expected a JSON object or list of objects")

    def _get(self, url: str) -> bytes | None:
        req = urllib.request.Request(url, headers=self._headers)
        try:
            return urlopen_safe(req, timeout=self._timeout)
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                return None
            if exc.code in _RETRYABLE_STATUS:
                raise TransientError(f"GET {url}: HTTP {exc.code}") from exc
            raise RemoteError(f"GET {url}: HTTP {exc.code}") from exc
        except (urllib.error.URLError, socket.timeout, ConnectionError) as exc:
            raise TransientError(f"GET {url}: {exc}") from exc
