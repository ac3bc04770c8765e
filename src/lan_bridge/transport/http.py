"""
HTTP client for payloads the hub has stored — GET <hub>/<reference>.
"""

from typing import Optional

import httpx

from lan_bridge.errors import TransportError

USER_AGENT = "lan-bridge/0.1.0"


class HttpClient:
    def __init__(self, base_url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = None
        self._timeout = timeout
        self._transport = transport

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def get_bytes(self, path: str) -> bytes:
        if not path.startswith("/"):
            path = f"/{path}"
        try:
            resp = await self._ensure_client().get(path)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path} failed: {e}") from e
        if resp.status_code >= 400:
            raise TransportError(f"HTTP {resp.status_code}: {resp.text[:200]}")
        return resp.content

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
