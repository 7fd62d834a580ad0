"""Deepgram client for short-lived browser speech-to-text keys."""

from __future__ import annotations

import httpx
import structlog

logger = structlog.get_logger()


class DeepgramClient:
    """Mints temporary Deepgram keys scoped to live transcription."""

    DEEPGRAM_API_BASE = "https://api.deepgram.com/v1"
    TEMP_KEY_SCOPES = ["usage:write", "listen:ws"]

    def __init__(self, api_key: str, key_ttl: int = 300, timeout: float = 30.0):
        self._api_key = api_key
        self._key_ttl = key_ttl
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def create_temp_key(self) -> str:
        client = await self._get_http_client()
        response = await client.post(
            f"{self.DEEPGRAM_API_BASE}/projects/me/keys",
            headers={
                "Authorization": f"Token {self._api_key}",
                "Content-Type": "application/json",
            },
            json={
                "comment": "vibetune-temp",
                "scopes": self.TEMP_KEY_SCOPES,
                "time_to_live_in_seconds": self._key_ttl,
            },
        )
        response.raise_for_status()

        key = response.json().get("key")
        if not key:
            raise ValueError("Deepgram response did not include a key")

        logger.info("deepgram_temp_key_created", ttl=self._key_ttl)
        return key

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
