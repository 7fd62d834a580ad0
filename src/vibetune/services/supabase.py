"""Supabase REST client for conversation persistence."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

logger = structlog.get_logger()


class SupabaseClient:
    """Minimal PostgREST client authenticated with the service role key."""

    def __init__(self, url: str, service_role_key: str, timeout: float = 30.0):
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {service_role_key}",
            "apikey": service_role_key,
        }
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def save_conversation(self, record: dict[str, Any]) -> dict[str, Any]:
        """Upsert a conversation row keyed on ``id`` and return the stored row."""
        client = await self._get_http_client()
        response = await client.post(
            f"{self._base_url}/conversations",
            params={"on_conflict": "id"},
            headers={
                **self._headers,
                "Prefer": "return=representation,resolution=merge-duplicates",
            },
            json=record,
        )
        if response.is_error:
            logger.error(
                "supabase_save_failed",
                table="conversations",
                status_code=response.status_code,
                body=response.text[:500],
            )
        response.raise_for_status()

        rows = response.json()
        saved = rows[0] if isinstance(rows, list) and rows else rows
        logger.info("conversation_saved", conversation_id=record.get("id"))
        return saved

    async def insert_analytics_event(self, event: dict[str, Any]) -> None:
        client = await self._get_http_client()
        response = await client.post(
            f"{self._base_url}/analytics_events",
            headers={**self._headers, "Prefer": "return=minimal"},
            json=event,
        )
        response.raise_for_status()

    async def get_message_scores(self, conversation_id: str) -> list[dict[str, Any]]:
        """Return the ``scores`` object of every scored message in a conversation."""
        client = await self._get_http_client()
        response = await client.get(
            f"{self._base_url}/messages",
            params={
                "select": "scores",
                "conversation_id": f"eq.{conversation_id}",
                "scores": "not.is.null",
            },
            headers=self._headers,
        )
        response.raise_for_status()
        return [
            row["scores"] for row in response.json()
            if isinstance(row, dict) and isinstance(row.get("scores"), dict)
        ]

    async def update_profile(self, profile_id: str, fields: dict[str, Any]) -> None:
        client = await self._get_http_client()
        response = await client.patch(
            f"{self._base_url}/profiles",
            params={"id": f"eq.{profile_id}"},
            headers={**self._headers, "Prefer": "return=minimal"},
            json=fields,
        )
        if response.is_error:
            logger.error(
                "supabase_update_failed",
                table="profiles",
                status_code=response.status_code,
                body=response.text[:500],
            )
        response.raise_for_status()
        logger.info("profile_updated", profile_id=profile_id, fields=sorted(fields))

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
