"""Best-effort analytics event ingest."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from cachetools import TTLCache

if TYPE_CHECKING:
    from vibetune.services.supabase import SupabaseClient

logger = structlog.get_logger()


class AnalyticsTracker:
    """Logs events and stores them in Supabase when it is configured.

    A repeat of the same ``(user_id, event_type)`` inside ``dedupe_window``
    seconds is logged but not stored. Anonymous events have no user to
    dedupe on and are always stored. Storage failures never reach the caller.
    """

    def __init__(
        self,
        supabase: SupabaseClient | None = None,
        dedupe_window: float = 1.0,
        maxsize: int = 10_000,
    ) -> None:
        self._supabase = supabase
        self._recent: TTLCache[tuple[str, str], bool] = TTLCache(
            maxsize=maxsize, ttl=dedupe_window
        )

    async def track(
        self,
        event_type: str,
        metadata: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> bool:
        """Record an event.

        Returns:
            True when the event was skipped as a recent duplicate.
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        logger.info(
            "analytics_event",
            event_type=event_type,
            user_id=user_id,
            metadata=metadata or {},
            timestamp=timestamp,
        )

        if self._supabase is None:
            return False

        if user_id:
            key = (user_id, event_type)
            if key in self._recent:
                logger.debug("analytics_event_skipped", event_type=event_type, user_id=user_id)
                return True
            self._recent[key] = True

        try:
            await self._supabase.insert_analytics_event({
                "profile_id": user_id,
                "event_type": event_type,
                "metadata": metadata or {},
            })
        except Exception as e:
            logger.warning("analytics_store_failed", event_type=event_type, reason=str(e))
        return False
