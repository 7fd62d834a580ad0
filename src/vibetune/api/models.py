"""Request body models for the HTTP API."""

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vibetune.tutor.prompts import TutorContext


class _RequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChatRequest(_RequestBody):
    """Body of ``/api/chat`` and ``/api/chat-stream``."""

    text: str | None = None
    topic: str | None = None
    stage: str | None = None
    level: str | None = None
    last_mistakes: list[str] = Field(default_factory=list, alias="lastMistakes")
    conversation_id: str | None = Field(None, alias="conversationId")

    def to_context(self) -> TutorContext:
        return TutorContext(
            topic=self.topic,
            stage=self.stage,
            level=self.level,
            last_mistakes=self.last_mistakes,
        )


class VoiceRequest(_RequestBody):
    """Body of ``/api/voice``."""

    text: str | None = None
    conversation_id: str | None = Field(None, alias="conversationId")
    topic: str | None = None
    profile_id: str | None = Field(None, alias="profileId")
    stage: str | None = None


class ConversationRecord(_RequestBody):
    """Body of ``/api/save-conversation``.

    ``id`` and ``profile_id`` are checked by the Validator rather than here
    so that a missing value maps to the documented 400 message. The optional
    columns accept ``null`` and fall back to their defaults in ``to_row``.
    """

    id: str | None = None
    profile_id: str | None = None
    topic: str | None = None
    title: str | None = None
    is_placement_test: bool | None = None
    started_at: str | None = None
    message_count: int | None = None
    avg_prosody_score: float | None = None

    def to_row(self) -> dict[str, Any]:
        """Row written to the ``conversations`` table, with defaults filled in."""
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "topic": self.topic,
            "title": self.title or self.topic or "New Conversation",
            "is_placement_test": self.is_placement_test or False,
            "started_at": self.started_at or datetime.now(timezone.utc).isoformat(),
            "message_count": self.message_count or 0,
            "avg_prosody_score": self.avg_prosody_score or 0,
        }


class AnalyticsEvent(_RequestBody):
    """Body of ``/api/analytics``.

    Ingest is best effort, so every field is coerced instead of rejected.
    """

    event_type: str = "unknown"
    metadata: dict[str, Any] | None = None
    user_id: str | None = None

    @field_validator("event_type", mode="before")
    @classmethod
    def coerce_event_type(cls, v: Any) -> str:
        if v is None or v == "":
            return "unknown"
        return v if isinstance(v, str) else json.dumps(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def coerce_metadata(cls, v: Any) -> dict[str, Any] | None:
        if v is None or isinstance(v, dict):
            return v
        return {"value": v}

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return v if isinstance(v, str) else json.dumps(v)


class PlacementTestRequest(_RequestBody):
    """Body of ``/api/placement-test``."""

    response: str | None = None
    topic: str | None = None
    difficulty: str | None = None
    profile_id: str | None = Field(None, alias="profileId")
    device_id: str | None = Field(None, alias="deviceId")


class PlacementScoreRequest(_RequestBody):
    """Body of ``/api/placement-score``."""

    profile_id: str | None = Field(None, alias="profileId")
    conversation_id: str | None = Field(None, alias="conversationId")
