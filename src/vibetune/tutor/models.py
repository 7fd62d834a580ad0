"""Data models for tutor replies."""

from pydantic import BaseModel


class TutorReply(BaseModel):
    """A whole tutor reply."""

    reply_text: str
    topic_confirmed: str | None = None
    model: str
