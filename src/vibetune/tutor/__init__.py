"""Tutor client module."""

from vibetune.tutor.client import TutorClient
from vibetune.tutor.memory import ConversationMemoryManager
from vibetune.tutor.models import TutorReply
from vibetune.tutor.prompts import TutorContext

__all__ = ["TutorClient", "ConversationMemoryManager", "TutorContext", "TutorReply"]
