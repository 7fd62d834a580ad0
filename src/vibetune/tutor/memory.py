"""Per-conversation chat history with TTL eviction."""

from cachetools import TTLCache
from langchain_core.chat_history import BaseChatMessageHistory
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

import structlog

logger = structlog.get_logger()


class InMemoryChatHistory(BaseChatMessageHistory):
    """Chat history capped to the most recent ``max_messages``."""

    def __init__(self, max_messages: int = 0) -> None:
        self._messages: list[BaseMessage] = []
        self._max_messages = max_messages

    @property
    def messages(self) -> list[BaseMessage]:
        return self._messages

    def add_message(self, message: BaseMessage) -> None:
        self._messages.append(message)
        if self._max_messages and len(self._messages) > self._max_messages:
            del self._messages[: len(self._messages) - self._max_messages]

    def clear(self) -> None:
        self._messages.clear()


class ConversationMemoryManager:
    """Keeps recent tutor exchanges per conversation id.

    Conversations are evicted after ``ttl`` seconds of inactivity or when
    ``maxsize`` is exceeded (LRU eviction).
    """

    def __init__(self, ttl: int = 3600, maxsize: int = 1000, max_messages: int = 10) -> None:
        self._cache: TTLCache[str, InMemoryChatHistory] = TTLCache(
            maxsize=maxsize, ttl=ttl
        )
        self._max_messages = max_messages
        logger.info(
            "memory_manager_initialized",
            ttl=ttl,
            maxsize=maxsize,
            max_messages=max_messages,
        )

    def get_history(self, conversation_id: str) -> InMemoryChatHistory:
        """Get or create the history for a conversation."""
        if conversation_id not in self._cache:
            self._cache[conversation_id] = InMemoryChatHistory(self._max_messages)
            logger.debug("memory_conversation_created", conversation_id=conversation_id)
        return self._cache[conversation_id]

    def add_exchange(self, conversation_id: str, user_text: str, reply_text: str) -> None:
        history = self.get_history(conversation_id)
        history.add_message(HumanMessage(content=user_text))
        history.add_message(AIMessage(content=reply_text))
        logger.debug(
            "memory_exchange_added",
            conversation_id=conversation_id,
            message_count=len(history.messages),
        )

    def get_messages(self, conversation_id: str) -> list[BaseMessage]:
        """Get all messages for a conversation (empty list if none)."""
        if conversation_id not in self._cache:
            return []
        return list(self._cache[conversation_id].messages)

    def clear(self, conversation_id: str) -> None:
        if conversation_id in self._cache:
            del self._cache[conversation_id]
            logger.debug("memory_conversation_cleared", conversation_id=conversation_id)
