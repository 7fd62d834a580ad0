"""Tests for ConversationMemoryManager."""

import time

from vibetune.tutor.memory import ConversationMemoryManager


def test_get_creates_new_history():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    history = mgr.get_history("conv-1")
    assert len(history.messages) == 0


def test_get_returns_existing_history():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    assert mgr.get_history("conv-1") is mgr.get_history("conv-1")


def test_add_exchange_stores_messages():
    """add_exchange adds a human and an ai message."""
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    mgr.add_exchange("conv-1", "I went to the beach.", "Nice! Who did you go with?")

    messages = mgr.get_messages("conv-1")
    assert len(messages) == 2
    assert messages[0].type == "human"
    assert messages[0].content == "I went to the beach."
    assert messages[1].type == "ai"
    assert messages[1].content == "Nice! Who did you go with?"


def test_get_messages_unknown_conversation():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    assert mgr.get_messages("unknown") == []


def test_sliding_window_keeps_latest_messages():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100, max_messages=4)
    for i in range(3):
        mgr.add_exchange("conv-1", f"Q{i}", f"A{i}")

    contents = [m.content for m in mgr.get_messages("conv-1")]
    assert contents == ["Q1", "A1", "Q2", "A2"]


def test_zero_max_messages_is_unlimited():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100, max_messages=0)
    for i in range(20):
        mgr.add_exchange("conv-1", f"Q{i}", f"A{i}")
    assert len(mgr.get_messages("conv-1")) == 40


def test_conversations_are_isolated():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    mgr.add_exchange("conv-1", "Q", "A")
    assert mgr.get_messages("conv-2") == []


def test_clear_conversation():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    mgr.add_exchange("conv-1", "Q", "A")
    mgr.clear("conv-1")
    assert mgr.get_messages("conv-1") == []


def test_clear_unknown_conversation_no_error():
    mgr = ConversationMemoryManager(ttl=3600, maxsize=100)
    mgr.clear("unknown")


def test_ttl_expiry():
    mgr = ConversationMemoryManager(ttl=1, maxsize=100)
    mgr.add_exchange("conv-1", "Q", "A")
    time.sleep(1.1)
    assert mgr.get_messages("conv-1") == []
