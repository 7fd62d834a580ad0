"""Pytest fixtures for vibetune tests."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vibetune.config import Settings

# Cleared so a developer's real credentials never leak into tests.
_CREDENTIAL_VARS = (
    "OPENAI_API_KEY",
    "DEEPGRAM_API_KEY",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
)


@pytest.fixture
def mock_env_vars():
    """Mock environment variables for testing."""
    env_vars = {
        **{name: "" for name in _CREDENTIAL_VARS},
        "HOST": "127.0.0.1",
        "PORT": "3000",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(mock_env_vars) -> Settings:
    """Settings with no third-party collaborators configured."""
    return Settings(_env_file=None)


@pytest.fixture
def configured_settings(mock_env_vars) -> Settings:
    """Settings with every collaborator configured."""
    with patch.dict(os.environ, {
        "OPENAI_API_KEY": "test-openai-key",
        "DEEPGRAM_API_KEY": "test-deepgram-key",
        "SUPABASE_URL": "https://project.supabase.co/",
        "SUPABASE_SERVICE_ROLE_KEY": "test-service-role-key",
    }):
        return Settings(_env_file=None)


@pytest.fixture
def mock_tutor():
    """Tutor client double; tests set reply / stream_reply as needed."""
    tutor = MagicMock()
    tutor.reply = AsyncMock()
    tutor.create_realtime_session = AsyncMock(return_value="ek_test_secret")
    return tutor


@pytest.fixture
def mock_supabase():
    client = AsyncMock()
    client.save_conversation = AsyncMock()
    client.insert_analytics_event = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_deepgram():
    client = AsyncMock()
    client.create_temp_key = AsyncMock(return_value="dg-temp-key")
    client.close = AsyncMock()
    return client
