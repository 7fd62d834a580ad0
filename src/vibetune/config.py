"""Application configuration using Pydantic settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (empty key = chat and realtime handlers answer 500)
    openai_api_key: str = Field(
        "", alias="OPENAI_API_KEY",
        description="OpenAI API key used for tutor chat replies and realtime session tokens.",
    )
    openai_model: str = Field(
        "gpt-4o-mini", alias="OPENAI_MODEL",
        description="Chat model used for tutor replies, streamed and non-streamed.",
    )
    openai_realtime_model: str = Field(
        "gpt-4o-realtime-preview", alias="OPENAI_REALTIME_MODEL",
        description="Model requested when minting an ephemeral realtime session.",
    )
    openai_realtime_voice: str = Field(
        "verse", alias="OPENAI_REALTIME_VOICE",
        description="Voice requested when minting an ephemeral realtime session.",
    )
    openai_timeout: float = Field(
        60.0, alias="OPENAI_TIMEOUT",
        description="HTTP request timeout in seconds for OpenAI calls.",
    )
    chat_max_tokens: int = Field(
        800, alias="CHAT_MAX_TOKENS",
        description="Upper bound on tokens generated per tutor reply.",
    )
    openai_transcribe_model: str = Field(
        "whisper-1", alias="OPENAI_TRANSCRIBE_MODEL",
        description="Speech-to-text model used for prosody analysis. Must support word timestamps.",
    )

    # Deepgram
    deepgram_api_key: str = Field(
        "", alias="DEEPGRAM_API_KEY",
        description="Deepgram project key used to mint short-lived speech-to-text keys.",
    )
    deepgram_key_ttl: int = Field(
        300, alias="DEEPGRAM_KEY_TTL",
        description="Lifetime in seconds of the temporary Deepgram keys handed to the browser.",
    )

    # Supabase (empty = persistence unconfigured, save-conversation answers 503)
    supabase_url: str = Field(
        "", alias="SUPABASE_URL",
        description="Supabase project URL. Trailing slashes are stripped.",
    )
    supabase_service_role_key: str = Field(
        "", alias="SUPABASE_SERVICE_ROLE_KEY",
        description="Supabase service role key for server-side REST writes.",
    )
    http_timeout: float = Field(
        30.0, alias="HTTP_TIMEOUT",
        description="HTTP request timeout in seconds for Supabase and Deepgram calls.",
    )

    # Conversation memory
    memory_ttl: int = Field(
        3600, alias="MEMORY_TTL",
        description="TTL in seconds for per-conversation chat history kept in memory.",
    )
    memory_maxsize: int = Field(
        1000, alias="MEMORY_MAXSIZE",
        description="Max number of conversations held in memory. LRU eviction when exceeded.",
    )
    memory_max_messages: int = Field(
        10, alias="MEMORY_MAX_MESSAGES",
        description="Max messages kept per conversation (sliding window). Set to 0 for unlimited.",
    )

    # Analytics
    analytics_dedupe_window: float = Field(
        1.0, alias="ANALYTICS_DEDUPE_WINDOW",
        description="Seconds during which a repeated (user_id, event_type) pair is not stored again.",
    )

    # Server
    host: str = Field(
        "0.0.0.0", alias="HOST",
        description="Host address to bind the aiohttp server to.",
    )
    port: int = Field(
        3000, alias="PORT",
        description="Port number for the aiohttp server.",
    )
    max_upload_bytes: int = Field(
        25 * 1024 * 1024, alias="MAX_UPLOAD_BYTES",
        description="Largest request body accepted, sized for audio uploads. Default: 25 MB.",
    )

    # Logging
    log_level: str = Field(
        "INFO", alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL.",
    )
    log_file: str = Field(
        "", alias="LOG_FILE",
        description="Path to log file for file-based logging with rotation. Empty = console only.",
    )
    log_file_max_bytes: int = Field(
        10_485_760, alias="LOG_FILE_MAX_BYTES",
        description="Max size in bytes per log file before rotation. Default: 10 MB.",
    )
    log_file_backup_count: int = Field(
        5, alias="LOG_FILE_BACKUP_COUNT",
        description="Number of rotated backup log files to keep.",
    )

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slashes(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
