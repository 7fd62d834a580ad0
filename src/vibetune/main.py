"""Application entrypoint - aiohttp server for the VibeTune API."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog
from aiohttp.web import Application, run_app

from vibetune.api import register_routes
from vibetune.config import Settings, get_settings
from vibetune.services.analytics import AnalyticsTracker
from vibetune.validation import Validator

# Everything except the final renderer, which depends on the sinks.
_PROCESSORS = (
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
)


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _attach(handler: logging.Handler, level: int) -> None:
    # structlog renders the whole line; stdlib only passes it through
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.root.addHandler(handler)


def configure_logging(
    log_level: str = "INFO",
    log_file: str = "",
    log_file_max_bytes: int = 10_485_760,
    log_file_backup_count: int = 5,
) -> None:
    """Route structlog events through the root stdlib logger.

    Events always reach the console. With ``log_file`` set they also go to a
    size-rotated file and are rendered as one JSON object per line, so both
    sinks stay machine readable; without it the console gets structlog's
    key/value rendering. Unknown level names fall back to INFO.
    """
    level = _resolve_level(log_level)

    logging.root.handlers.clear()
    logging.root.setLevel(level)
    _attach(logging.StreamHandler(), level)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _attach(
            RotatingFileHandler(
                filename=path,
                maxBytes=log_file_max_bytes,
                backupCount=log_file_backup_count,
                encoding="utf-8",
            ),
            level,
        )

    renderer = structlog.processors.JSONRenderer() if log_file else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[*_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


async def _close_clients(app: Application) -> None:
    for name in ("supabase", "deepgram"):
        client = app[name]
        if client is not None:
            await client.close()


def create_app(settings: Settings | None = None) -> Application:
    """Create and configure the aiohttp application.

    Every third-party collaborator is optional; handlers that need a missing
    one answer with an error status instead of failing startup.
    """
    settings = settings or get_settings()

    tutor = None
    if settings.openai_api_key:
        from vibetune.tutor import ConversationMemoryManager, TutorClient
        memory = ConversationMemoryManager(
            ttl=settings.memory_ttl,
            maxsize=settings.memory_maxsize,
            max_messages=settings.memory_max_messages,
        )
        tutor = TutorClient(settings, memory=memory)
        logger.info("tutor_client_initialized", model=settings.openai_model)
    else:
        logger.info("tutor_client_disabled", reason="OPENAI_API_KEY not set")

    supabase = None
    if settings.supabase_configured:
        from vibetune.services.supabase import SupabaseClient
        supabase = SupabaseClient(
            settings.supabase_url,
            settings.supabase_service_role_key,
            timeout=settings.http_timeout,
        )
        logger.info("supabase_client_initialized", url=settings.supabase_url)
    else:
        logger.info(
            "supabase_client_disabled",
            reason="SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set",
        )

    deepgram = None
    if settings.deepgram_api_key:
        from vibetune.services.deepgram import DeepgramClient
        deepgram = DeepgramClient(
            settings.deepgram_api_key,
            key_ttl=settings.deepgram_key_ttl,
            timeout=settings.http_timeout,
        )
        logger.info("deepgram_client_initialized")
    else:
        logger.info("deepgram_client_disabled", reason="DEEPGRAM_API_KEY not set")

    app = Application(client_max_size=settings.max_upload_bytes)
    app["settings"] = settings
    app["tutor"] = tutor
    app["supabase"] = supabase
    app["deepgram"] = deepgram
    app["validator"] = Validator()
    app["analytics"] = AnalyticsTracker(supabase, dedupe_window=settings.analytics_dedupe_window)

    register_routes(app)
    app.on_cleanup.append(_close_clients)

    return app


def main() -> None:
    """Run the API server."""
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_file_max_bytes=settings.log_file_max_bytes,
        log_file_backup_count=settings.log_file_backup_count,
    )

    logger.info(
        "starting_api_server",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )

    app = create_app(settings)
    run_app(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
