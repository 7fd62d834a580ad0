"""aiohttp request handlers for the VibeTune API."""

from __future__ import annotations

import json
from typing import TypeVar

import structlog
from aiohttp import web
from pydantic import BaseModel, ValidationError

from vibetune.api.models import (
    AnalyticsEvent,
    ChatRequest,
    ConversationRecord,
    PlacementScoreRequest,
    PlacementTestRequest,
    VoiceRequest,
)
from vibetune.prosody import analyze_prosody, average_message_score, level_for_score, merge_coach_feedback
from vibetune.services.analytics import AnalyticsTracker
from vibetune.services.deepgram import DeepgramClient
from vibetune.services.supabase import SupabaseClient
from vibetune.streaming.encoder import encode_delta, encode_done, encode_error
from vibetune.tutor.client import TutorClient
from vibetune.tutor.prompts import TutorContext
from vibetune.validation import Validator

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

_VOICE_ECHO_LIMIT = 120


def _error(status: int, error: str, **extra) -> web.Response:
    return web.json_response({"error": error, **extra}, status=status)


async def _read_body(request: web.Request, model: type[ModelT]) -> ModelT:
    """Parse the JSON body into ``model``; an empty body counts as ``{}``."""
    data = {}
    if request.body_exists:
        try:
            data = await request.json()
        except ValueError:
            raise web.HTTPBadRequest(
                text=json.dumps({"error": "Request body must be JSON"}),
                content_type="application/json",
            )
    if not isinstance(data, dict):
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "Request body must be a JSON object"}),
            content_type="application/json",
        )
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise web.HTTPBadRequest(
            text=json.dumps({
                "error": "Invalid request body",
                "details": [err["msg"] for err in e.errors()],
            }),
            content_type="application/json",
        )


def _clean_text(request: web.Request, text: str | None) -> tuple[str, list[str]]:
    """Sanitize and validate a learner message. Missing text becomes a greeting."""
    validator: Validator = request.app["validator"]
    sanitized, result = validator.validate_and_sanitize(text or "Hello", "message")
    return sanitized, result.errors


async def chat(request: web.Request) -> web.Response:
    body = await _read_body(request, ChatRequest)
    tutor: TutorClient | None = request.app["tutor"]
    if tutor is None:
        return _error(500, "OPENAI_API_KEY not configured")

    text, errors = _clean_text(request, body.text)
    if errors:
        return _error(400, "Invalid message", details=errors)

    logger.info(
        "chat_request",
        conversation_id=body.conversation_id,
        topic=body.topic,
        stage=body.stage,
        level=body.level,
        mistake_count=len(body.last_mistakes),
    )

    try:
        reply = await tutor.reply(text, body.to_context(), conversation_id=body.conversation_id)
    except Exception as e:
        logger.error("chat_failed", error=str(e))
        return _error(500, str(e))

    return web.json_response({
        "replyText": reply.reply_text,
        "topic_confirmed": reply.topic_confirmed,
    })


async def chat_stream(request: web.Request) -> web.StreamResponse:
    """Stream a tutor reply as ``data: {"delta": ...}`` frames ending in ``[DONE]``."""
    body = await _read_body(request, ChatRequest)
    tutor: TutorClient | None = request.app["tutor"]
    if tutor is None:
        return _error(500, "OPENAI_API_KEY not configured")

    text, errors = _clean_text(request, body.text)
    if errors:
        return _error(400, "Invalid message", details=errors)

    deltas = tutor.stream_reply(text, body.to_context(), conversation_id=body.conversation_id)

    # Pull the first fragment before committing to a streamed response so an
    # upstream failure can still be reported as a plain 500.
    try:
        first = await deltas.__anext__()
    except StopAsyncIteration:
        first = None
    except Exception as e:
        logger.error("chat_stream_failed", error=str(e), stage="open")
        return _error(500, "Chat stream failed", details=str(e))

    response = web.StreamResponse(
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
    await response.prepare(request)

    fragment_count = 0
    try:
        if first is not None:
            await response.write(encode_delta(first))
            fragment_count += 1
            async for delta in deltas:
                await response.write(encode_delta(delta))
                fragment_count += 1
        await response.write(encode_done())
    except ConnectionResetError:
        logger.info("chat_stream_client_disconnected", fragments_sent=fragment_count)
        await deltas.aclose()
        return response
    except Exception as e:
        logger.error("chat_stream_failed", error=str(e), stage="streaming")
        try:
            await response.write(encode_error(str(e) or "Unknown"))
        except ConnectionResetError:
            logger.info("chat_stream_client_disconnected", fragments_sent=fragment_count)
            return response

    logger.info("chat_stream_complete", fragments_sent=fragment_count)
    await response.write_eof()
    return response


async def voice(request: web.Request) -> web.Response:
    body = await _read_body(request, VoiceRequest)
    tutor: TutorClient | None = request.app["tutor"]
    stage = body.stage or "practice"

    if not body.text or not body.text.strip():
        reply_text = "No text provided."
        speak = False
    elif tutor is None:
        # Echo mode when OpenAI is not configured
        snippet = body.text[:_VOICE_ECHO_LIMIT]
        ellipsis = "..." if len(body.text) > _VOICE_ECHO_LIMIT else ""
        reply_text = f"(Voice flow) Thanks - received {snippet}{ellipsis}"
        speak = True
        logger.info("voice_echo_mode", conversation_id=body.conversation_id)
    else:
        text, errors = _clean_text(request, body.text)
        if errors:
            return _error(400, "Invalid message", details=errors)
        context = TutorContext(topic=body.topic, stage=stage)
        try:
            reply = await tutor.reply(text, context, conversation_id=body.conversation_id)
        except Exception as e:
            logger.error("voice_failed", error=str(e), profile_id=body.profile_id)
            return web.json_response({"ok": False, "error": str(e)}, status=500)
        reply_text = reply.reply_text
        speak = bool(reply_text)

    return web.json_response({
        "ok": True,
        "replyText": reply_text,
        "speakReply": speak,
        "conversationId": body.conversation_id,
        "topic": body.topic,
        "stage": stage,
        "nextStage": "wrapup",
    })


async def save_conversation(request: web.Request) -> web.Response:
    body = await _read_body(request, ConversationRecord)
    validator: Validator = request.app["validator"]

    result = validator.validate_fields({
        "conversation_id": body.id,
        "profile_id": body.profile_id,
    })
    if not result.is_valid:
        return _error(400, "Conversation id and profile_id are required", details=result.errors)

    supabase: SupabaseClient | None = request.app["supabase"]
    if supabase is None:
        return web.json_response(
            {"error": "Database not configured", "message": "Supabase configuration is missing"},
            status=503,
        )

    try:
        saved = await supabase.save_conversation(body.to_row())
    except Exception as e:
        logger.error("conversation_save_failed", conversation_id=body.id, error=str(e))
        return _error(500, "Failed to save conversation to database", details=str(e))

    return web.json_response({
        "success": True,
        "message": "Conversation saved successfully",
        "data": saved,
    })


async def analytics(request: web.Request) -> web.Response:
    body = await _read_body(request, AnalyticsEvent)
    tracker: AnalyticsTracker = request.app["analytics"]
    skipped = await tracker.track(body.event_type, body.metadata, body.user_id)
    return web.json_response({
        "success": True,
        "message": "Event tracked successfully",
        "skipped": skipped,
    })


async def deepgram_tempkey(request: web.Request) -> web.Response:
    deepgram: DeepgramClient | None = request.app["deepgram"]
    if deepgram is None:
        return _error(500, "DEEPGRAM_API_KEY not configured")
    try:
        key = await deepgram.create_temp_key()
    except Exception as e:
        logger.error("deepgram_tempkey_failed", error=str(e))
        return _error(500, str(e))
    return web.json_response({"key": key})


async def realtime_token(request: web.Request) -> web.Response:
    tutor: TutorClient | None = request.app["tutor"]
    if tutor is None:
        return _error(500, "OPENAI_API_KEY not configured")
    try:
        client_secret = await tutor.create_realtime_session()
    except Exception as e:
        logger.error("realtime_token_failed", error=str(e))
        return _error(500, "Failed to create realtime token", detail=str(e))
    return web.json_response({"client_secret": client_secret})


async def prosody_analysis(request: web.Request) -> web.Response:
    """Score a raw audio upload for pronunciation, rhythm, intonation and fluency."""
    tutor: TutorClient | None = request.app["tutor"]
    if tutor is None:
        return web.json_response(
            {
                "error": "Prosody analysis service not configured",
                "message": "OpenAI API key is missing. Please configure OPENAI_API_KEY.",
            },
            status=500,
        )

    audio = await request.read()
    if not audio:
        return _error(400, "No audio data provided")

    try:
        transcription = await tutor.transcribe(audio, request.content_type)
        analysis = analyze_prosody(transcription)
    except Exception as e:
        logger.error("prosody_analysis_failed", error=str(e), audio_bytes=len(audio))
        return web.json_response(
            {"error": "Prosody analysis failed", "message": str(e) or "Unknown error occurred"},
            status=500,
        )

    coach = await tutor.coach_feedback(transcription.text, analysis)
    analysis.detailed_feedback = merge_coach_feedback(analysis.detailed_feedback, coach)

    logger.info(
        "prosody_analysis_complete",
        overall_score=analysis.overall_score,
        word_count=analysis.word_count,
        coached=coach is not None,
    )
    return web.json_response({
        "success": True,
        "transcription": transcription.text,
        "duration": transcription.duration,
        "prosody_analysis": analysis.model_dump(),
    })


async def placement_test(request: web.Request) -> web.Response:
    tutor: TutorClient | None = request.app["tutor"]
    if tutor is None:
        return _error(500, "OpenAI API key not configured")

    body = await _read_body(request, PlacementTestRequest)
    if not (body.response and body.topic and body.difficulty):
        return _error(400, "Missing required fields")

    try:
        assessment = await tutor.assess_placement(body.response, body.topic, body.difficulty)
    except Exception as e:
        logger.error("placement_test_failed", error=str(e), profile_id=body.profile_id)
        return web.json_response(
            {"error": "Analysis failed", "message": str(e) or "Unknown error"},
            status=500,
        )

    return web.json_response({"score": assessment.score, "feedback": assessment.feedback})


async def placement_score(request: web.Request) -> web.Response:
    """Set a profile's level from the prosody scores of its placement conversation."""
    body = await _read_body(request, PlacementScoreRequest)
    if not (body.profile_id and body.conversation_id):
        return web.json_response(
            {"error": "Bad Request", "details": "Missing required fields: profileId, conversationId"},
            status=400,
        )

    supabase: SupabaseClient | None = request.app["supabase"]
    if supabase is None:
        return web.json_response(
            {"error": "Database not configured", "message": "Supabase configuration is missing"},
            status=503,
        )

    try:
        scores = await supabase.get_message_scores(body.conversation_id)
        score = average_message_score(scores)
        level = level_for_score(score)
        await supabase.update_profile(body.profile_id, {
            "level": level,
            "placement_test_completed": True,
            "placement_test_score": score,
        })
    except Exception as e:
        logger.error("placement_score_failed", profile_id=body.profile_id, error=str(e))
        return _error(500, "Database error", details=str(e))

    logger.info("placement_level_set", profile_id=body.profile_id, level=level, messages=len(scores))
    return web.json_response({"level": level, "score": round(score, 2)})


async def health(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({"status": "healthy"})


def register_routes(app: web.Application) -> None:
    app.router.add_post("/api/chat", chat)
    app.router.add_post("/api/chat-stream", chat_stream)
    app.router.add_post("/api/voice", voice)
    app.router.add_post("/api/save-conversation", save_conversation)
    app.router.add_post("/api/analytics", analytics)
    app.router.add_post("/api/deepgram-tempkey", deepgram_tempkey)
    app.router.add_post("/api/realtime-token", realtime_token)
    app.router.add_post("/api/prosody-analysis", prosody_analysis)
    app.router.add_post("/api/placement-test", placement_test)
    app.router.add_post("/api/placement-score", placement_score)
    app.router.add_get("/health", health)
