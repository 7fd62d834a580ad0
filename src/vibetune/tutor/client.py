"""OpenAI-backed tutor client."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any

import structlog
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import AsyncOpenAI
from pydantic import ValidationError

from vibetune.config import Settings
from vibetune.prosody.models import PlacementAssessment, ProsodyAnalysis, Transcription, WordTiming
from vibetune.tutor.models import TutorReply
from vibetune.tutor.prompts import (
    PLACEMENT_ASSESSMENT_PROMPT,
    PRONUNCIATION_COACH_SYSTEM_PROMPT,
    PRONUNCIATION_FEEDBACK_TEMPLATE,
    TutorContext,
    build_system_prompt,
    extract_json_object,
    extract_topic_tag,
)

if TYPE_CHECKING:
    from vibetune.tutor.memory import ConversationMemoryManager

logger = structlog.get_logger()

TRANSCRIBE_VERBATIM_PROMPT = (
    "Transcribe exactly as spoken, including any grammar mistakes, filler words, and hesitations."
)

FALLBACK_PLACEMENT = PlacementAssessment(
    score=60,
    feedback="Thank you for your response! You're communicating your thoughts clearly.",
)


class TutorClient:
    """Async client for tutor replies and realtime sessions.

    Uses AsyncOpenAI (raw SDK) for token streaming, transcription and
    realtime session tokens. Uses ChatOpenAI (LangChain) for whole replies,
    pronunciation coaching and placement scoring.
    """

    def __init__(
        self,
        settings: Settings,
        memory: ConversationMemoryManager | None = None,
    ) -> None:
        self._client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout,
        )
        self._llm = ChatOpenAI(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.openai_timeout,
            max_tokens=settings.chat_max_tokens,
        )
        self._model = settings.openai_model
        self._max_tokens = settings.chat_max_tokens
        self._realtime_model = settings.openai_realtime_model
        self._realtime_voice = settings.openai_realtime_voice
        self._transcribe_model = settings.openai_transcribe_model
        self._memory = memory

    def _history(self, conversation_id: str | None) -> list[BaseMessage]:
        if self._memory and conversation_id:
            return self._memory.get_messages(conversation_id)
        return []

    def _remember(self, conversation_id: str | None, text: str, reply: str) -> None:
        if self._memory and conversation_id:
            self._memory.add_exchange(conversation_id, text, reply)

    async def reply(
        self,
        text: str,
        context: TutorContext | None = None,
        conversation_id: str | None = None,
    ) -> TutorReply:
        """Generate one whole tutor reply.

        Args:
            text: The learner's message.
            context: Topic, stage, level and recent mistakes.
            conversation_id: Conversation to read history from and append to.

        Returns:
            TutorReply with the display text and any confirmed topic.
        """
        history = self._history(conversation_id)
        messages: list[BaseMessage] = [
            SystemMessage(content=build_system_prompt(context)),
            *history,
            HumanMessage(content=text),
        ]

        logger.info(
            "tutor_reply_start",
            model=self._model,
            history_length=len(history),
            conversation_id=conversation_id,
        )

        try:
            response = await self._llm.ainvoke(messages)
        except Exception:
            logger.error("tutor_reply_error", model=self._model)
            raise

        raw = (response.content or "").strip()
        reply_text, topic = extract_topic_tag(raw)
        self._remember(conversation_id, text, reply_text)

        logger.info(
            "tutor_reply_complete",
            model=self._model,
            reply_length=len(reply_text),
            topic_confirmed=topic,
        )
        return TutorReply(reply_text=reply_text, topic_confirmed=topic, model=self._model)

    async def stream_reply(
        self,
        text: str,
        context: TutorContext | None = None,
        conversation_id: str | None = None,
    ) -> AsyncGenerator[str, None]:
        """Stream a tutor reply as text fragments.

        The caller is responsible for accumulating text.
        """
        messages = [{"role": "system", "content": build_system_prompt(context)}]
        for message in self._history(conversation_id):
            role = "user" if message.type == "human" else "assistant"
            messages.append({"role": role, "content": message.content})
        messages.append({"role": "user", "content": text})

        logger.info("tutor_stream_start", model=self._model, conversation_id=conversation_id)

        stream = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=self._max_tokens,
            stream=True,
        )

        chunk_count = 0
        content_parts: list[str] = []
        async for chunk in stream:
            chunk_count += 1
            for choice in chunk.choices:
                content = choice.delta.content if choice.delta else None
                if content:
                    content_parts.append(content)
                    yield content
                if choice.finish_reason:
                    logger.debug("tutor_stream_finish", finish_reason=choice.finish_reason)

        self._remember(conversation_id, text, "".join(content_parts))

        logger.info(
            "tutor_stream_complete",
            model=self._model,
            total_chunks_received=chunk_count,
        )

    async def create_realtime_session(self) -> str:
        """Mint an ephemeral realtime session and return its client secret."""
        session = await self._client.beta.realtime.sessions.create(
            model=self._realtime_model,
            voice=self._realtime_voice,
        )
        secret = getattr(session, "client_secret", None)
        value = getattr(secret, "value", secret)
        if not value:
            raise ValueError("Realtime session did not include a client secret")

        logger.info("realtime_session_created", model=self._realtime_model)
        return value

    async def transcribe(self, audio: bytes, content_type: str | None = None) -> Transcription:
        """Transcribe English speech with word timestamps, keeping the learner's mistakes."""
        result = await self._client.audio.transcriptions.create(
            file=("audio.webm", audio, content_type or "audio/webm"),
            model=self._transcribe_model,
            language="en",
            response_format="verbose_json",
            timestamp_granularities=["word"],
            prompt=TRANSCRIBE_VERBATIM_PROMPT,
        )

        transcription = Transcription(
            text=getattr(result, "text", None) or "",
            duration=getattr(result, "duration", None) or 0.0,
            language=getattr(result, "language", None) or "en",
            segment_confidences=[
                getattr(segment, "confidence", None)
                for segment in getattr(result, "segments", None) or []
            ],
            words=[
                WordTiming(word=w.word, start=w.start, end=w.end)
                for w in getattr(result, "words", None) or []
            ],
        )
        logger.info(
            "transcription_complete",
            model=self._transcribe_model,
            audio_bytes=len(audio),
            duration=transcription.duration,
            word_count=len(transcription.words),
        )
        return transcription

    async def coach_feedback(self, text: str, analysis: ProsodyAnalysis) -> dict[str, Any] | None:
        """Ask the model for feedback that quotes the learner's own words.

        Returns the parsed ``{"strengths": [...], "improvements": [...]}``
        object, or None when the call fails or the reply is not JSON.
        """
        prompt = PRONUNCIATION_FEEDBACK_TEMPLATE.format(
            text=text,
            overall=round(analysis.overall_score * 100),
            pronunciation=round(analysis.pronunciation_score * 100),
            rhythm=round(analysis.rhythm_score * 100),
            intonation=round(analysis.intonation_score * 100),
            fluency=round(analysis.fluency_score * 100),
        )
        try:
            response = await self._llm.ainvoke([
                SystemMessage(content=PRONUNCIATION_COACH_SYSTEM_PROMPT),
                HumanMessage(content=prompt),
            ])
        except Exception as e:
            logger.warning("coach_feedback_failed", error=str(e))
            return None

        feedback = extract_json_object(response.content or "")
        if feedback is None:
            logger.warning("coach_feedback_unparsed", reply_length=len(response.content or ""))
        return feedback

    async def assess_placement(self, response: str, topic: str, difficulty: str) -> PlacementAssessment:
        """Score one placement test answer from 0 to 100."""
        prompt = PLACEMENT_ASSESSMENT_PROMPT.format(
            topic=topic, difficulty=difficulty, response=response,
        )
        try:
            reply = await self._llm.ainvoke([
                SystemMessage(content=prompt),
                HumanMessage(content=response),
            ])
        except Exception:
            logger.error("placement_assessment_error", model=self._model)
            raise

        data = extract_json_object(reply.content or "") or {}
        try:
            assessment = PlacementAssessment(score=data["score"], feedback=data["feedback"])
        except (KeyError, ValidationError):
            logger.warning("placement_assessment_unparsed", topic=topic, difficulty=difficulty)
            assessment = FALLBACK_PLACEMENT

        logger.info(
            "placement_assessed",
            topic=topic,
            difficulty=difficulty,
            score=assessment.score,
        )
        return assessment
