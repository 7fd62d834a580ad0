"""Prompt templates for the VibeTune tutor."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

# Base persona shared by every reply. The topic control tag is parsed back
# out of the reply by extract_topic_tag.
TUTOR_SYSTEM_PROMPT = """\
You are VibeTune, an AI English speaking teacher who talks like a friendly friend.

Follow the 3-phase flow: TOPIC_DISCOVERY -> MAIN_CHAT -> WRAP-UP. When you \
decide on a clear topic, include a control tag at the end of your reply \
exactly like: [[TOPIC_CONFIRMED: topic_name_here]]. When the user requests \
end (/end) or you are instructed to wrap up, return a short goodbye plus a \
structured summary with headings: VOCABULARY, GRAMMAR POINTS, OVERALL FEEDBACK.

Keep replies short (2-5 sentences) and friendly. Correct only a few important \
mistakes. Use simple, level-appropriate vocabulary in summaries."""

TOPIC_TEMPLATE = "The conversation topic is fixed: {topic}. Stay on this topic."
STAGE_TEMPLATE = "Current stage: {stage}."
LEVEL_TEMPLATE = "The learner's level is {level}. Match your vocabulary and pace to it."
MISTAKES_TEMPLATE = (
    "In their last turn the learner mispronounced: {words}. "
    "Naturally reuse one or two of these words so they can practise them again."
)

PRONUNCIATION_COACH_SYSTEM_PROMPT = (
    "You are a helpful English pronunciation coach who gives specific, actionable feedback."
)

PRONUNCIATION_FEEDBACK_TEMPLATE = """\
A student just said: "{text}"

Their pronunciation scores are:
- Overall: {overall}%
- Pronunciation: {pronunciation}%
- Rhythm: {rhythm}%
- Intonation: {intonation}%
- Fluency: {fluency}%

Provide SPECIFIC, ACTIONABLE feedback based on what they actually said. Focus on:
1. Specific words they should practice (quote the exact words from their speech)
2. Specific sounds or patterns they struggled with (with examples from their text)
3. Concrete tips they can apply immediately

Format your response as JSON:
{{"strengths": ["..."], "improvements": ["..."]}}

Keep feedback concise, specific, and encouraging. Reference their actual words."""

PLACEMENT_ASSESSMENT_PROMPT = """\
You are an English language assessment expert evaluating a student's response for a placement test.

Topic: {topic}
Difficulty Level: {difficulty}
Student Response: "{response}"

Evaluate the response on grammar accuracy and complexity, vocabulary range, \
coherence and organization, detail and elaboration, and natural language use.

Expected score ranges by level:
- Beginner: basic sentences, simple vocabulary (40-70)
- Intermediate: complex sentences, varied vocabulary (55-85)
- Advanced: sophisticated language, nuanced expression (70-95)

Format your response as JSON:
{{"score": <number 0-100>, "feedback": "<encouraging feedback with specific observations>"}}"""

_TOPIC_TAG = re.compile(r"\[\[TOPIC_CONFIRMED:\s*([^\]]+)\]\]", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class TutorContext:
    """Per-request hints used to shape the system prompt."""

    topic: str | None = None
    stage: str | None = None
    level: str | None = None
    last_mistakes: list[str] = field(default_factory=list)


def build_system_prompt(context: TutorContext | None = None) -> str:
    """Compose the system prompt from the base persona and request hints."""
    parts = [TUTOR_SYSTEM_PROMPT]
    if context is None:
        return parts[0]

    if context.topic:
        parts.append(TOPIC_TEMPLATE.format(topic=context.topic))
    if context.stage:
        parts.append(STAGE_TEMPLATE.format(stage=context.stage))
    if context.level:
        parts.append(LEVEL_TEMPLATE.format(level=context.level))
    mistakes = [w.strip() for w in context.last_mistakes if w and w.strip()]
    if mistakes:
        parts.append(MISTAKES_TEMPLATE.format(words=", ".join(mistakes)))

    return "\n\n".join(parts)


def extract_topic_tag(reply: str) -> tuple[str, str | None]:
    """Split a reply into display text and the confirmed topic, if tagged."""
    match = _TOPIC_TAG.search(reply)
    if not match:
        return reply, None
    cleaned = _TOPIC_TAG.sub("", reply).strip()
    return cleaned, match.group(1).strip()


def extract_json_object(reply: str) -> dict | None:
    """Parse the outermost ``{...}`` block of a model reply, if it is a JSON object."""
    match = _JSON_OBJECT.search(reply)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
