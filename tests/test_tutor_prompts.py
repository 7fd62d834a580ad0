"""Tests for tutor prompt templates."""

from vibetune.tutor.prompts import (
    TUTOR_SYSTEM_PROMPT,
    TutorContext,
    build_system_prompt,
    extract_json_object,
    extract_topic_tag,
)


def test_prompt_without_context_is_base_persona():
    assert build_system_prompt() == TUTOR_SYSTEM_PROMPT
    assert build_system_prompt(TutorContext()) == TUTOR_SYSTEM_PROMPT


def test_prompt_includes_context_hints():
    prompt = build_system_prompt(TutorContext(
        topic="travel",
        stage="practice",
        level="beginner",
        last_mistakes=["comfortable", " ", "vegetable"],
    ))
    assert prompt.startswith(TUTOR_SYSTEM_PROMPT)
    assert "topic is fixed: travel" in prompt
    assert "Current stage: practice." in prompt
    assert "level is beginner" in prompt
    assert "mispronounced: comfortable, vegetable." in prompt


def test_prompt_omits_empty_mistakes():
    prompt = build_system_prompt(TutorContext(topic="food", last_mistakes=[]))
    assert "mispronounced" not in prompt


def test_extract_topic_tag():
    text, topic = extract_topic_tag("Great, let's talk about it! [[TOPIC_CONFIRMED: Street Food ]]")
    assert text == "Great, let's talk about it!"
    assert topic == "Street Food"


def test_extract_topic_tag_case_insensitive():
    _, topic = extract_topic_tag("Okay [[topic_confirmed:music]]")
    assert topic == "music"


def test_extract_topic_tag_absent():
    text, topic = extract_topic_tag("What would you like to talk about?")
    assert text == "What would you like to talk about?"
    assert topic is None


def test_extract_json_object_from_chatty_reply():
    reply = 'Sure! Here is the result:\n{"score": 80,\n "feedback": "Well done {really}"}\nThanks.'
    assert extract_json_object(reply) == {"score": 80, "feedback": "Well done {really}"}


def test_extract_json_object_rejects_non_objects():
    assert extract_json_object("no json here") is None
    assert extract_json_object("{not: valid}") is None
    assert extract_json_object("[1, 2]") is None
