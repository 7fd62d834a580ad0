"""Tests for prosody scoring, feedback and placement levels."""

import pytest

from vibetune.prosody.feedback import build_feedback, merge_coach_feedback, observe_text
from vibetune.prosody.models import DetailedFeedback, Transcription, WordTiming
from vibetune.prosody.placement import average_message_score, level_for_score
from vibetune.prosody.scoring import (
    analyze_prosody,
    fluency_score,
    intonation_score,
    pronunciation_score,
    rhythm_score,
    score_timed_words,
    score_untimed_words,
)


class TestAspectScores:
    @pytest.mark.parametrize("rate, expected", [
        (140, 1.0),
        (100, 0.7),
        (200, 0.9),
        (80, 0.8),
        (50, 0.5),
        (0, 0.5),
        (400, 0.5),
    ])
    def test_rhythm(self, rate, expected):
        assert rhythm_score(rate) == pytest.approx(expected)

    def test_pronunciation_without_segments(self):
        assert pronunciation_score([], "nice day") == pytest.approx(0.80)
        assert pronunciation_score([], "an extraordinary day") == pytest.approx(0.75)

    def test_pronunciation_from_segment_confidence(self):
        assert pronunciation_score([0.9, None], "x") == pytest.approx(0.85)
        assert pronunciation_score([0.2], "x") == pytest.approx(0.5)

    def test_intonation(self):
        assert intonation_score("hello there") == pytest.approx(0.7)
        assert intonation_score("Really? Yes! Ok.") == pytest.approx(0.95)

    def test_intonation_rewards_sentence_length_variety(self):
        text = "Hi. I went to the market this morning and bought some fresh bread."
        assert intonation_score(text) == pytest.approx(0.8)

    def test_fluency_penalises_fillers_and_repetition(self):
        assert fluency_score("um um um hello", 140) == pytest.approx(0.4)

    def test_fluency_comfortable_rate_bonus(self):
        assert fluency_score("I like trains a lot", 140) == pytest.approx(0.7)
        assert fluency_score("I enjoy trains a lot", 90) == pytest.approx(0.8)


class TestWordScores:
    def test_timed_words_sorted_lowest_first(self):
        words = [
            WordTiming(word=" I", start=0.0, end=0.1),
            WordTiming(word="think", start=0.1, end=0.4),
            WordTiming(word="cat", start=0.4, end=0.6),
            WordTiming(word="weather", start=0.6, end=1.0),
            WordTiming(word="12", start=1.0, end=1.2),
        ]

        scored = score_timed_words(words)

        assert [(w.word, w.score) for w in scored] == [("weather", 50), ("think", 70)]
        assert scored[0].start == 0.6
        assert {i.type for i in scored[0].issues} == {"TH sound", "Final R", "W sound"}

    def test_timed_long_word_penalty(self):
        scored = score_timed_words([WordTiming(word="understanding")])
        assert scored[0].score == 70

    def test_untimed_words_average_pattern_scores(self):
        scored = score_untimed_words("I walked through the station")
        assert [(w.word, w.score) for w in scored] == [
            ("walked", 75),
            ("through", 73),
            ("the", 70),
            ("station", 75),
        ]

    def test_untimed_words_topped_up_to_practice_targets(self):
        scored = score_untimed_words("Hello big world")
        assert [(w.word, w.score) for w in scored] == [("Hello", 80), ("world", 80)]
        assert scored[0].issues[0].type == "Practice word"

    def test_untimed_words_capped(self):
        text = " ".join(f"thing{i}s" for i in range(15))
        assert len(score_untimed_words(text)) == 10


class TestFeedback:
    def test_observations(self):
        observed = observe_text("Um, they walked. Um like, what?")

        assert [(f.word, f.count) for f in observed.fillers] == [("um", 2), ("like", 1)]
        assert observed.sounds[0].sound == "TH"
        assert observed.sounds[0].words == ["they"]
        assert "Remember to raise your voice at the end of questions" in observed.tips

    def test_priority_goes_first(self):
        scores = {"pronunciation": 0.9, "rhythm": 0.5, "intonation": 0.9, "fluency": 0.9}

        feedback = build_feedback(scores, 50, [], "Hello there.")

        assert feedback.improvements[0] == "Priority: Improve rhythm (currently 50%)"
        assert "Rhythm at 50% - Speaking rate is 50 wpm (try 120-140 wpm)" in feedback.improvements
        assert feedback.strengths == [
            "Excellent pronunciation clarity (90%)",
            "Good intonation patterns (90%)",
            "Fluent speech with good flow (90%)",
        ]

    def test_quotes_learner_words(self):
        scores = {"pronunciation": 0.65, "rhythm": 0.9, "intonation": 0.9, "fluency": 0.7}

        feedback = build_feedback(scores, 140, [], "um They um walked home.")

        assert (
            'Pronunciation at 65% - Focus on TH in words like "they". '
            "Put your tongue between your teeth"
        ) in feedback.improvements
        assert (
            'Fluency at 70% - You said "um" 2 times. Pause silently instead of saying "um"'
        ) in feedback.improvements

    def test_specific_issue_severity(self):
        scored = score_timed_words([WordTiming(word="weather"), WordTiming(word="think")])
        scores = dict.fromkeys(("pronunciation", "rhythm", "intonation", "fluency"), 0.9)

        feedback = build_feedback(scores, 140, scored, "weather think")

        assert [(i.word, i.severity) for i in feedback.specific_issues] == [
            ("weather", "high"),
            ("think", "medium"),
        ]
        assert feedback.specific_issues[1].feedback == "Pronunciation score: 70%"

    def test_merge_coach_feedback(self):
        base = DetailedFeedback(strengths=["s"], improvements=["i"])

        assert merge_coach_feedback(base, None) is base
        merged = merge_coach_feedback(base, {"strengths": "not a list", "improvements": ["better"]})
        assert merged.strengths == ["s"]
        assert merged.improvements == ["better"]


class TestAnalyzeProsody:
    def test_full_analysis(self):
        transcription = Transcription(
            text="I think the weather is really nice today.",
            duration=3.0,
            words=[WordTiming(word="think"), WordTiming(word="weather")],
        )

        analysis = analyze_prosody(transcription)

        assert analysis.word_count == 8
        assert analysis.speaking_rate == 160.0
        assert analysis.rhythm_score == pytest.approx(0.85)
        assert analysis.duration == 3.0
        assert [i.word for i in analysis.detailed_feedback.specific_issues] == ["weather", "think"]

    def test_silence(self):
        analysis = analyze_prosody(Transcription())

        assert analysis.word_count == 0
        assert analysis.speaking_rate == 0
        assert analysis.overall_score == pytest.approx(0.7)
        assert analysis.detailed_feedback.specific_issues == []


class TestPlacement:
    def test_average_skips_incomplete_messages(self):
        scores = [
            {"pronunciation": 0.9, "rhythm": 0.6, "intonation": 0.6},
            {"pronunciation": 0.7, "rhythm": None, "intonation": 0.7},
            {"pronunciation": 0.5, "rhythm": 0.5, "intonation": 0.5},
        ]
        assert average_message_score(scores) == pytest.approx(0.6)

    def test_no_scores(self):
        assert average_message_score([]) == 0.0

    @pytest.mark.parametrize("score, level", [
        (0.0, "Beginner"),
        (0.44, "Beginner"),
        (0.45, "Intermediate"),
        (0.75, "Intermediate"),
        (0.76, "Advanced"),
    ])
    def test_level_for_score(self, score, level):
        assert level_for_score(score) == level
