"""Heuristic pronunciation, rhythm, intonation and fluency scoring.

Scores are derived from a transcription alone: speaking rate from word count
and duration, intonation from punctuation variety, fluency from filler words
and repetitions. Word-level practice targets come from spelling patterns that
learners commonly find hard.
"""

import re
from typing import NamedTuple

from vibetune.prosody.feedback import build_feedback
from vibetune.prosody.models import ProsodyAnalysis, Transcription, WordIssue, WordScore, WordTiming

DEFAULT_SEGMENT_CONFIDENCE = 0.8

# Words per minute
RATE_SLOW = 100
RATE_FAST = 180
RATE_OPTIMAL = 140
RATE_COMFORT = (120, 160)

WEIGHTS = {"pronunciation": 0.3, "rhythm": 0.25, "intonation": 0.25, "fluency": 0.2}

FILLER_WORDS = ("um", "uh", "er", "ah", "like", "you know", "so", "well")

MAX_WORD_SCORES = 10

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_LONG_WORD = re.compile(r"\b\w{8,}\b")


class _Pattern(NamedTuple):
    regex: re.Pattern
    issue: str
    suggestion: str
    value: int


# value = penalty subtracted from the base word score
_TIMED_PATTERNS = (
    _Pattern(re.compile(r"th"), "TH sound", "Place tongue between teeth", 15),
    _Pattern(re.compile(r"r$"), "Final R", "Curl tongue slightly for R sound", 10),
    _Pattern(re.compile(r"ed$"), "Past tense -ED", "Pronounce as /d/, /t/, or /ɪd/ depending on the word", 8),
    _Pattern(re.compile(r"s$"), "Plural/Final S", "Clear /s/ or /z/ sound at word end", 8),
    _Pattern(re.compile(r"v"), "V sound", "Touch upper teeth to lower lip, vibrate", 12),
    _Pattern(re.compile(r"w"), "W sound", 'Round lips like saying "oo"', 10),
    _Pattern(re.compile(r"\w{8,}"), "Long word", "Break into syllables and practice slowly", 5),
    _Pattern(re.compile(r"tion$"), "-TION ending", 'Pronounce as "shun" not "tee-on"', 10),
    _Pattern(re.compile(r"ough"), "OUGH pattern", "Multiple pronunciations - check dictionary", 15),
    _Pattern(re.compile(r"^[aeiou]"), "Initial vowel", "Clear vowel sound at start", 5),
)

# value = score given to a word showing the pattern
_UNTIMED_PATTERNS = (
    _Pattern(re.compile(r"th"), "TH sound", "Place tongue between teeth", 70),
    _Pattern(re.compile(r"r$"), "Final R", "Curl tongue slightly", 72),
    _Pattern(re.compile(r"ed$"), "Past tense -ED", "Pronounce as /d/, /t/, or /ɪd/", 75),
    _Pattern(re.compile(r"tion$"), "-TION ending", 'Say "shun" not "tee-on"', 73),
    _Pattern(re.compile(r"\w{8,}"), "Long word", "Break into syllables", 74),
    _Pattern(re.compile(r"[aeiou]{2,}"), "Vowel cluster", "Practice vowel combinations", 76),
    _Pattern(re.compile(r"^[aeiou]"), "Initial vowel", "Clear vowel sound at start", 78),
)


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def pronunciation_score(segment_confidences: list[float | None], text: str) -> float:
    if not segment_confidences:
        return 0.75 if _LONG_WORD.search(text) else 0.80
    confidences = [
        c if c is not None else DEFAULT_SEGMENT_CONFIDENCE for c in segment_confidences
    ]
    return _clamp(sum(confidences) / len(confidences), 0.5, 1.0)


def rhythm_score(speaking_rate: float) -> float:
    if speaking_rate < RATE_SLOW:
        return max(0.5, speaking_rate / RATE_SLOW)
    if speaking_rate > RATE_FAST:
        return max(0.5, RATE_FAST / speaking_rate)
    max_distance = max(RATE_OPTIMAL - RATE_SLOW, RATE_FAST - RATE_OPTIMAL)
    return 1.0 - abs(speaking_rate - RATE_OPTIMAL) / max_distance * 0.3


def sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def intonation_score(text: str) -> float:
    score = 0.7
    if "?" in text:
        score += 0.1
    if "!" in text:
        score += 0.1
    if "." in text:
        score += 0.05

    parts = sentences(text)
    if len(parts) > 1:
        lengths = [len(s.split()) for s in parts]
        mean = sum(lengths) / len(lengths)
        variance = sum((n - mean) ** 2 for n in lengths) / len(lengths)
        if variance > 5:
            score += 0.05

    return _clamp(score, 0.5, 1.0)


def count_phrase(text: str, phrase: str) -> int:
    return len(re.findall(rf"\b{re.escape(phrase)}\b", text, re.IGNORECASE))


def fluency_score(text: str, speaking_rate: float) -> float:
    score = 0.8
    words = text.split()
    total = max(len(words), 1)

    filler_ratio = sum(count_phrase(text, f) for f in FILLER_WORDS) / total
    if filler_ratio > 0.1:
        score -= (filler_ratio - 0.1) * 2

    repetitions = sum(
        1 for prev, cur in zip(words, words[1:]) if prev.lower() == cur.lower()
    )
    score -= repetitions / total * 0.5

    if RATE_COMFORT[0] <= speaking_rate <= RATE_COMFORT[1]:
        score += 0.1

    return _clamp(score, 0.4, 1.0)


def score_timed_words(timings: list[WordTiming]) -> list[WordScore]:
    """Score timestamped words; only words with issues or a low score are kept."""
    scored = []
    for timing in timings:
        word = timing.word.strip()
        clean = word.lower()
        if len(clean) <= 2 or not re.search(r"[a-z]", clean):
            continue

        issues = [p for p in _TIMED_PATTERNS if p.regex.search(clean)]
        score = 85
        if issues:
            score = max(50, 85 - sum(p.value for p in issues))
        if len(clean) > 10:
            score -= 5

        if issues or score < 80:
            scored.append(WordScore(
                word=word,
                start=timing.start,
                end=timing.end,
                score=score,
                issues=[WordIssue(type=p.issue, suggestion=p.suggestion) for p in issues],
            ))

    scored.sort(key=lambda w: w.score)
    return scored[:MAX_WORD_SCORES]


def _letters(word: str) -> str:
    return re.sub(r"[^a-z]", "", word.lower())


def score_untimed_words(text: str) -> list[WordScore]:
    """Pick practice words from plain text, topping up to three targets."""
    words = [w for w in text.split() if len(w) > 2]
    scored: list[WordScore] = []

    for word in words:
        clean = _letters(word)
        if len(clean) <= 2:
            continue
        issues = [p for p in _UNTIMED_PATTERNS if p.regex.search(clean)]
        if issues:
            scored.append(WordScore(
                word=word,
                score=round_half_up(sum(p.value for p in issues) / len(issues)),
                issues=[WordIssue(type=p.issue, suggestion=p.suggestion) for p in issues],
            ))

    def top_up(min_letters: int, limit: int, score: int, issue: WordIssue) -> None:
        seen = {w.word for w in scored}
        extra = [w for w in words if len(_letters(w)) >= min_letters and w not in seen]
        for word in extra[:max(limit, 0)]:
            scored.append(WordScore(word=word, score=score, issues=[issue]))

    if len(scored) < 3:
        top_up(6, 5 - len(scored), 75, WordIssue(
            type="Multi-syllable word",
            suggestion="Practice saying this word slowly, syllable by syllable",
        ))
    if len(scored) < 3:
        top_up(4, 3 - len(scored), 80, WordIssue(
            type="Practice word",
            suggestion="Focus on clear pronunciation of each sound",
        ))

    return scored[:MAX_WORD_SCORES]


def analyze_prosody(transcription: Transcription) -> ProsodyAnalysis:
    text = transcription.text
    duration = transcription.duration
    word_count = len(text.split())
    speaking_rate = word_count / duration * 60 if duration > 0 else 0.0

    scores = {
        "pronunciation": pronunciation_score(transcription.segment_confidences, text),
        "rhythm": rhythm_score(speaking_rate),
        "intonation": intonation_score(text),
        "fluency": fluency_score(text, speaking_rate),
    }
    overall = sum(scores[name] * weight for name, weight in WEIGHTS.items())

    if transcription.words:
        word_scores = score_timed_words(transcription.words)
    else:
        word_scores = score_untimed_words(text)

    return ProsodyAnalysis(
        overall_score=round(overall, 2),
        pronunciation_score=round(scores["pronunciation"], 2),
        rhythm_score=round(scores["rhythm"], 2),
        intonation_score=round(scores["intonation"], 2),
        fluency_score=round(scores["fluency"], 2),
        speaking_rate=round(speaking_rate, 1),
        word_count=word_count,
        duration=round(duration, 1),
        detailed_feedback=build_feedback(scores, speaking_rate, word_scores, text),
    )
