"""Turn prosody scores into learner-facing strengths and improvements."""

import re
from dataclasses import dataclass, field
from typing import Any

from vibetune.prosody.models import DetailedFeedback, SpecificIssue, WordScore

_FILLER_TIPS = (
    ("um", 'Pause silently instead of saying "um"'),
    ("uh", 'Take a breath instead of "uh"'),
    ("like", 'Remove "like" - it weakens your message'),
    ("you know", "Trust that your listener understands"),
    ("actually", "Often unnecessary - just state your point"),
    ("basically", "Get straight to the point"),
)

_SOUND_TIPS = (
    (re.compile(r"\bth\w+", re.IGNORECASE), "TH", "Put your tongue between your teeth"),
    (re.compile(r"\w+ed\b", re.IGNORECASE), "Past tense -ED",
     "Pronounce as /t/, /d/, or /ɪd/ depending on the word"),
    (re.compile(r"\w+s\b", re.IGNORECASE), "Plural -S", "Clear /s/ or /z/ sound at the end"),
    (re.compile(r"\bw\w+", re.IGNORECASE), "W sound", 'Round your lips like saying "oo"'),
)


@dataclass
class FillerUse:
    word: str
    count: int
    tip: str


@dataclass
class SoundFocus:
    sound: str
    words: list[str]
    tip: str


@dataclass
class TextObservations:
    """Things in the learner's own words worth commenting on."""

    fillers: list[FillerUse] = field(default_factory=list)
    sounds: list[SoundFocus] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)


def observe_text(text: str) -> TextObservations:
    observations = TextObservations()

    for word, tip in _FILLER_TIPS:
        count = len(re.findall(rf"\b{re.escape(word)}\b", text, re.IGNORECASE))
        if count:
            observations.fillers.append(FillerUse(word, count, tip))

    for pattern, sound, tip in _SOUND_TIPS:
        unique = list(dict.fromkeys(m.lower() for m in pattern.findall(text)))[:3]
        if unique:
            observations.sounds.append(SoundFocus(sound, unique, tip))

    sentence_count = len([s for s in re.split(r"[.!?]+", text) if s.strip()])
    if sentence_count == 1:
        observations.tips.append("Try breaking longer thoughts into shorter sentences for clarity")
    elif sentence_count > 3:
        observations.tips.append("Good use of multiple sentences - keep varying your sentence length")

    if "?" in text:
        observations.tips.append("Remember to raise your voice at the end of questions")

    return observations


def _pct(score: float) -> int:
    return int(score * 100 + 0.5)


def _severity(score: int) -> str:
    if score < 60:
        return "high"
    if score < 75:
        return "medium"
    return "low"


def build_feedback(
    scores: dict[str, float],
    speaking_rate: float,
    word_scores: list[WordScore],
    text: str,
) -> DetailedFeedback:
    """Build feedback from the four 0-1 scores keyed by aspect name."""
    feedback = DetailedFeedback()
    strengths, improvements = feedback.strengths, feedback.improvements
    observed = observe_text(text)
    rate = int(speaking_rate + 0.5)

    pronunciation = scores["pronunciation"]
    pct = _pct(pronunciation)
    if pronunciation >= 0.85:
        strengths.append(f"Excellent pronunciation clarity ({pct}%)")
    elif pronunciation >= 0.70:
        strengths.append(f"Good pronunciation overall ({pct}%)")
    elif observed.sounds:
        focus = observed.sounds[0]
        if pronunciation >= 0.60:
            improvements.append(
                f'Pronunciation at {pct}% - Focus on {focus.sound} in words like '
                f'"{", ".join(focus.words)}". {focus.tip}'
            )
        else:
            improvements.append(
                f"Pronunciation needs work ({pct}%) - Start with {focus.sound}: {focus.tip}"
            )
    elif pronunciation >= 0.60:
        improvements.append(f"Pronunciation at {pct}% - Focus on consonant sounds at word endings")
    else:
        improvements.append(
            f"Pronunciation needs work ({pct}%) - Practice each word slowly and clearly"
        )

    rhythm = scores["rhythm"]
    pct = _pct(rhythm)
    if rhythm >= 0.80:
        strengths.append(f"Natural speaking rhythm ({pct}%) at {rate} words/min")
    elif speaking_rate < 100:
        improvements.append(f"Rhythm at {pct}% - Speaking rate is {rate} wpm (try 120-140 wpm)")
    elif speaking_rate > 180:
        improvements.append(
            f"Rhythm at {pct}% - Speaking too fast at {rate} wpm (aim for 120-160 wpm)"
        )
    else:
        improvements.append(f"Rhythm at {pct}% - Work on consistent pacing between words")

    intonation = scores["intonation"]
    pct = _pct(intonation)
    if intonation >= 0.80:
        strengths.append(f"Good intonation patterns ({pct}%)")
    elif intonation >= 0.65:
        improvements.append(f"Intonation at {pct}% - Add more tone variation to emphasize key words")
    else:
        improvements.append(
            f"Intonation needs improvement ({pct}%) - "
            "Practice making your voice go up and down more"
        )

    fluency = scores["fluency"]
    pct = _pct(fluency)
    if fluency >= 0.80:
        strengths.append(f"Fluent speech with good flow ({pct}%)")
    elif fluency >= 0.65:
        if observed.fillers:
            top = observed.fillers[0]
            times = "time" if top.count == 1 else "times"
            improvements.append(
                f'Fluency at {pct}% - You said "{top.word}" {top.count} {times}. {top.tip}'
            )
        else:
            improvements.append(f"Fluency at {pct}% - Work on smoother transitions between ideas")
    elif observed.fillers:
        fillers = ", ".join(f'"{f.word}" ({f.count}x)' for f in observed.fillers)
        improvements.append(f"Fluency needs work ({pct}%) - Reduce filler words: {fillers}")
    else:
        improvements.append(
            f"Fluency needs work ({pct}%) - Practice smoother transitions and reduce hesitations"
        )

    improvements.extend(observed.tips)

    # first aspect wins a tie
    weakest = min(scores, key=lambda name: scores[name])
    if scores[weakest] < 0.70:
        improvements.insert(
            0, f"Priority: Improve {weakest} (currently {_pct(scores[weakest])}%)"
        )

    feedback.specific_issues = [
        SpecificIssue(
            word=w.word,
            severity=_severity(w.score),
            feedback=f"Pronunciation score: {w.score}%",
            suggestion="; ".join(issue.suggestion for issue in w.issues),
        )
        for w in word_scores
    ]
    return feedback


def _string_list(value: Any) -> list[str] | None:
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return value
    return None


def merge_coach_feedback(
    feedback: DetailedFeedback,
    coach: dict[str, Any] | None,
) -> DetailedFeedback:
    """Prefer the coach's strengths and improvements; keep the word-level issues."""
    if not coach:
        return feedback
    return DetailedFeedback(
        strengths=_string_list(coach.get("strengths")) or feedback.strengths,
        improvements=_string_list(coach.get("improvements")) or feedback.improvements,
        specific_issues=feedback.specific_issues,
    )
