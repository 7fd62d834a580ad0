"""Map stored per-message prosody scores to a placement level."""

from collections.abc import Iterable
from typing import Any

BEGINNER_BELOW = 0.45
INTERMEDIATE_UP_TO = 0.75

_ASPECTS = ("pronunciation", "rhythm", "intonation")


def average_message_score(scores: Iterable[dict[str, Any]]) -> float:
    """Mean of the per-message pronunciation/rhythm/intonation average.

    Messages missing any of the three aspects are ignored. No usable
    messages gives 0.
    """
    per_message = []
    for score in scores:
        values = [score.get(aspect) for aspect in _ASPECTS]
        if any(v is None for v in values):
            continue
        per_message.append(sum(values) / len(values))
    if not per_message:
        return 0.0
    return sum(per_message) / len(per_message)


def level_for_score(score: float) -> str:
    if score < BEGINNER_BELOW:
        return "Beginner"
    if score <= INTERMEDIATE_UP_TO:
        return "Intermediate"
    return "Advanced"
