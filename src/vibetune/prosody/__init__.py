"""Speech scoring: prosody analysis and placement levels."""

from vibetune.prosody.feedback import build_feedback, merge_coach_feedback
from vibetune.prosody.models import PlacementAssessment, ProsodyAnalysis, Transcription, WordTiming
from vibetune.prosody.placement import average_message_score, level_for_score
from vibetune.prosody.scoring import analyze_prosody

__all__ = [
    "PlacementAssessment",
    "ProsodyAnalysis",
    "Transcription",
    "WordTiming",
    "analyze_prosody",
    "average_message_score",
    "build_feedback",
    "level_for_score",
    "merge_coach_feedback",
]
