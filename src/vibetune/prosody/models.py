"""Data models for speech scoring."""

from pydantic import BaseModel, Field


class WordTiming(BaseModel):
    """One transcribed word with its timestamps in seconds."""

    word: str
    start: float | None = None
    end: float | None = None


class Transcription(BaseModel):
    """Speech-to-text result used as scoring input."""

    text: str = ""
    duration: float = 0.0
    language: str = "en"
    segment_confidences: list[float | None] = Field(default_factory=list)
    words: list[WordTiming] = Field(default_factory=list)


class WordIssue(BaseModel):
    type: str
    suggestion: str


class WordScore(BaseModel):
    """A word worth practising, scored 0-100."""

    word: str
    score: int
    issues: list[WordIssue] = Field(default_factory=list)
    start: float | None = None
    end: float | None = None


class SpecificIssue(BaseModel):
    type: str = "pronunciation"
    word: str
    severity: str
    feedback: str
    suggestion: str


class DetailedFeedback(BaseModel):
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    specific_issues: list[SpecificIssue] = Field(default_factory=list)


class ProsodyAnalysis(BaseModel):
    """Scores are fractions in [0, 1]; ``speaking_rate`` is words per minute."""

    overall_score: float
    pronunciation_score: float
    rhythm_score: float
    intonation_score: float
    fluency_score: float
    speaking_rate: float
    word_count: int
    duration: float
    detailed_feedback: DetailedFeedback


class PlacementAssessment(BaseModel):
    """Score 0-100 for one placement test answer."""

    score: float
    feedback: str
