# golf_core/types.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Literal, Union

NUMERIC_DIMENSIONS: tuple[str, ...] = (
    "skillLevel", "socialness", "traditionalism", "luxuryLevel", "competitiveness",
    "ageGeneration", "genderLean", "amenityImportance", "pace",
)
COURSE_STYLE = "courseStyle"
DIMENSIONS: tuple[str, ...] = NUMERIC_DIMENSIONS + (COURSE_STYLE,)

Category = Literal[
    "starter", "core", "skill_assessment", "social", "lifestyle",
    "knowledge", "personality", "preparation",
]
Phase = Literal["awaiting_answer", "finalizing", "complete"]
RawScores = Dict[str, Union[float, int, str]]


class ProfilerError(Exception):
    """Base class for caller errors raised by the engine."""


class UnknownQuestionError(ProfilerError, KeyError):
    pass


class InvalidOptionError(ProfilerError, ValueError):
    pass


class RevisionError(ProfilerError, ValueError):
    pass


class SessionStateError(ProfilerError, RuntimeError):
    pass


@dataclass(frozen=True)
class Option:
    text: str
    scores: RawScores
    description: str = ""
    icon: Optional[str] = None


@dataclass(frozen=True)
class Question:
    id: str; type: str; question: str
    options: tuple[Option, ...] = ()
    priority: int = 0


@dataclass(frozen=True)
class AnswerRecord:
    question_id: str
    question_text: str
    answer: str
    option_index: int
    raw_scores: RawScores

    def to_dict(self) -> Dict[str, object]:
        return {
            "questionId": self.question_id,
            "questionText": self.question_text,
            "answer": self.answer,
            "optionIndex": self.option_index,
            "rawScores": dict(self.raw_scores),
        }


@dataclass
class ScoreVector:
    skillLevel: float = 0.0
    socialness: float = 0.0
    traditionalism: float = 0.0
    luxuryLevel: float = 0.0
    competitiveness: float = 0.0
    ageGeneration: float = 0.0
    genderLean: float = 0.0
    amenityImportance: float = 0.0
    pace: float = 0.0
    courseStyle: Dict[str, int] = field(default_factory=dict)

    def get(self, dimension: str) -> float:
        return float(getattr(self, dimension))

    def numeric(self) -> Dict[str, float]:
        return {d: self.get(d) for d in NUMERIC_DIMENSIONS}

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = dict(self.numeric())
        out[COURSE_STYLE] = dict(self.courseStyle)
        return out


@dataclass
class Recommendations:
    course_style: str
    budget_level: str
    amenities: List[str]
    lodging: str
    companions: str
    equipment: List[str] = field(default_factory=list)


@dataclass
class Demographics:
    estimated_age: str
    preference_style: str


@dataclass
class Profile:
    skill_label: str
    skill_numeric: float
    personality: str
    preferences: List[str]
    recommendations: Recommendations
    demographics: Demographics


@dataclass
class EnrichedProfile:
    base: Profile
    confidence: str
    source: str
    highlights: List[str] = field(default_factory=list)
    alternatives: Dict[str, object] = field(default_factory=dict)
    recommendations: Dict[str, object] = field(default_factory=dict)


@dataclass
class SelectionContext:
    session_id: str
    timestamp: str
