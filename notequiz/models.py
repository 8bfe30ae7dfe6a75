"""Shared value types for quiz generation and review scheduling."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestionType(str, Enum):
    FILL_IN_BLANK = 'fillInBlank'
    SHORT_ANSWER = 'shortAnswer'
    MULTIPLE_CHOICE = 'multipleChoice'
    TRUE_FALSE = 'trueFalse'


class Note(BaseModel):
    """A study note supplied by the caller. Read-only to the core."""
    # notes without an id yield questions with an empty note_id
    id: str = ''
    folder_id: str = ''
    user_id: str = ''
    title: str = ''
    content: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_blank(self) -> bool:
        return not self.title.strip() and not self.content.strip()


class UnvalidatedQuestion(BaseModel):
    """A question record as extracted from a raw response, before shape normalization."""
    id: str
    note_id: str = ''
    question: Optional[str] = None
    answer: Optional[str] = None
    type: Optional[str] = None
    options: Optional[List[str]] = None


class QuizQuestion(BaseModel):
    id: str
    folder_id: str = ''
    user_id: str = ''
    note_id: str = ''
    question: str = ''
    answer: str = ''
    type: QuestionType = QuestionType.SHORT_ANSWER
    options: Optional[List[str]] = None
    ease_factor: float = Field(INITIAL_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    interval: int = Field(0, ge=0)
    last_reviewed: Optional[datetime] = None
    next_review_date: datetime = Field(default_factory=utcnow)

    def to_record(self) -> Dict[str, Any]:
        """Serialize for storage. Absent options / last_reviewed are kept as null."""
        return self.model_dump(mode='json')

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'QuizQuestion':
        return cls.model_validate(record)


class ConfidenceScale(str, Enum):
    ORDINAL = 'ordinal'
    FRACTION = 'fraction'


class QuestionResult(BaseModel):
    """Outcome of answering one question in a review session.

    `confidence` is read on `confidence_scale`: a 1-5 ordinal by default, or a
    0-1 fraction. Out-of-range values are clamped by the scheduler rather
    than rejected here.
    """
    question_id: str
    correct: bool
    user_answer: str = ''
    response_time: Optional[float] = None
    confidence: Optional[float] = None
    confidence_scale: ConfidenceScale = ConfidenceScale.ORDINAL
    difficulty: Optional[float] = None


class QuizResult(BaseModel):
    folder_id: str = ''
    user_id: str = ''
    date: datetime = Field(default_factory=utcnow)
    total_questions: int = 0
    correct_answers: int = 0
    question_results: List[QuestionResult] = Field(default_factory=list)


class SchedulingUpdate(BaseModel):
    ease_factor: float
    interval: int
    last_reviewed: datetime
    next_review_date: datetime


class LearningStats(BaseModel):
    """Deck summary. Retention figures are None when no results cover that group."""
    total: int = 0
    due: int = 0
    new: int = 0
    learning: int = 0
    mature: int = 0
    reviewed_today: int = 0
    average_ease: Optional[float] = None
    retention: Optional[float] = None
    young_retention: Optional[float] = None
    mature_retention: Optional[float] = None
