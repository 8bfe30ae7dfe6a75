"""Shape normalization for parsed quiz questions.

`validate` never rejects a question. Unknown types become shortAnswer,
options survive only on multipleChoice, and scheduling state is reset to
"due now". Multiple-choice shape problems are logged, not raised.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from notequiz.models import (
    INITIAL_EASE_FACTOR,
    QuestionType,
    QuizQuestion,
    UnvalidatedQuestion,
    utcnow,
)
from notequiz.utils import get_logger

LOG = get_logger()

MIN_CHOICE_OPTIONS = 3
MAX_CHOICE_OPTIONS = 4

# spellings models commonly emit instead of the canonical values
_TYPE_ALIASES = {
    'fillinblank': QuestionType.FILL_IN_BLANK,
    'fill_in_blank': QuestionType.FILL_IN_BLANK,
    'fill_in_the_blank': QuestionType.FILL_IN_BLANK,
    'fill-in-the-blank': QuestionType.FILL_IN_BLANK,
    'shortanswer': QuestionType.SHORT_ANSWER,
    'short_answer': QuestionType.SHORT_ANSWER,
    'multiplechoice': QuestionType.MULTIPLE_CHOICE,
    'multiple_choice': QuestionType.MULTIPLE_CHOICE,
    'mcq': QuestionType.MULTIPLE_CHOICE,
    'truefalse': QuestionType.TRUE_FALSE,
    'true_false': QuestionType.TRUE_FALSE,
    'true/false': QuestionType.TRUE_FALSE,
    'tf': QuestionType.TRUE_FALSE,
}

QuestionLike = Union[UnvalidatedQuestion, QuizQuestion, Dict[str, Any]]


def normalize_type(value: Any) -> QuestionType:
    if isinstance(value, QuestionType):
        return value
    if not isinstance(value, str):
        return QuestionType.SHORT_ANSWER
    try:
        return QuestionType(value)
    except ValueError:
        pass
    return _TYPE_ALIASES.get(value.strip().lower(), QuestionType.SHORT_ANSWER)


def check_shape(question: QuizQuestion) -> List[str]:
    """Return shape issues for a validated question (empty when well-formed)."""
    issues = []
    if not question.question:
        issues.append('empty_question')
    if not question.answer:
        issues.append('empty_answer')
    if question.type == QuestionType.MULTIPLE_CHOICE:
        options = question.options or []
        if len(options) < MIN_CHOICE_OPTIONS:
            issues.append('too_few_options')
        elif len(options) > MAX_CHOICE_OPTIONS:
            issues.append('too_many_options')
        if question.answer and question.answer not in options:
            issues.append('answer_not_in_options')
    elif question.options is not None:
        issues.append('options_on_non_choice')
    return issues


def _as_dict(question: QuestionLike) -> Dict[str, Any]:
    if isinstance(question, dict):
        return question
    return question.model_dump()


def _as_text(value: Any) -> str:
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def validate(question: QuestionLike, initial_interval: int = 1, now: Optional[datetime] = None,
             folder_id: Optional[str] = None, user_id: Optional[str] = None) -> QuizQuestion:
    data = _as_dict(question)
    qtype = normalize_type(data.get('type'))
    options = None
    if qtype == QuestionType.MULTIPLE_CHOICE and isinstance(data.get('options'), list):
        options = [_as_text(o) for o in data['options']]

    validated = QuizQuestion(
        id=_as_text(data.get('id')),
        folder_id=folder_id if folder_id is not None else _as_text(data.get('folder_id')),
        user_id=user_id if user_id is not None else _as_text(data.get('user_id')),
        note_id=_as_text(data.get('note_id')),
        question=_as_text(data.get('question')),
        answer=_as_text(data.get('answer')),
        type=qtype,
        options=options,
        ease_factor=INITIAL_EASE_FACTOR,
        interval=max(0, int(initial_interval)),
        last_reviewed=None,
        next_review_date=now or utcnow(),
    )

    if qtype == QuestionType.MULTIPLE_CHOICE:
        issues = check_shape(validated)
        if issues:
            LOG.warning('question_shape_flagged', extra={'question_id': validated.id, 'issues': issues})
    return validated


def validate_all(questions: Iterable[QuestionLike], initial_interval: int = 1, now: Optional[datetime] = None,
                 folder_id: Optional[str] = None, user_id: Optional[str] = None) -> List[QuizQuestion]:
    now = now or utcnow()
    return [validate(q, initial_interval=initial_interval, now=now, folder_id=folder_id, user_id=user_id) for q in questions]
