"""
SM-2 style review scheduling.

`schedule` is pure: given the same question, result and `now` it returns the
same update. Wrong answers reset the interval to one day and erode the ease
factor; correct answers grow the interval by the ease factor and nudge the
ease up or down depending on how confident and how fast the recall was.
The ease factor never drops below SRS_MIN_EASE.
"""
from __future__ import annotations

import math
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from notequiz.models import ConfidenceScale, LearningStats, QuestionResult, QuizQuestion, SchedulingUpdate, utcnow
from notequiz.utils import get_logger, log_review

LOG = get_logger()

SRS_INITIAL_EASE = float(os.getenv('SRS_INITIAL_EASE', '2.5'))
SRS_MIN_EASE = float(os.getenv('SRS_MIN_EASE', '1.3'))
SRS_WRONG_PENALTY = float(os.getenv('SRS_WRONG_PENALTY', '0.2'))
SRS_MAX_INTERVAL_DAYS = int(os.getenv('SRS_MAX_INTERVAL_DAYS', '365'))
SRS_FAST_RESPONSE_SECONDS = float(os.getenv('SRS_FAST_RESPONSE_SECONDS', '5'))
SRS_SLOW_RESPONSE_SECONDS = float(os.getenv('SRS_SLOW_RESPONSE_SECONDS', '20'))
SRS_MAX_EASE_GAIN = float(os.getenv('SRS_MAX_EASE_GAIN', '0.15'))
SRS_MAX_EASE_LOSS = float(os.getenv('SRS_MAX_EASE_LOSS', '0.1'))
SRS_CONFIDENCE_WEIGHT = float(os.getenv('SRS_CONFIDENCE_WEIGHT', '0.6'))
SRS_CONFIDENCE_LEVELS = max(2, int(os.getenv('SRS_CONFIDENCE_LEVELS', '5')))
SRS_MATURE_INTERVAL_DAYS = int(os.getenv('SRS_MATURE_INTERVAL_DAYS', '21'))


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_confidence(value: Optional[float], scale: ConfidenceScale = ConfidenceScale.ORDINAL) -> Optional[float]:
    """Map confidence onto 0-1, monotonically on either scale.

    Ordinal values run 1 (unsure) to SRS_CONFIDENCE_LEVELS (certain); fractions
    run 0 to 1. Anything out of range is clamped. Missing or non-numeric gives None.
    """
    if not _finite(value):
        return None
    if scale == ConfidenceScale.ORDINAL:
        value = (value - 1) / float(SRS_CONFIDENCE_LEVELS - 1)
    return min(1.0, max(0.0, float(value)))


def speed_score(response_time: Optional[float]) -> Optional[float]:
    """1.0 for a fast answer, 0.0 for a slow one, linear in between."""
    if not _finite(response_time) or response_time < 0:
        return None
    if response_time <= SRS_FAST_RESPONSE_SECONDS:
        return 1.0
    if response_time >= SRS_SLOW_RESPONSE_SECONDS:
        return 0.0
    span = SRS_SLOW_RESPONSE_SECONDS - SRS_FAST_RESPONSE_SECONDS
    return (SRS_SLOW_RESPONSE_SECONDS - response_time) / span


def recall_score(result: QuestionResult) -> float:
    confidence = normalize_confidence(result.confidence, result.confidence_scale)
    speed = speed_score(result.response_time)
    if confidence is None and speed is None:
        return 0.5
    if confidence is None:
        return speed
    if speed is None:
        return confidence
    return SRS_CONFIDENCE_WEIGHT * confidence + (1 - SRS_CONFIDENCE_WEIGHT) * speed


def ease_adjustment(result: QuestionResult) -> float:
    """Ease change for a correct answer: positive when confident and fast, zero at baseline."""
    score = recall_score(result)
    if score >= 0.5:
        return SRS_MAX_EASE_GAIN * (score - 0.5) / 0.5
    return -SRS_MAX_EASE_LOSS * (0.5 - score) / 0.5


def schedule(question: QuizQuestion, result: QuestionResult, now: Optional[datetime] = None) -> SchedulingUpdate:
    now = now or utcnow()
    ease = max(SRS_MIN_EASE, question.ease_factor)
    interval = max(0, question.interval)

    if result.correct:
        new_interval = min(SRS_MAX_INTERVAL_DAYS, max(1, _round_half_up(interval * ease)))
        new_ease = max(SRS_MIN_EASE, ease + ease_adjustment(result))
    else:
        new_interval = 1
        new_ease = max(SRS_MIN_EASE, ease - SRS_WRONG_PENALTY)

    return SchedulingUpdate(
        ease_factor=round(new_ease, 4),
        interval=new_interval,
        last_reviewed=now,
        next_review_date=now + timedelta(days=new_interval),
    )


def record_outcome(question: QuizQuestion, result: QuestionResult, now: Optional[datetime] = None) -> SchedulingUpdate:
    if result.question_id and result.question_id != question.id:
        LOG.warning('review_question_mismatch', extra={'question_id': question.id, 'result_question_id': result.question_id})
    update = schedule(question, result, now=now)
    log_review(question.id, result.correct, update.ease_factor, update.interval)
    return update


def apply_update(question: QuizQuestion, update: SchedulingUpdate) -> QuizQuestion:
    return question.model_copy(update=update.model_dump())


def schedule_session(questions: Iterable[QuizQuestion], results: Iterable[QuestionResult],
                     now: Optional[datetime] = None) -> Dict[str, SchedulingUpdate]:
    """Updates keyed by question id for every question that has a result."""
    now = now or utcnow()
    by_id = {q.id: q for q in questions}
    updates: Dict[str, SchedulingUpdate] = {}
    for result in results:
        question = by_id.get(result.question_id)
        if question is None:
            LOG.warning('review_unknown_question', extra={'question_id': result.question_id})
            continue
        updates[question.id] = record_outcome(question, result, now=now)
    return updates


def is_due(question: QuizQuestion, now: Optional[datetime] = None) -> bool:
    now = _as_utc(now or utcnow())
    return now >= _as_utc(question.next_review_date)


def select_due_questions(questions: Iterable[QuizQuestion], max_questions: int = 10,
                         now: Optional[datetime] = None) -> List[QuizQuestion]:
    """Due questions for the next quiz: reviewed ones, most overdue first, then never-reviewed ones."""
    now = _as_utc(now or utcnow())
    due = [q for q in questions if is_due(q, now)]
    reviewed = sorted((q for q in due if q.last_reviewed is not None), key=lambda q: _as_utc(q.next_review_date))
    fresh = [q for q in due if q.last_reviewed is None]
    return (reviewed + fresh)[:max(0, max_questions)]


def reset_schedule(question: QuizQuestion, initial_interval: int = 1, now: Optional[datetime] = None) -> QuizQuestion:
    return question.model_copy(update={
        'ease_factor': SRS_INITIAL_EASE,
        'interval': max(0, initial_interval),
        'last_reviewed': None,
        'next_review_date': now or utcnow(),
    })


def _mean(values: List[float]) -> Optional[float]:
    return round(sum(values) / len(values), 4) if values else None


def learning_stats(questions: Iterable[QuizQuestion], results: Optional[Iterable[QuestionResult]] = None,
                   now: Optional[datetime] = None) -> LearningStats:
    """Summarize a deck.

    New questions have never been reviewed; reviewed ones are learning until
    their interval reaches SRS_MATURE_INTERVAL_DAYS, then mature. Retention is
    the share of correct `results`, split by the group of the question answered.
    """
    now = _as_utc(now or utcnow())
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    questions = list(questions)

    new = [q for q in questions if q.last_reviewed is None]
    reviewed = [q for q in questions if q.last_reviewed is not None]
    mature_questions = [q for q in reviewed if q.interval >= SRS_MATURE_INTERVAL_DAYS]
    mature_ids = {q.id for q in mature_questions}

    by_id = {q.id: q for q in questions}
    answered = [r for r in results or [] if r.question_id in by_id]
    young = [r for r in answered if r.question_id not in mature_ids]
    mature = [r for r in answered if r.question_id in mature_ids]

    return LearningStats(
        total=len(questions),
        due=sum(1 for q in questions if is_due(q, now)),
        new=len(new),
        learning=len(reviewed) - len(mature_questions),
        mature=len(mature_questions),
        reviewed_today=sum(1 for q in reviewed if _as_utc(q.last_reviewed) >= today),
        average_ease=_mean([q.ease_factor for q in questions]),
        retention=_mean([float(r.correct) for r in answered]),
        young_retention=_mean([float(r.correct) for r in young]),
        mature_retention=_mean([float(r.correct) for r in mature]),
    )
