"""Spaced-repetition review scheduling"""

from .scheduler import (
	schedule,
	record_outcome,
	schedule_session,
	apply_update,
	is_due,
	select_due_questions,
	reset_schedule,
	normalize_confidence,
	speed_score,
	learning_stats,
	recall_score,
	ease_adjustment,
)

__all__ = [
	'schedule',
	'record_outcome',
	'schedule_session',
	'apply_update',
	'is_due',
	'select_due_questions',
	'reset_schedule',
	'normalize_confidence',
	'speed_score',
	'learning_stats',
	'recall_score',
	'ease_adjustment',
]
