"""Utility subpackage for the quiz core"""

from .logger import (
	get_logger,
	log_request,
	log_llm_call,
	log_quiz_generation,
	log_parse_degraded,
	parse_degraded_count,
	log_provider_failure,
	log_review,
	set_request_context,
	get_request_context,
)

__all__ = [
	'get_logger',
	'log_request',
	'log_llm_call',
	'log_quiz_generation',
	'log_parse_degraded',
	'parse_degraded_count',
	'log_provider_failure',
	'log_review',
	'set_request_context',
	'get_request_context',
]
