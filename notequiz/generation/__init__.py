"""
Quiz generation pipeline: prompt construction, provider calls, response parsing and shape validation.
"""
from .response_parser import parse, parse_response, parse_strict, parse_fallback, ParsedResponse
from .validator import validate, validate_all, normalize_type, check_shape
from .providers import ProviderKind, QuizProvider, GeminiProvider, OllamaProvider, OpenAIProvider, build_provider
from .orchestrator import QuizOrchestrator, GenerationReport, generate_quiz

__all__ = [
	'parse', 'parse_response', 'parse_strict', 'parse_fallback', 'ParsedResponse',
	'validate', 'validate_all', 'normalize_type', 'check_shape',
	'ProviderKind', 'QuizProvider', 'GeminiProvider', 'OllamaProvider', 'OpenAIProvider', 'build_provider',
	'QuizOrchestrator', 'GenerationReport', 'generate_quiz',
]
