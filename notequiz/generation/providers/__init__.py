"""
Generation backends. Each variant is a QuizProvider subclass selected by ProviderKind.
"""
from typing import Union

from .base import ProviderKind, ProviderOutput, QuizProvider
from .gemini import GeminiConfig, GeminiProvider
from .ollama import OllamaConfig, OllamaProvider
from .openai_provider import OpenAIConfig, OpenAIProvider

_PROVIDER_CLASSES = {
	ProviderKind.GEMINI: GeminiProvider,
	ProviderKind.OLLAMA: OllamaProvider,
	ProviderKind.OPENAI: OpenAIProvider,
}


def build_provider(kind: Union[ProviderKind, str]) -> QuizProvider:
	"""Build a provider configured from the environment. Raises ValueError for an unknown kind."""
	return _PROVIDER_CLASSES[ProviderKind(kind)]()


__all__ = [
	'ProviderKind', 'ProviderOutput', 'QuizProvider', 'build_provider',
	'GeminiConfig', 'GeminiProvider',
	'OllamaConfig', 'OllamaProvider',
	'OpenAIConfig', 'OpenAIProvider',
]
