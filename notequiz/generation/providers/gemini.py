import os
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

import requests

from notequiz.exceptions import ConfigurationError, UpstreamError
from notequiz.generation.prompts import build_cloud_prompt
from notequiz.models import Note
from notequiz.utils import get_logger

from .base import ProviderKind, QuizProvider

LOG = get_logger()

GEMINI_API_URL = os.getenv('GEMINI_API_URL', 'https://generativelanguage.googleapis.com/v1beta/models')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-pro')
GEMINI_TIMEOUT = float(os.getenv('GEMINI_TIMEOUT', '30'))
GEMINI_CHECK_TIMEOUT = float(os.getenv('GEMINI_CHECK_TIMEOUT', '5'))


@dataclass(frozen=True)
class GeminiConfig:
    api_key: Optional[str] = None
    api_url: str = GEMINI_API_URL
    model: str = GEMINI_MODEL
    timeout: float = GEMINI_TIMEOUT
    check_timeout: float = GEMINI_CHECK_TIMEOUT

    @classmethod
    def from_env(cls) -> 'GeminiConfig':
        return cls(api_key=os.getenv('GEMINI_API_KEY') or None)


class GeminiProvider(QuizProvider):
    """Cloud text-generation backend (generateContent REST call)."""

    kind = ProviderKind.GEMINI
    # questions from this backend are due for review immediately
    initial_interval = 0

    def __init__(self, config: Optional[GeminiConfig] = None):
        self.config = config or GeminiConfig.from_env()

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def endpoint(self) -> str:
        return f"{self.config.api_url.rstrip('/')}/{self.config.model}:generateContent"

    def with_model(self, model: str) -> 'GeminiProvider':
        return GeminiProvider(replace(self.config, model=model))

    def _require_credentials(self) -> None:
        if not self.config.api_key:
            raise ConfigurationError('GEMINI_API_KEY not set', provider=self.name)

    def check_availability(self) -> bool:
        if not self.config.api_key:
            return False
        url = f"{self.config.api_url.rstrip('/')}/{self.config.model}"
        try:
            resp = requests.get(url, params={'key': self.config.api_key}, timeout=self.config.check_timeout)
            return resp.ok
        except requests.RequestException as e:
            LOG.info('gemini_check_failed', extra={'error': str(e)})
            return False

    def list_capabilities(self) -> List[str]:
        return [self.config.model]

    def build_prompt(self, notes: Sequence[Note], max_questions: int) -> str:
        return build_cloud_prompt(notes, max_questions)

    def _request(self, prompt: str) -> Optional[str]:
        body = {'contents': [{'parts': [{'text': prompt}]}]}
        try:
            resp = requests.post(
                self.endpoint,
                params={'key': self.config.api_key},
                json=body,
                headers={'Content-Type': 'application/json'},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(f'Gemini request failed: {e}', provider=self.name) from e
        if not resp.ok:
            raise UpstreamError(f'Gemini API error: {resp.status_code}', provider=self.name, status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError('Gemini returned a non-JSON body', provider=self.name, status_code=resp.status_code) from e

        candidates = data.get('candidates') if isinstance(data, dict) else None
        if not candidates:
            LOG.warning('gemini_no_candidates', extra={'keys': list(data.keys()) if isinstance(data, dict) else None})
            return None
        try:
            parts = candidates[0]['content']['parts']
            return ''.join(part.get('text', '') for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise UpstreamError('Unexpected Gemini response shape', provider=self.name, status_code=resp.status_code) from e
