import os
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

import requests

from notequiz.exceptions import UpstreamError
from notequiz.generation.prompts import build_local_prompt
from notequiz.models import Note
from notequiz.utils import get_logger

from .base import ProviderKind, QuizProvider

LOG = get_logger()

OLLAMA_BASE_URL = os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')
OLLAMA_MODEL = os.getenv('OLLAMA_MODEL', 'llama3.1:8b')
OLLAMA_TIMEOUT = float(os.getenv('OLLAMA_TIMEOUT', '60'))
OLLAMA_CHECK_TIMEOUT = float(os.getenv('OLLAMA_CHECK_TIMEOUT', '5'))
OLLAMA_TEMPERATURE = float(os.getenv('OLLAMA_TEMPERATURE', '0.7'))
OLLAMA_TOP_P = float(os.getenv('OLLAMA_TOP_P', '0.9'))


@dataclass(frozen=True)
class OllamaConfig:
    base_url: str = OLLAMA_BASE_URL
    model: str = OLLAMA_MODEL
    timeout: float = OLLAMA_TIMEOUT
    check_timeout: float = OLLAMA_CHECK_TIMEOUT
    temperature: float = OLLAMA_TEMPERATURE
    top_p: float = OLLAMA_TOP_P


class OllamaProvider(QuizProvider):
    """Local LLM daemon backend.

    Every generate call checks `/api/tags` first, so a stopped daemon surfaces
    as ProviderUnavailable rather than a connection error mid-generation.
    """

    kind = ProviderKind.OLLAMA
    initial_interval = 1
    check_before_generate = True

    def __init__(self, config: Optional[OllamaConfig] = None):
        self.config = config or OllamaConfig()

    @property
    def model(self) -> str:
        return self.config.model

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{path}"

    def with_model(self, model: str) -> 'OllamaProvider':
        return OllamaProvider(replace(self.config, model=model))

    def check_availability(self) -> bool:
        try:
            resp = requests.get(self._url('/api/tags'), timeout=self.config.check_timeout)
            return resp.ok
        except requests.RequestException as e:
            LOG.info('ollama_check_failed', extra={'error': str(e)})
            return False

    def list_capabilities(self) -> List[str]:
        try:
            resp = requests.get(self._url('/api/tags'), timeout=self.config.check_timeout)
            if not resp.ok:
                return []
            data = resp.json()
        except (requests.RequestException, ValueError):
            LOG.warning('ollama_list_models_failed', exc_info=True)
            return []
        models = data.get('models') if isinstance(data, dict) else None
        return [m['name'] for m in models or [] if isinstance(m, dict) and m.get('name')]

    def build_prompt(self, notes: Sequence[Note], max_questions: int) -> str:
        return build_local_prompt(notes, max_questions)

    def _request(self, prompt: str) -> Optional[str]:
        body = {
            'model': self.config.model,
            'prompt': prompt,
            'stream': False,
            'options': {
                'temperature': self.config.temperature,
                'top_p': self.config.top_p,
            },
        }
        try:
            resp = requests.post(self._url('/api/generate'), json=body, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f'Ollama request failed: {e}', provider=self.name) from e
        if not resp.ok:
            raise UpstreamError(f'Ollama API error: {resp.status_code}', provider=self.name, status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError('Ollama returned a non-JSON body', provider=self.name, status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise UpstreamError('Unexpected Ollama response shape', provider=self.name, status_code=resp.status_code)
        return data.get('response') or None
