import os
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

import openai
from openai import OpenAI

from notequiz.exceptions import ConfigurationError, UpstreamError
from notequiz.generation.prompts import SYSTEM_PROMPT, build_cloud_prompt
from notequiz.models import Note
from notequiz.utils import get_logger

from .base import ProviderKind, QuizProvider

LOG = get_logger()

OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL') or None
OPENAI_TIMEOUT = float(os.getenv('OPENAI_TIMEOUT', '30'))
QUIZ_TEMPERATURE = float(os.getenv('QUIZ_TEMPERATURE', '0.7'))
QUIZ_MAX_TOKENS = int(os.getenv('QUIZ_MAX_TOKENS', '1500'))


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: Optional[str] = None
    model: str = OPENAI_MODEL
    base_url: Optional[str] = OPENAI_BASE_URL
    timeout: float = OPENAI_TIMEOUT
    temperature: float = QUIZ_TEMPERATURE
    max_tokens: int = QUIZ_MAX_TOKENS

    @classmethod
    def from_env(cls) -> 'OpenAIConfig':
        return cls(api_key=os.getenv('OPENAI_API_KEY') or None)


class OpenAIProvider(QuizProvider):
    """Cloud chat-completions backend."""

    kind = ProviderKind.OPENAI
    initial_interval = 1

    def __init__(self, config: Optional[OpenAIConfig] = None):
        self.config = config or OpenAIConfig.from_env()

    @property
    def model(self) -> str:
        return self.config.model

    def with_model(self, model: str) -> 'OpenAIProvider':
        return OpenAIProvider(replace(self.config, model=model))

    def _client(self) -> OpenAI:
        # the orchestrator owns retry policy, so the SDK's own retries are off
        return OpenAI(api_key=self.config.api_key, base_url=self.config.base_url,
                      timeout=self.config.timeout, max_retries=0)

    def _require_credentials(self) -> None:
        if not self.config.api_key:
            raise ConfigurationError('OPENAI_API_KEY not set', provider=self.name)

    def check_availability(self) -> bool:
        if not self.config.api_key:
            return False
        try:
            self._client().models.retrieve(self.config.model)
            return True
        except openai.OpenAIError as e:
            LOG.info('openai_check_failed', extra={'error': str(e)})
            return False

    def list_capabilities(self) -> List[str]:
        return [self.config.model]

    def build_prompt(self, notes: Sequence[Note], max_questions: int) -> str:
        return build_cloud_prompt(notes, max_questions)

    def _request(self, prompt: str) -> Optional[str]:
        try:
            resp = self._client().chat.completions.create(
                model=self.config.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except openai.APIStatusError as e:
            raise UpstreamError(f'OpenAI API error: {e.status_code}', provider=self.name, status_code=e.status_code) from e
        except openai.OpenAIError as e:
            raise UpstreamError(f'OpenAI request failed: {e}', provider=self.name) from e
        if not resp.choices:
            return None
        return resp.choices[0].message.content or None
