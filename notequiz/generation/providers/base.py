from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from notequiz.exceptions import ProviderUnavailable
from notequiz.generation.response_parser import parse_response
from notequiz.generation.validator import validate_all
from notequiz.models import Note, QuizQuestion
from notequiz.utils import get_logger, log_llm_call, log_parse_degraded

LOG = get_logger()


class ProviderKind(str, Enum):
    GEMINI = 'gemini'
    OLLAMA = 'ollama'
    OPENAI = 'openai'


@dataclass
class ProviderOutput:
    provider: str
    model: str
    questions: List[QuizQuestion] = field(default_factory=list)
    degraded: bool = False


class QuizProvider(ABC):
    """A generation backend.

    Subclasses hold an immutable config; a different model means a different
    provider instance (see `with_model`). `generate` issues exactly one
    generation request and never retries.
    """

    kind: ProviderKind
    # interval given to freshly generated questions
    initial_interval: int = 1
    check_before_generate: bool = False

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    @abstractmethod
    def model(self) -> str:
        ...

    @abstractmethod
    def with_model(self, model: str) -> 'QuizProvider':
        ...

    @abstractmethod
    def check_availability(self) -> bool:
        """Network availability check. Returns False on any connection failure; never raises."""

    @abstractmethod
    def list_capabilities(self) -> List[str]:
        ...

    @abstractmethod
    def build_prompt(self, notes: Sequence[Note], max_questions: int) -> str:
        ...

    @abstractmethod
    def _request(self, prompt: str) -> Optional[str]:
        """Issue the generation call and return the raw text (None for an empty reply)."""

    def _require_credentials(self) -> None:
        return None

    def generate_detailed(self, notes: Sequence[Note], max_questions: int = 10, request_id: Optional[str] = None,
                          folder_id: Optional[str] = None, user_id: Optional[str] = None) -> ProviderOutput:
        output = ProviderOutput(provider=self.name, model=self.model)
        if not notes:
            return output
        self._require_credentials()
        if self.check_before_generate and not self.check_availability():
            raise ProviderUnavailable(f'{self.name} is not reachable', provider=self.name)

        prompt = self.build_prompt(notes, max_questions)
        start = time.time()
        raw = self._request(prompt)
        duration_ms = int((time.time() - start) * 1000)
        log_llm_call(request_id, self.name, self.model, len(prompt), len(raw or ''), duration_ms)
        if raw is None:
            LOG.info('provider_empty_response', extra={'provider': self.name, 'request_id': request_id})
            return output

        parsed = parse_response(raw, notes, id_prefix=self.name)
        if parsed.degraded:
            log_parse_degraded(self.name, parsed.line_count, len(parsed.questions), parsed.reason)
        output.questions = validate_all(parsed.questions, initial_interval=self.initial_interval,
                                        folder_id=folder_id, user_id=user_id)
        output.degraded = parsed.degraded
        return output

    def generate(self, notes: Sequence[Note], max_questions: int = 10, request_id: Optional[str] = None,
                 folder_id: Optional[str] = None, user_id: Optional[str] = None) -> List[QuizQuestion]:
        return self.generate_detailed(notes, max_questions, request_id=request_id,
                                      folder_id=folder_id, user_id=user_id).questions
