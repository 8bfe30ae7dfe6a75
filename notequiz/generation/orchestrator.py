"""
Provider selection for quiz generation.

Providers are tried in a fixed priority order and the first success wins;
results from different providers are never merged. Every per-provider
failure (missing credential, failed availability check, upstream error) moves on to the
next provider. Only when all of them fail does the caller see an error.
"""
from __future__ import annotations

import math
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from notequiz.config import get_settings
from notequiz.exceptions import NoProviderAvailable, ProviderError, UpstreamError
from notequiz.models import Note, QuizQuestion
from notequiz.utils import get_logger, log_provider_failure, log_quiz_generation

from .providers import ProviderOutput, QuizProvider, build_provider

LOG = get_logger()

NoteLike = Union[Note, Dict[str, Any]]

_WHITESPACE_RE = re.compile(r'\s+')


def _question_key(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text or '').strip().lower().rstrip('?.!')


@dataclass
class GenerationReport:
    questions: List[QuizQuestion] = field(default_factory=list)
    provider: Optional[str] = None
    model: Optional[str] = None
    degraded: bool = False
    failures: List[Dict[str, Any]] = field(default_factory=list)
    duration_ms: int = 0


class QuizOrchestrator:
    _instance = None

    def __init__(self, providers: Sequence[QuizProvider], notes_per_batch: int = 20, max_questions: int = 10,
                 retry_attempts: int = 1, retry_max_wait: float = 10.0):
        if not providers:
            raise ValueError('At least one provider must be configured')
        self.providers = tuple(providers)
        self.notes_per_batch = max(1, int(notes_per_batch))
        self.max_questions = max(1, int(max_questions))
        self.retry_attempts = max(1, int(retry_attempts))
        self.retry_max_wait = retry_max_wait

    @classmethod
    def from_settings(cls, settings=None) -> 'QuizOrchestrator':
        settings = settings or get_settings()
        providers = []
        for name in settings.provider_priority:
            try:
                providers.append(build_provider(name))
            except ValueError:
                LOG.warning('unknown_provider_skipped', extra={'provider': name})
        return cls(
            providers,
            notes_per_batch=settings.QUIZ_NOTES_PER_BATCH,
            max_questions=settings.QUIZ_MAX_QUESTIONS,
            retry_attempts=settings.QUIZ_RETRY_ATTEMPTS,
            retry_max_wait=settings.QUIZ_RETRY_MAX_WAIT,
        )

    @classmethod
    def get_instance(cls) -> 'QuizOrchestrator':
        if cls._instance is None:
            cls._instance = cls.from_settings()
            LOG.info('QuizOrchestrator initialized', extra={'providers': [p.name for p in cls._instance.providers]})
        return cls._instance

    def with_model(self, provider_name: str, model: str) -> 'QuizOrchestrator':
        """Return an orchestrator whose `provider_name` backend uses `model`."""
        providers = [p.with_model(model) if p.name == provider_name else p for p in self.providers]
        return QuizOrchestrator(providers, notes_per_batch=self.notes_per_batch, max_questions=self.max_questions,
                                retry_attempts=self.retry_attempts, retry_max_wait=self.retry_max_wait)

    def ordered_providers(self, preferred_provider: Optional[str] = None) -> List[QuizProvider]:
        ordered = list(self.providers)
        if preferred_provider:
            preferred = [p for p in ordered if p.name == preferred_provider]
            ordered = preferred + [p for p in ordered if p.name != preferred_provider]
        return ordered

    def check_providers(self) -> Dict[str, bool]:
        return {p.name: p.check_availability() for p in self.providers}

    def describe_providers(self) -> List[Dict[str, Any]]:
        out = []
        for p in self.providers:
            available = p.check_availability()
            out.append({
                'name': p.name,
                'kind': p.kind.value,
                'model': p.model,
                'available': available,
                'capabilities': p.list_capabilities() if available else [],
            })
        return out

    @staticmethod
    def _merge(outputs: List[ProviderOutput], limit: int) -> List[QuizQuestion]:
        """Concatenate batch results, dropping repeated question text, capped at `limit`."""
        seen = set()
        merged: List[QuizQuestion] = []
        for question in (q for out in outputs for q in out.questions):
            key = _question_key(question.question)
            if key and key in seen:
                continue
            seen.add(key)
            merged.append(question)
        if len(merged) > limit:
            LOG.info('quiz_questions_truncated', extra={'generated': len(merged), 'limit': limit})
        return merged[:limit]

    def _batches(self, notes: List[Note]) -> List[List[Note]]:
        size = self.notes_per_batch
        return [notes[i:i + size] for i in range(0, len(notes), size)]

    def _call_provider(self, provider: QuizProvider, batch: List[Note], max_questions: int, request_id: Optional[str],
                       folder_id: Optional[str], user_id: Optional[str]) -> ProviderOutput:
        def _log_retry(retry_state):
            exc = retry_state.outcome.exception()
            log_provider_failure(provider.name, type(exc).__name__, str(exc), attempt=retry_state.attempt_number)

        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, max=self.retry_max_wait),
            retry=retry_if_exception_type(UpstreamError),
            before_sleep=_log_retry,
            reraise=True,
        )
        return retrying(provider.generate_detailed, batch, max_questions, request_id=request_id,
                        folder_id=folder_id, user_id=user_id)

    def generate_quiz_report(self, notes: Sequence[NoteLike], preferred_provider: Optional[str] = None,
                             max_questions: Optional[int] = None, request_id: Optional[str] = None,
                             folder_id: Optional[str] = None, user_id: Optional[str] = None) -> GenerationReport:
        start = time.time()
        usable = [n for n in (Note.model_validate(n) if isinstance(n, dict) else n for n in notes or []) if not n.is_blank()]
        if not usable:
            return GenerationReport()

        folder_id = folder_id if folder_id is not None else usable[0].folder_id
        user_id = user_id if user_id is not None else usable[0].user_id
        total = max_questions or self.max_questions
        batches = self._batches(usable)

        failures: List[Dict[str, Any]] = []
        for provider in self.ordered_providers(preferred_provider):
            try:
                outputs = []
                for batch in batches:
                    share = max(1, math.ceil(total * len(batch) / len(usable)))
                    outputs.append(self._call_provider(provider, batch, share, request_id, folder_id, user_id))
            except ProviderError as e:
                failure = {'provider': provider.name, 'error_type': type(e).__name__, 'message': str(e)}
                if isinstance(e, UpstreamError) and e.status_code is not None:
                    failure['status_code'] = e.status_code
                failures.append(failure)
                log_provider_failure(provider.name, type(e).__name__, str(e), attempt=self.retry_attempts)
                continue

            questions = self._merge(outputs, total)
            degraded = any(out.degraded for out in outputs)
            duration_ms = int((time.time() - start) * 1000)
            log_quiz_generation(request_id, provider.name, len(questions), len(usable), duration_ms, degraded=degraded)
            return GenerationReport(questions=questions, provider=provider.name, model=provider.model,
                                    degraded=degraded, failures=failures, duration_ms=duration_ms)

        LOG.error('no_provider_available', extra={'request_id': request_id, 'failures': failures})
        raise NoProviderAvailable('No quiz generation provider is available', failures=failures)

    def generate_quiz(self, notes: Sequence[NoteLike], preferred_provider: Optional[str] = None, **kwargs) -> List[QuizQuestion]:
        return self.generate_quiz_report(notes, preferred_provider=preferred_provider, **kwargs).questions


# convenience
def generate_quiz(notes: Sequence[NoteLike], preferred_provider: Optional[str] = None, **kwargs) -> List[QuizQuestion]:
    return QuizOrchestrator.get_instance().generate_quiz(notes, preferred_provider=preferred_provider, **kwargs)
