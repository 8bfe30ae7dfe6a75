import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
from dotenv import load_dotenv

# load test env first
env_path = Path(__file__).resolve().parents[1] / '.env.test'
if env_path.exists():
    load_dotenv(env_path)

os.environ.setdefault('TESTING', '1')
# no log files under test
os.environ.setdefault('LOG_FILE_PATH', '')

from notequiz.generation import QuizOrchestrator  # noqa: E402
from notequiz.models import Note  # noqa: E402

from tests.fixtures.mock_openai import FakeOpenAI  # noqa: E402
from tests.fixtures.sample_data import SAMPLE_NOTES  # noqa: E402


@pytest.fixture(autouse=True)
def reset_orchestrator(monkeypatch):
    monkeypatch.setattr(QuizOrchestrator, '_instance', None)
    yield


@pytest.fixture
def sample_notes():
    return [Note.model_validate(n) for n in SAMPLE_NOTES]


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_openai(monkeypatch):
    FakeOpenAI.reply = None
    FakeOpenAI.error = None
    FakeOpenAI.calls = []
    FakeOpenAI.init_kwargs = {}
    monkeypatch.setattr('notequiz.generation.providers.openai_provider.OpenAI', FakeOpenAI)
    return FakeOpenAI
