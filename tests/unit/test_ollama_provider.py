import pytest
import requests

from notequiz.exceptions import ProviderUnavailable, UpstreamError
from notequiz.generation.providers import OllamaProvider
from notequiz.generation.providers.ollama import OllamaConfig
from tests.fixtures.mock_http import Recorder
from tests.fixtures.mock_ollama import generate_error, generate_ok, tags_ok
from tests.fixtures.sample_data import STRICT_RESPONSE


@pytest.fixture
def provider():
    return OllamaProvider(OllamaConfig(base_url='http://ollama.test:11434/', model='llama3.1:8b', check_timeout=1))


@pytest.mark.unit
def test_check_timeout_is_unavailable(monkeypatch, provider):
    get = Recorder(requests.Timeout('tags request timed out'))
    monkeypatch.setattr(requests, 'get', get)
    assert provider.check_availability() is False
    assert get.calls[0]['url'] == 'http://ollama.test:11434/api/tags'
    assert get.calls[0]['timeout'] == 1


@pytest.mark.unit
def test_generate_checks_availability_first(monkeypatch, provider, sample_notes):
    post = Recorder(generate_ok(STRICT_RESPONSE))
    monkeypatch.setattr(requests, 'get', Recorder(requests.ConnectionError('refused')))
    monkeypatch.setattr(requests, 'post', post)
    with pytest.raises(ProviderUnavailable):
        provider.generate(sample_notes)
    assert post.calls == []


@pytest.mark.unit
def test_generate(monkeypatch, provider, sample_notes):
    post = Recorder(generate_ok(STRICT_RESPONSE))
    monkeypatch.setattr(requests, 'get', Recorder(tags_ok('llama3.1:8b')))
    monkeypatch.setattr(requests, 'post', post)
    questions = provider.generate(sample_notes, max_questions=4)

    assert len(questions) == 2
    assert all(q.interval == 1 for q in questions)
    body = post.calls[0]['json']
    assert post.calls[0]['url'] == 'http://ollama.test:11434/api/generate'
    assert body['model'] == 'llama3.1:8b'
    assert body['stream'] is False
    assert set(body['options']) == {'temperature', 'top_p'}
    assert 'create 4 educational quiz questions' in body['prompt']


@pytest.mark.unit
def test_empty_reply_is_empty(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'get', Recorder(tags_ok()))
    monkeypatch.setattr(requests, 'post', Recorder(generate_ok('')))
    assert provider.generate(sample_notes) == []


@pytest.mark.unit
def test_server_error_is_upstream_error(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'get', Recorder(tags_ok()))
    monkeypatch.setattr(requests, 'post', Recorder(generate_error(500)))
    with pytest.raises(UpstreamError) as exc:
        provider.generate(sample_notes)
    assert exc.value.status_code == 500


@pytest.mark.unit
def test_list_capabilities(monkeypatch, provider):
    monkeypatch.setattr(requests, 'get', Recorder(tags_ok('llama3.1:8b', 'mistral:7b')))
    assert provider.list_capabilities() == ['llama3.1:8b', 'mistral:7b']
    monkeypatch.setattr(requests, 'get', Recorder(requests.ConnectionError('refused')))
    assert provider.list_capabilities() == []
