import json

import pytest
import requests

from notequiz.exceptions import ConfigurationError, UpstreamError
from notequiz.generation.providers import GeminiProvider, ProviderKind
from notequiz.generation.providers.gemini import GeminiConfig
from notequiz.models import QuestionType
from notequiz.utils import parse_degraded_count
from tests.fixtures.mock_gemini import gemini_empty, gemini_error, gemini_ok
from tests.fixtures.mock_http import FakeResponse, Recorder
from tests.fixtures.sample_data import ML_QUESTION, PROSE_RESPONSE, STRICT_RESPONSE


@pytest.fixture
def provider():
    return GeminiProvider(GeminiConfig(api_key='test-key', api_url='https://gemini.test/v1beta/models', model='gemini-pro'))


@pytest.mark.unit
def test_missing_key_is_configuration_error(monkeypatch, sample_notes):
    post = Recorder(gemini_ok('[]'))
    monkeypatch.setattr(requests, 'post', post)
    p = GeminiProvider(GeminiConfig(api_key=None))
    with pytest.raises(ConfigurationError):
        p.generate(sample_notes)
    assert post.calls == []
    assert p.check_availability() is False


@pytest.mark.unit
def test_generate_strict(monkeypatch, provider, sample_notes):
    post = Recorder(gemini_ok(STRICT_RESPONSE))
    monkeypatch.setattr(requests, 'post', post)
    questions = provider.generate(sample_notes, max_questions=5, folder_id='f1', user_id='u1')

    assert len(questions) == 2
    assert questions[1].type == QuestionType.MULTIPLE_CHOICE
    assert all(q.interval == 0 and q.ease_factor == 2.5 for q in questions)
    assert all(q.id.startswith('gemini-') for q in questions)
    assert {q.folder_id for q in questions} == {'f1'}

    call = post.calls[0]
    assert call['url'] == 'https://gemini.test/v1beta/models/gemini-pro:generateContent'
    assert call['params'] == {'key': 'test-key'}
    prompt = call['json']['contents'][0]['parts'][0]['text']
    assert 'no more than 5 questions' in prompt
    assert '"n1"' in prompt


@pytest.mark.unit
def test_single_ml_note_scenario(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'post', Recorder(gemini_ok(json.dumps([ML_QUESTION]))))
    [q] = provider.generate(sample_notes[:1])
    assert (q.question, q.answer, q.note_id) == (ML_QUESTION['question'], ML_QUESTION['answer'], 'n1')
    assert q.ease_factor == 2.5
    assert q.last_reviewed is None


@pytest.mark.unit
def test_parts_are_joined(monkeypatch, provider, sample_notes):
    raw = json.dumps([ML_QUESTION])
    monkeypatch.setattr(requests, 'post', Recorder(gemini_ok(raw[:10], raw[10:])))
    assert len(provider.generate(sample_notes)) == 1


@pytest.mark.unit
def test_no_candidates_is_empty(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'post', Recorder(gemini_empty()))
    assert provider.generate(sample_notes) == []


@pytest.mark.unit
def test_http_error_is_upstream_error(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'post', Recorder(gemini_error(429)))
    with pytest.raises(UpstreamError) as exc:
        provider.generate(sample_notes)
    assert exc.value.status_code == 429
    assert exc.value.provider == 'gemini'


@pytest.mark.unit
def test_transport_failure_is_upstream_error(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'post', Recorder(requests.Timeout('read timed out')))
    with pytest.raises(UpstreamError):
        provider.generate(sample_notes)


@pytest.mark.unit
def test_unexpected_shape_is_upstream_error(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'post', Recorder(FakeResponse(200, {'candidates': [{'content': 'oops'}]})))
    with pytest.raises(UpstreamError):
        provider.generate(sample_notes)


@pytest.mark.unit
def test_prose_reply_degrades(monkeypatch, provider, sample_notes):
    monkeypatch.setattr(requests, 'post', Recorder(gemini_ok(PROSE_RESPONSE)))
    before = parse_degraded_count()
    out = provider.generate_detailed(sample_notes)
    assert out.degraded
    assert [q.type for q in out.questions] == [QuestionType.SHORT_ANSWER] * 2
    assert parse_degraded_count() == before + 1


@pytest.mark.unit
def test_empty_notes_skip_request(monkeypatch, provider):
    post = Recorder(gemini_ok('[]'))
    monkeypatch.setattr(requests, 'post', post)
    assert provider.generate([]) == []
    assert post.calls == []


@pytest.mark.unit
def test_check_availability(monkeypatch, provider):
    monkeypatch.setattr(requests, 'get', Recorder(FakeResponse(200, {'name': 'models/gemini-pro'})))
    assert provider.check_availability() is True
    monkeypatch.setattr(requests, 'get', Recorder(requests.ConnectionError('refused')))
    assert provider.check_availability() is False


@pytest.mark.unit
def test_with_model_returns_new_provider(provider):
    other = provider.with_model('gemini-1.5-flash')
    assert other is not provider
    assert other.model == 'gemini-1.5-flash'
    assert provider.model == 'gemini-pro'
    assert other.kind == ProviderKind.GEMINI
    assert other.list_capabilities() == ['gemini-1.5-flash']
