import pytest

from notequiz.generation.validator import check_shape, normalize_type, validate, validate_all
from notequiz.models import QuestionType, UnvalidatedQuestion


def _raw(**kw):
    data = {'id': 'q-1', 'note_id': 'n1', 'question': 'Q?', 'answer': 'A'}
    data.update(kw)
    return UnvalidatedQuestion(**data)


@pytest.mark.unit
@pytest.mark.parametrize('value,expected', [
    ('multipleChoice', QuestionType.MULTIPLE_CHOICE),
    ('mcq', QuestionType.MULTIPLE_CHOICE),
    ('True_False', QuestionType.TRUE_FALSE),
    ('essay', QuestionType.SHORT_ANSWER),
    (None, QuestionType.SHORT_ANSWER),
    (3, QuestionType.SHORT_ANSWER),
])
def test_normalize_type(value, expected):
    assert normalize_type(value) == expected


@pytest.mark.unit
def test_unknown_type_becomes_short_answer_without_options():
    q = validate(_raw(type='essay', options=['a', 'b', 'c']))
    assert q.type == QuestionType.SHORT_ANSWER
    assert q.options is None


@pytest.mark.unit
def test_options_kept_only_for_multiple_choice():
    mc = validate(_raw(type='multipleChoice', answer='A', options=['A', 'B', 'C']))
    tf = validate(_raw(type='trueFalse', answer='true', options=['true', 'false']))
    assert mc.options == ['A', 'B', 'C']
    assert tf.options is None


@pytest.mark.unit
def test_dict_options_are_coerced_to_text():
    q = validate({'id': 'q-2', 'question': 'Pick', 'answer': '2', 'type': 'multipleChoice', 'options': [1, 2, 3]})
    assert q.options == ['1', '2', '3']


@pytest.mark.unit
def test_scheduling_fields_reset(fixed_now):
    q = validate(_raw(), initial_interval=0, now=fixed_now)
    assert q.ease_factor == 2.5
    assert q.interval == 0
    assert q.last_reviewed is None
    assert q.next_review_date == fixed_now


@pytest.mark.unit
def test_missing_fields_become_empty_strings():
    q = validate({'id': 'q-3'})
    assert q.question == ''
    assert q.answer == ''
    assert q.note_id == ''


@pytest.mark.unit
def test_folder_and_user_override():
    q = validate({'id': 'q-4', 'folder_id': 'old'}, folder_id='f1', user_id='u1')
    assert (q.folder_id, q.user_id) == ('f1', 'u1')


@pytest.mark.unit
@pytest.mark.parametrize('raw', [
    _raw(type='multipleChoice', options=['A', 'B', 'C']),
    _raw(type='shortAnswer', options=['x']),
    _raw(type='nonsense'),
    _raw(type='trueFalse', answer='false'),
])
def test_validate_is_idempotent(raw, fixed_now):
    once = validate(raw, now=fixed_now)
    twice = validate(once, now=fixed_now)
    assert twice.model_dump() == once.model_dump()


@pytest.mark.unit
def test_validate_never_yields_options_on_non_choice():
    raws = [_raw(type=t, options=['a', 'b', 'c']) for t in ('shortAnswer', 'fillInBlank', 'trueFalse', 'bogus', None)]
    assert all(q.options is None for q in validate_all(raws))


@pytest.mark.unit
def test_check_shape_flags_choice_problems():
    q = validate(_raw(type='multipleChoice', answer='Z', options=['A', 'B']))
    assert set(check_shape(q)) == {'too_few_options', 'answer_not_in_options'}
    ok = validate(_raw(type='multipleChoice', answer='A', options=['A', 'B', 'C', 'D']))
    assert check_shape(ok) == []


@pytest.mark.unit
def test_validate_all_shares_timestamp():
    out = validate_all([_raw(id='a'), _raw(id='b')])
    assert out[0].next_review_date == out[1].next_review_date
