import pytest
from pydantic import ValidationError

from notequiz.models import ConfidenceScale, Note, QuestionResult, QuestionType, QuizQuestion


@pytest.mark.unit
def test_record_round_trip_keeps_nulls():
    q = QuizQuestion(id='q1', question='Q?', answer='A')
    record = q.to_record()
    assert record['options'] is None
    assert record['last_reviewed'] is None
    assert record['type'] == 'shortAnswer'
    assert QuizQuestion.from_record(record) == q


@pytest.mark.unit
def test_ease_factor_floor_enforced():
    with pytest.raises(ValidationError):
        QuizQuestion(id='q1', ease_factor=1.0)
    with pytest.raises(ValidationError):
        QuizQuestion(id='q1', interval=-1)


@pytest.mark.unit
def test_type_parsed_from_string():
    assert QuizQuestion(id='q1', type='trueFalse').type == QuestionType.TRUE_FALSE


@pytest.mark.unit
def test_note_is_blank():
    assert Note(id='n', title=' ', content='\t').is_blank()
    assert not Note(id='n', content='x').is_blank()


@pytest.mark.unit
def test_note_id_is_optional():
    note = Note.model_validate({'title': 'ML', 'content': 'Neural networks are computational models.'})
    assert note.id == ''
    assert not note.is_blank()


@pytest.mark.unit
def test_confidence_scale_defaults_to_ordinal():
    assert QuestionResult(question_id='q1', correct=True, confidence=3).confidence_scale == ConfidenceScale.ORDINAL
    assert QuestionResult(question_id='q1', correct=True, confidence_scale='fraction').confidence_scale == ConfidenceScale.FRACTION
