"""
Extraction of quiz question records from raw generation output.

Two pure paths are composed by `parse_response`:
- strict: the first `[ ... ]` span (greedy) decoded as a JSON array of objects
- fallback: consecutive non-blank lines paired as (question, answer)

The choice between them is made once, on whether the strict decode produced
an array. Malformed input never raises; the worst case is an empty list.
"""
import json
import os
import re
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from notequiz.models import Note, QuestionType, UnvalidatedQuestion

FALLBACK_MAX_QUESTIONS = int(os.getenv('QUIZ_FALLBACK_MAX_QUESTIONS', '10'))

_JSON_ARRAY_RE = re.compile(r'\[[\s\S]*\]')
_ORDINAL_RE = re.compile(r'^\d+\.?\s*')
_ANSWER_MARKER_RE = re.compile(r'^A:\s*')

REASON_NO_ARRAY = 'no_json_array'
REASON_DECODE_FAILED = 'json_decode_failed'


@dataclass
class ParsedResponse:
    questions: List[UnvalidatedQuestion]
    degraded: bool = False
    reason: Optional[str] = None
    line_count: int = 0


def _new_id(prefix: str) -> str:
    return f'{prefix}-{uuid.uuid4().hex}'


def _default_note_id(source_notes: Optional[Sequence[Any]]) -> str:
    if not source_notes:
        return ''
    first = source_notes[0]
    if isinstance(first, Note):
        return first.id
    if isinstance(first, dict):
        return str(first.get('id') or '')
    return str(getattr(first, 'id', '') or '')


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _options(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [_text(o) for o in value if o is not None]


def _decode_array(raw_text: Optional[str]) -> Tuple[Optional[list], Optional[str]]:
    """Return (items, None) on success or (None, reason) on failure."""
    if not raw_text:
        return None, REASON_NO_ARRAY
    match = _JSON_ARRAY_RE.search(raw_text)
    if not match:
        return None, REASON_NO_ARRAY
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None, REASON_DECODE_FAILED
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        return None, REASON_DECODE_FAILED
    return data, None


def _from_items(items: list, source_notes, id_prefix: str) -> List[UnvalidatedQuestion]:
    default_note_id = _default_note_id(source_notes)
    out: List[UnvalidatedQuestion] = []
    for item in items:
        note_id = item.get('note_id') or item.get('noteId') or default_note_id
        out.append(UnvalidatedQuestion(
            id=_new_id(id_prefix),
            note_id=str(note_id),
            question=_text(item.get('question')),
            answer=_text(item.get('answer')),
            type=_text(item.get('type')),
            options=_options(item.get('options')),
        ))
    return out


def _non_blank_lines(raw_text: Optional[str]) -> List[str]:
    if not raw_text:
        return []
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


def parse_strict(raw_text: str, source_notes: Optional[Sequence[Any]] = None, id_prefix: str = 'q') -> Optional[List[UnvalidatedQuestion]]:
    """Decode a JSON array of question objects; None when no array could be decoded."""
    items, _ = _decode_array(raw_text)
    if items is None:
        return None
    return _from_items(items, source_notes, id_prefix)


def parse_fallback(raw_text: str, source_notes: Optional[Sequence[Any]] = None, id_prefix: str = 'q', limit: int = FALLBACK_MAX_QUESTIONS) -> List[UnvalidatedQuestion]:
    """Pair consecutive non-blank lines into short-answer questions, capped at `limit`."""
    lines = _non_blank_lines(raw_text)
    default_note_id = _default_note_id(source_notes)
    out: List[UnvalidatedQuestion] = []
    for i in range(0, len(lines) - 1, 2):
        if len(out) >= limit:
            break
        out.append(UnvalidatedQuestion(
            id=_new_id(f'{id_prefix}-fallback'),
            note_id=default_note_id,
            question=_ORDINAL_RE.sub('', lines[i], count=1),
            answer=_ANSWER_MARKER_RE.sub('', lines[i + 1], count=1),
            type=QuestionType.SHORT_ANSWER.value,
        ))
    return out


def parse_response(raw_text: str, source_notes: Optional[Sequence[Any]] = None, id_prefix: str = 'q') -> ParsedResponse:
    items, reason = _decode_array(raw_text)
    if items is not None:
        return ParsedResponse(questions=_from_items(items, source_notes, id_prefix))
    lines = _non_blank_lines(raw_text)
    questions = parse_fallback(raw_text, source_notes, id_prefix=id_prefix)
    return ParsedResponse(questions=questions, degraded=True, reason=reason, line_count=len(lines))


def parse(raw_text: str, source_notes: Optional[Sequence[Any]] = None, id_prefix: str = 'q') -> List[UnvalidatedQuestion]:
    return parse_response(raw_text, source_notes, id_prefix=id_prefix).questions
