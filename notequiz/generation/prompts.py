import json
from typing import Any, Dict, List, Sequence

from notequiz.models import Note, QuestionType

QUESTION_TYPES = [t.value for t in QuestionType]

OUTPUT_CONTRACT = (
    'FORMAT YOUR RESPONSE AS A JSON ARRAY with this structure:\n'
    '[\n'
    '  {\n'
    '    "question": "Question text here",\n'
    '    "answer": "Correct answer here",\n'
    '    "noteId": "ID of the source note",\n'
    '    "type": "' + ' | '.join(QUESTION_TYPES) + '",\n'
    '    "options": ["Option 1", "Option 2", "Option 3", "Option 4"]\n'
    '  }\n'
    ']\n'
    'Include "options" only for multipleChoice questions, with 3-4 plausible options, one of which is exactly the answer.'
)


def project_notes(notes: Sequence[Note]) -> List[Dict[str, Any]]:
    """Only id, title and content are sent to a backend."""
    return [{'id': n.id, 'title': n.title, 'content': n.content} for n in notes]


def build_cloud_prompt(notes: Sequence[Note], max_questions: int) -> str:
    return (
        'Generate quiz questions based on the following notes. For each note, create 1-3 questions, '
        f'and no more than {max_questions} questions in total.\n'
        'Include a mix of question types: ' + ', '.join(QUESTION_TYPES) + '.\n\n'
        f'{OUTPUT_CONTRACT}\n\n'
        'Here are the notes:\n'
        f'{json.dumps(project_notes(notes))}'
    )


def build_local_prompt(notes: Sequence[Note], max_questions: int) -> str:
    return (
        f'Based on the following notes, create {max_questions} educational quiz questions.\n\n'
        f'{OUTPUT_CONTRACT}\n\n'
        'Make the questions test understanding, not just memorization. '
        'Focus on key concepts, important facts, and relationships between ideas.\n\n'
        'Notes:\n'
        f'{json.dumps(project_notes(notes), indent=2)}\n\n'
        'Respond with only the JSON array, no additional text:'
    )


SYSTEM_PROMPT = 'You are an educational assistant that creates high-quality quiz questions from study notes.'
