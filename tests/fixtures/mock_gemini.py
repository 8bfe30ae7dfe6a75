from .mock_http import FakeResponse


def gemini_body(*texts):
    return {'candidates': [{'content': {'parts': [{'text': t} for t in texts], 'role': 'model'}}]}


def gemini_ok(*texts):
    return FakeResponse(200, gemini_body(*texts))


def gemini_empty():
    return FakeResponse(200, {'candidates': []})


def gemini_error(status_code=500):
    return FakeResponse(status_code, {'error': {'code': status_code, 'message': 'internal'}})
