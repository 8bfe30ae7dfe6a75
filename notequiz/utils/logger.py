import os
import sys
import logging
import pathlib
import threading
import contextvars
from logging.handlers import RotatingFileHandler
from pythonjsonlogger import jsonlogger

_request_ctx_var = contextvars.ContextVar('request_ctx', default={})

_degraded_lock = threading.Lock()
_degraded_count = 0


def set_request_context(request_id: str, user_id: str = None):
    _request_ctx_var.set({'request_id': request_id, 'user_id': user_id})


def get_request_context():
    return _request_ctx_var.get()


def _inject_request_context(record):
    ctx = get_request_context()
    record.request_id = ctx.get('request_id')
    record.user_id = ctx.get('user_id')
    return True


def get_logger(name: str = 'notequiz'):
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json')
    # empty string disables file handlers
    LOG_FILE_PATH = os.getenv('LOG_FILE_PATH', 'logs')
    LOG_MAX_SIZE = int(os.getenv('LOG_MAX_SIZE', str(10 * 1024 * 1024)))
    LOG_MAX_FILES = int(os.getenv('LOG_MAX_FILES', '7'))

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL.upper())

    ch = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT == 'json':
        fmt = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s')
    else:
        fmt = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if LOG_FILE_PATH:
        log_path = pathlib.Path(LOG_FILE_PATH)
        if not log_path.is_absolute():
            log_path = pathlib.Path(os.getcwd()) / log_path
        log_path.mkdir(parents=True, exist_ok=True)

        combined = RotatingFileHandler(log_path / 'combined.log', maxBytes=LOG_MAX_SIZE, backupCount=LOG_MAX_FILES)
        combined.setFormatter(fmt)
        logger.addHandler(combined)

        errors = RotatingFileHandler(log_path / 'error.log', maxBytes=LOG_MAX_SIZE, backupCount=LOG_MAX_FILES)
        errors.setLevel(logging.ERROR)
        errors.setFormatter(fmt)
        logger.addHandler(errors)

    f = logging.Filter()
    f.filter = _inject_request_context
    logger.addFilter(f)

    return logger


def log_request(request_id: str, method: str, path: str, status_code: int, duration_ms: float, ip: str = None):
    logger = get_logger()
    logger.info('http_request', extra={'request_id': request_id, 'method': method, 'path': path, 'status_code': status_code, 'duration_ms': duration_ms, 'ip': ip})


def log_llm_call(request_id: str, provider: str, model: str, prompt_chars: int, response_chars: int, duration_ms: float, status_code: int = None):
    logger = get_logger()
    logger.info('llm_call', extra={
        'request_id': request_id,
        'provider': provider,
        'model': model,
        'prompt_chars': prompt_chars,
        'response_chars': response_chars,
        'duration_ms': duration_ms,
        'status_code': status_code,
    })


def log_quiz_generation(request_id: str, provider: str, question_count: int, note_count: int, duration_ms: float, degraded: bool = False):
    logger = get_logger()
    logger.info('quiz_generation', extra={
        'request_id': request_id,
        'provider': provider,
        'question_count': question_count,
        'note_count': note_count,
        'duration_ms': duration_ms,
        'degraded': degraded,
    })


def log_parse_degraded(provider: str, line_count: int, question_count: int, reason: str):
    """Record that the line-pairing fallback was used instead of structured JSON."""
    global _degraded_count
    with _degraded_lock:
        _degraded_count += 1
    logger = get_logger()
    logger.warning('parse_degraded', extra={
        'provider': provider,
        'line_count': line_count,
        'question_count': question_count,
        'reason': reason,
    })


def parse_degraded_count() -> int:
    with _degraded_lock:
        return _degraded_count


def log_provider_failure(provider: str, error_type: str, message: str, attempt: int = 1):
    logger = get_logger()
    logger.warning('provider_failure', extra={
        'provider': provider,
        'error_type': error_type,
        'error': message,
        'attempt': attempt,
    })


def log_review(question_id: str, correct: bool, ease_factor: float, interval: int):
    logger = get_logger()
    logger.info('review_scheduled', extra={
        'question_id': question_id,
        'correct': correct,
        'ease_factor': ease_factor,
        'interval': interval,
    })
