import os
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from notequiz.config import get_settings
from notequiz.exceptions import NoProviderAvailable
from notequiz.generation import QuizOrchestrator
from notequiz.models import LearningStats, Note, QuestionResult, QuizQuestion, SchedulingUpdate, utcnow
from notequiz.scheduling import apply_update, learning_stats, record_outcome, select_due_questions
from notequiz.utils import get_logger, log_request, parse_degraded_count, set_request_context

LOG = get_logger()

settings = get_settings()

app = FastAPI(title='NoteQuiz Service', version='1.0.0', description='Quiz generation and review scheduling for study notes')

# CORS config
origins = [o.strip() for o in settings.CORS_ORIGIN.split(',') if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator() -> QuizOrchestrator:
    return QuizOrchestrator.get_instance()


@app.middleware('http')
async def add_request_id_and_logging(request: Request, call_next):
    # prefer incoming X-Request-ID header for cross-service tracing
    request_id = request.headers.get('x-request-id') or os.urandom(8).hex()
    request.state.request_id = request_id
    set_request_context(request_id)
    start = time.time()
    LOG.info('http_request_start', extra={'method': request.method, 'path': request.url.path, 'request_id': request_id})
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        LOG.exception('Unhandled exception in request')
        body = {'success': False, 'error': 'Internal server error', 'details': str(exc), 'request_id': request_id}
        return JSONResponse(status_code=500, content=body, headers={'X-Request-ID': request_id})
    duration = int((time.time() - start) * 1000)
    log_request(request_id, request.method, request.url.path, response.status_code, duration,
                ip=request.client.host if request.client else None)
    response.headers['X-Request-ID'] = request_id
    return response


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or os.urandom(8).hex()


@app.get('/health')
async def health():
    return {'status': 'ok', 'timestamp': utcnow().isoformat(), 'service': 'notequiz'}


@app.get('/ready')
def ready():
    providers = get_orchestrator().check_providers()
    ready_ok = any(providers.values())
    status_code = 200 if ready_ok else 503
    return JSONResponse(status_code=status_code, content={
        'status': 'ready' if ready_ok else 'not ready',
        'providers': providers,
        'parse_degraded_total': parse_degraded_count(),
    })


@app.get('/providers')
def providers():
    return {'success': True, 'providers': get_orchestrator().describe_providers()}


class QuizGenerateRequest(BaseModel):
    notes: List[Note] = Field(default_factory=list)
    preferred_provider: Optional[str] = None
    max_questions: Optional[int] = Field(None, ge=1)
    folder_id: Optional[str] = None
    user_id: Optional[str] = None


class QuizGenerateResponse(BaseModel):
    success: bool
    questions: List[QuizQuestion]
    metadata: Dict[str, Any]
    request_id: str


class ReviewRequest(BaseModel):
    question: QuizQuestion
    result: QuestionResult


class ReviewResponse(BaseModel):
    success: bool
    update: SchedulingUpdate
    question: QuizQuestion
    request_id: str


class DueRequest(BaseModel):
    questions: List[QuizQuestion] = Field(default_factory=list)
    max_questions: int = Field(10, ge=0)


class DueResponse(BaseModel):
    success: bool
    questions: List[QuizQuestion]
    due_count: int
    request_id: str


class StatsRequest(BaseModel):
    questions: List[QuizQuestion] = Field(default_factory=list)
    results: List[QuestionResult] = Field(default_factory=list)


class StatsResponse(BaseModel):
    success: bool
    stats: LearningStats
    request_id: str


@app.post('/quiz/generate', response_model=QuizGenerateResponse)
def generate_quiz_endpoint(req: QuizGenerateRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    max_q = settings.QUIZ_MAX_QUESTIONS
    if req.max_questions and req.max_questions > max_q:
        return JSONResponse(status_code=400, content={'success': False, 'error': 'Invalid max_questions', 'details': f'max_questions must be 1-{max_q}', 'request_id': request_id})

    LOG.info('quiz_generation_start', extra={'request_id': request_id, 'note_count': len(req.notes), 'preferred_provider': req.preferred_provider})
    try:
        report = get_orchestrator().generate_quiz_report(
            req.notes,
            preferred_provider=req.preferred_provider,
            max_questions=req.max_questions,
            request_id=request_id,
            folder_id=req.folder_id,
            user_id=req.user_id,
        )
    except NoProviderAvailable as e:
        LOG.error('quiz_no_provider', extra={'request_id': request_id, 'failures': e.failures})
        return JSONResponse(status_code=503, content={'success': False, 'error': 'No quiz provider available', 'details': e.failures, 'request_id': request_id})

    metadata = {
        'provider': report.provider,
        'model_used': report.model,
        'degraded': report.degraded,
        'failures': report.failures,
        'processing_time_ms': report.duration_ms,
    }
    LOG.info('quiz_generation_complete', extra={'request_id': request_id, 'question_count': len(report.questions), 'provider': report.provider})
    return QuizGenerateResponse(success=True, questions=report.questions, metadata=metadata, request_id=request_id)


@app.post('/quiz/review', response_model=ReviewResponse)
def review_endpoint(req: ReviewRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    update = record_outcome(req.question, req.result)
    return ReviewResponse(success=True, update=update, question=apply_update(req.question, update), request_id=request_id)


@app.post('/quiz/due', response_model=DueResponse)
def due_endpoint(req: DueRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    due = select_due_questions(req.questions, max_questions=req.max_questions)
    return DueResponse(success=True, questions=due, due_count=len(due), request_id=request_id)


@app.post('/quiz/stats', response_model=StatsResponse)
def stats_endpoint(req: StatsRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    stats = learning_stats(req.questions, req.results)
    LOG.info('quiz_stats', extra={'request_id': request_id, 'total': stats.total, 'due': stats.due})
    return StatsResponse(success=True, stats=stats, request_id=request_id)


@app.on_event('startup')
async def startup_event():
    LOG.info('Service starting', extra={'environment': settings.ENVIRONMENT, 'providers': settings.provider_priority})


if __name__ == '__main__':
    import uvicorn

    workers = int(os.getenv('WORKERS', '1'))
    # uvicorn does not support --reload with multiple workers
    if settings.ENVIRONMENT == 'development':
        workers = 1
    reload_enabled = (settings.ENVIRONMENT == 'development') and (workers == 1)

    uvicorn.run(
        'main:app',
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=reload_enabled,
        workers=workers,
    )
