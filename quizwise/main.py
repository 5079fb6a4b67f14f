"""
QuizWise Backend
================
FastAPI entry point.
  • Quiz generation from a topic and/or a PDF URL (strict and lenient contracts)
  • PDF analysis and quiz-result analysis
  • Global exception handler: uncaught errors → 500 {"error": "Internal server error"}
  • Unknown routes → 404 {"error": "Endpoint not found"}
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizwise.ai_engine import build_generation_client
from quizwise.api.common import error_response
from quizwise.api.endpoints import analysis, quiz
from quizwise.core.config import settings
from quizwise.schemas.common import ErrorResponse
from quizwise.services.file_service import PdfFetcher

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the process-wide collaborators once; routes receive them as dependencies."""
    app.state.fetcher = PdfFetcher.from_settings(settings)
    app.state.generator = build_generation_client(settings)
    logger.info(f"🚀 {settings.SERVICE_NAME} ready on port {settings.PORT}")
    yield


# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Topic or PDF → AI-generated quiz. Quiz results → AI performance analysis.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return error_response(500, "Internal server error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        return error_response(404, "Endpoint not found")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid body on {request.url.path}: {exc.errors()}")
    return error_response(400, "Invalid request body", detail=str(exc.errors()))


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz.router, prefix="/api")
app.include_router(analysis.router, prefix="/api")


# ── System ───────────────────────────────────────────────────────────────────
@app.get("/health", tags=["System"])
async def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
    }


@app.get("/", tags=["System"])
async def root():
    return {
        "message": f"{settings.SERVICE_NAME} API",
        "version": settings.SERVICE_VERSION,
        "status": "Running",
        "endpoints": {
            "generateQuiz": "POST /api/generate-quiz",
            "generateAdvancedQuiz": "POST /api/generate-advanced-quiz",
            "generateFastQuiz": "POST /api/generate-fast-quiz",
            "generateTopicQuiz": "POST /api/generate-topic-quiz",
            "analyzePdf": "POST /api/analyze-pdf",
            "analyzeResults": "POST /api/analyze-results",
            "analyzeAdvancedResults": "POST /api/analyze-advanced-results",
            "health": "GET /health",
        },
        "documentation": "Send POST requests to /api/generate-quiz with topic and/or pdfUrl",
    }


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
