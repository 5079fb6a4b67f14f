import time
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from quizwise.ai_engine import GenerationClient
from quizwise.api.common import error_response, generate_from_source, get_fetcher, get_generator
from quizwise.core.errors import FetchError, QuizWiseError
from quizwise.schemas.common import ErrorResponse
from quizwise.schemas.quiz import (
    AdvancedQuizRequest,
    FastQuizRequest,
    GeneratedQuizResponse,
    QuizRequest,
    QuizResponse,
    TopicQuizRequest,
)
from quizwise.services.file_service import PdfFetcher
from quizwise.services.prompts import (
    build_advanced_quiz_prompt,
    build_fast_quiz_prompt,
    build_quiz_prompt,
    build_topic_quiz_prompt,
)
from quizwise.services.validation import (
    LenientValidator,
    QuestionValidator,
    StrictValidator,
    validate_quiz_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Quiz"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)

# Two policies, chosen per endpoint. The legacy endpoint keeps the
# all-or-nothing guarantee its callers rely on.
STRICT = StrictValidator()
LENIENT = LenientValidator(enforce_option_count=True)
LENIENT_FAST = LenientValidator(enforce_option_count=False)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. LEGACY MCQ (strict)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/generate-quiz", response_model=QuizResponse)
async def generate_quiz(
    request: QuizRequest,
    generator: GenerationClient = Depends(get_generator),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """Multiple-choice quiz from a topic and/or a PDF URL. Any invalid question fails the batch."""
    if not request.topic and not request.pdf_url:
        return error_response(400, "Either topic or PDF URL is required")

    logger.info(
        f"[QUIZ] generate-quiz: topic={request.topic!r} pdf={request.pdf_url!r} "
        f"n={request.num_questions}"
    )
    prompt = build_quiz_prompt(request.num_questions, request.topic, has_document=bool(request.pdf_url))

    try:
        raw = await generate_from_source(generator, fetcher, prompt, request.pdf_url)
        batch = validate_quiz_response(raw, STRICT)
    except FetchError as e:
        logger.warning(f"[QUIZ] PDF download failed: {e}")
        return error_response(400, f"Failed to download PDF: {e}")
    except QuizWiseError as e:
        logger.error(f"[QUIZ] Generation failed: {e}")
        return error_response(500, str(e))

    logger.info(f"[QUIZ] ✓ Generated {len(batch.questions)} questions")
    return QuizResponse(questions=batch.questions)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. TYPED QUIZZES (lenient)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _typed_quiz(
    label: str,
    prompt: str,
    pdf_url: Optional[str],
    validator: QuestionValidator,
    generator: GenerationClient,
    fetcher: PdfFetcher,
):
    start = time.perf_counter()
    try:
        raw = await generate_from_source(generator, fetcher, prompt, pdf_url)
        batch = validate_quiz_response(raw, validator)
    except FetchError as e:
        logger.warning(f"[QUIZ] {label}: PDF download failed: {e}")
        return error_response(400, f"Failed to download PDF: {e}", success=False)
    except QuizWiseError as e:
        logger.error(f"[QUIZ] {label}: generation failed: {e}")
        return error_response(500, str(e), success=False)

    elapsed = _elapsed_ms(start)
    logger.info(
        f"[QUIZ] ✓ {label}: {len(batch.questions)} questions, "
        f"{len(batch.fixes)} auto-fixed, {elapsed}ms"
    )
    return GeneratedQuizResponse(
        questions=batch.questions,
        generation_time=elapsed,
        auto_fixed=len(batch.fixes),
    )


@router.post("/generate-advanced-quiz", response_model=GeneratedQuizResponse)
async def generate_advanced_quiz(
    request: AdvancedQuizRequest,
    generator: GenerationClient = Depends(get_generator),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """Typed quiz with caller-chosen type, difficulty and topic mixes."""
    if not request.topic and not request.pdf_url:
        return error_response(400, "Either topic or PDF URL is required", success=False)

    prompt = build_advanced_quiz_prompt(
        request.num_questions,
        topic=request.topic,
        has_document=bool(request.pdf_url),
        question_types=request.question_types,
        difficulty_distribution=request.difficulty_distribution,
        topic_distribution=request.topic_distribution,
    )
    return await _typed_quiz("advanced", prompt, request.pdf_url, LENIENT, generator, fetcher)


@router.post("/generate-fast-quiz", response_model=GeneratedQuizResponse)
async def generate_fast_quiz(
    request: FastQuizRequest,
    generator: GenerationClient = Depends(get_generator),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """Fixed 15-question mix from a PDF."""
    if not request.pdf_url:
        return error_response(400, "PDF URL is required", success=False)

    prompt = build_fast_quiz_prompt(request.topic)
    return await _typed_quiz("fast", prompt, request.pdf_url, LENIENT_FAST, generator, fetcher)


@router.post("/generate-topic-quiz", response_model=GeneratedQuizResponse)
async def generate_topic_quiz(
    request: TopicQuizRequest,
    generator: GenerationClient = Depends(get_generator),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """Fixed 15-question mix from a topic only."""
    if not request.topic:
        return error_response(400, "Topic is required", success=False)

    prompt = build_topic_quiz_prompt(request.topic)
    return await _typed_quiz("topic", prompt, None, LENIENT_FAST, generator, fetcher)
