import asyncio
import logging

from fastapi import APIRouter, Depends

from quizwise.ai_engine import GenerationClient
from quizwise.api.common import error_response, get_fetcher, get_generator
from quizwise.core.errors import FetchError, QuizWiseError
from quizwise.schemas.analysis import (
    AdvancedAnalysisReport,
    AnalysisReport,
    PdfAnalysis,
    PdfAnalysisRequest,
    ResultsAnalysisRequest,
)
from quizwise.schemas.common import ErrorResponse
from quizwise.services.aggregator import aggregate_results
from quizwise.services.analysis import build_advanced_report, build_pdf_analysis, build_report
from quizwise.services.file_service import PdfFetcher, count_pdf_pages
from quizwise.services.prompts import (
    build_advanced_results_prompt,
    build_pdf_analysis_prompt,
    build_results_analysis_prompt,
)
from quizwise.services.validation import parse_analysis_response

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Analysis"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


@router.post("/analyze-pdf", response_model=PdfAnalysis)
async def analyze_pdf(
    request: PdfAnalysisRequest,
    generator: GenerationClient = Depends(get_generator),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """Topics, coverage and summary of a PDF, with defaults for anything the model omits."""
    if not request.pdf_url:
        return error_response(400, "PDF URL is required")

    logger.info(f"[ANALYSIS] analyze-pdf: {request.pdf_url!r}")
    prompt = build_pdf_analysis_prompt(request.title)

    try:
        async with fetcher.fetch(request.pdf_url) as document:
            part = await document.load_part()
            pages = await asyncio.to_thread(count_pdf_pages, part.data)
            raw = await generator.generate([prompt, part])
        payload = parse_analysis_response(raw)
    except FetchError as e:
        logger.warning(f"[ANALYSIS] PDF download failed: {e}")
        return error_response(400, f"Failed to download PDF: {e}")
    except QuizWiseError as e:
        logger.error(f"[ANALYSIS] PDF analysis failed: {e}")
        return error_response(500, str(e))

    analysis = build_pdf_analysis(payload, request.title, pages)
    logger.info(f"[ANALYSIS] ✓ {len(analysis.topics)} topics, {analysis.total_pages} pages")
    return analysis


@router.post("/analyze-results", response_model=AnalysisReport)
async def analyze_results(
    request: ResultsAnalysisRequest,
    generator: GenerationClient = Depends(get_generator),
):
    """Strong areas, weak areas and study suggestions for a finished quiz."""
    if request.results is None:
        return error_response(400, "Results array is required")

    logger.info(f"[ANALYSIS] analyze-results: topic={request.topic!r} n={len(request.results)}")
    prompt = build_results_analysis_prompt(
        request.topic, request.total_questions, request.correct_answers, request.results
    )

    try:
        raw = await generator.generate([prompt])
        payload = parse_analysis_response(raw)
    except QuizWiseError as e:
        logger.error(f"[ANALYSIS] Results analysis failed: {e}")
        return error_response(500, str(e))

    logger.info("[ANALYSIS] ✓ Analysis completed")
    return build_report(payload)


@router.post("/analyze-advanced-results", response_model=AdvancedAnalysisReport)
async def analyze_advanced_results(
    request: ResultsAnalysisRequest,
    generator: GenerationClient = Depends(get_generator),
):
    """Like analyze-results, plus exact per-topic/difficulty/type scores and a learning path."""
    if request.results is None:
        return error_response(400, "Results array is required")

    breakdown = aggregate_results(request.results, request.topics)
    prompt = build_advanced_results_prompt(
        request.topic,
        request.total_questions,
        request.correct_answers,
        request.results,
        breakdown,
        pdf_analysis=request.pdf_analysis,
    )

    try:
        raw = await generator.generate([prompt])
        payload = parse_analysis_response(raw)
    except QuizWiseError as e:
        logger.error(f"[ANALYSIS] Advanced results analysis failed: {e}")
        return error_response(500, str(e))

    logger.info("[ANALYSIS] ✓ Advanced analysis completed")
    return build_advanced_report(payload, breakdown)
