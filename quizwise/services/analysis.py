"""Normalize AI analysis replies into response models, filling every missing field."""

from typing import Any, Dict, List, Optional

from quizwise.schemas.analysis import AdvancedAnalysisReport, AnalysisReport, PdfAnalysis
from quizwise.services.aggregator import PerformanceBreakdown

DEFAULT_SUGGESTIONS = "Continue studying and practicing to improve your understanding."
DEFAULT_SUMMARY = "No summary available."
DIFFICULTY_LEVELS = {"easy", "medium", "hard"}


def _string_list(value: Any) -> List[str]:
    """De-duplicated, order-preserving list of non-empty strings."""
    if not isinstance(value, list):
        return []
    seen: List[str] = []
    for item in value:
        if isinstance(item, (dict, list)) or item is None:
            continue
        text = str(item).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def _string(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _coverage(value: Any) -> Dict[str, float]:
    if not isinstance(value, dict):
        return {}
    coverage: Dict[str, float] = {}
    for key, pct in value.items():
        if isinstance(pct, bool) or not isinstance(pct, (int, float)):
            continue
        coverage[str(key)] = float(pct)
    return coverage


def build_report(payload: Dict[str, Any]) -> AnalysisReport:
    return AnalysisReport(
        strong_areas=_string_list(payload.get("strongAreas")),
        weak_areas=_string_list(payload.get("weakAreas")),
        suggestions=_string(payload.get("suggestions"), DEFAULT_SUGGESTIONS),
    )


def build_advanced_report(payload: Dict[str, Any], breakdown: PerformanceBreakdown) -> AdvancedAnalysisReport:
    """Scores always come from ``breakdown``; the model's numbers are ignored."""
    base = build_report(payload)
    return AdvancedAnalysisReport(
        **base.model_dump(),
        topic_scores=breakdown.topic_scores,
        difficulty_performance=breakdown.difficulty_performance,
        question_type_performance=breakdown.question_type_performance,
        learning_path=_string_list(payload.get("learningPath")),
        next_steps=_string_list(payload.get("nextSteps")),
    )


def build_pdf_analysis(payload: Dict[str, Any], title: Optional[str], counted_pages: int) -> PdfAnalysis:
    topics = _string_list(payload.get("topics")) or [title or "General"]

    total_pages = counted_pages
    if total_pages <= 0:
        reported = payload.get("totalPages")
        total_pages = reported if isinstance(reported, int) and not isinstance(reported, bool) and reported > 0 else 0

    difficulty = _string(payload.get("difficultyLevel"), "medium").lower()
    if difficulty not in DIFFICULTY_LEVELS:
        difficulty = "medium"

    return PdfAnalysis(
        topics=topics,
        topic_coverage=_coverage(payload.get("topicCoverage")),
        total_pages=total_pages,
        content_summary=_string(payload.get("contentSummary"), DEFAULT_SUMMARY),
        key_terms=_string_list(payload.get("keyTerms")),
        difficulty_level=difficulty,
        content_areas=_string_list(payload.get("contentAreas")),
    )
