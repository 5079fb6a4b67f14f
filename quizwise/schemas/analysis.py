from typing import Any, Dict, List, Optional

from pydantic import Field, ValidationInfo, field_validator

from quizwise.schemas.common import CamelModel, OptionalText, ScalarText


class ResultEntry(CamelModel):
    """One answered question, as submitted by the client after a quiz."""
    question: str = ""
    user_answer: ScalarText = None
    correct_answer: ScalarText = None
    is_correct: bool = False
    topic: str = "General"
    difficulty: str = "medium"
    type: str = "mcq"

    @field_validator("question", "is_correct", "topic", "difficulty", "type", mode="before")
    @classmethod
    def null_means_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class ResultsAnalysisRequest(CamelModel):
    topic: OptionalText = None
    # Optional so a missing array is answered with 400, not the generic body error.
    results: Optional[List[ResultEntry]] = None
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    topics: Optional[List[str]] = None
    pdf_analysis: Optional[Dict[str, Any]] = None


class AnalysisReport(CamelModel):
    strong_areas: List[str] = []
    weak_areas: List[str] = []
    suggestions: str


class AdvancedAnalysisReport(AnalysisReport):
    topic_scores: Dict[str, float] = {}
    difficulty_performance: Dict[str, float] = {}
    question_type_performance: Dict[str, float] = {}
    learning_path: List[str] = []
    next_steps: List[str] = []


# ── PDF analysis ─────────────────────────────────────────────────────────────

class PdfAnalysisRequest(CamelModel):
    pdf_url: OptionalText = None
    title: OptionalText = None


class PdfAnalysis(CamelModel):
    topics: List[str]
    topic_coverage: Dict[str, float]
    total_pages: int
    content_summary: str
    key_terms: List[str]
    difficulty_level: str
    content_areas: List[str]
