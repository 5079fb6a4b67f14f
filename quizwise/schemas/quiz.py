from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from quizwise.schemas.common import CamelModel, OptionalText


class QuestionType(str, Enum):
    mcq = "mcq"
    fill_in_the_blank = "fill_in_the_blank"
    true_false = "true_false"
    short_answer = "short_answer"


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


# ── Questions ────────────────────────────────────────────────────────────────

class LegacyQuestion(BaseModel):
    """Simple MCQ contract: exactly 4 options, answer is one of them."""
    question: str
    options: List[str]
    answer: str


class Question(BaseModel):
    """A typed quiz question as returned by the lenient endpoints."""
    question: str
    type: QuestionType
    difficulty: Difficulty = Difficulty.medium
    topic: str = "General"
    options: List[str] = []
    answer: str
    explanation: str


class AutoFix(BaseModel):
    """A non-fatal correction applied to a model-generated question."""
    index: int
    field: str
    original: Optional[str] = None
    corrected: str
    reason: str


# ── Requests ─────────────────────────────────────────────────────────────────

class QuizRequest(CamelModel):
    """Body for /api/generate-quiz. At least one of topic / pdf_url."""
    topic: OptionalText = None
    pdf_url: OptionalText = None
    num_questions: int = Field(default=10, ge=1)


class AdvancedQuizRequest(QuizRequest):
    question_types: Optional[Dict[QuestionType, int]] = None
    difficulty_distribution: Optional[Dict[Difficulty, int]] = None
    topic_distribution: Optional[Dict[str, int]] = None


class FastQuizRequest(CamelModel):
    pdf_url: OptionalText = None
    topic: OptionalText = None


class TopicQuizRequest(CamelModel):
    topic: OptionalText = None


# ── Responses ────────────────────────────────────────────────────────────────

class QuizResponse(BaseModel):
    questions: List[LegacyQuestion]


class GeneratedQuizResponse(CamelModel):
    success: bool = True
    questions: List[Question]
    generation_time: int = Field(..., description="Milliseconds elapsed")
    auto_fixed: int = 0
