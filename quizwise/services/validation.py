"""
QuizWise — Response Validation
==============================
Turns raw model text into validated questions.

  1. strip_code_fences      ```json ... ``` wrapper removed (pure, idempotent)
  2. parse_json_response    strict json.loads, no recovery of broken syntax
  3. extract_questions      top-level object with a "questions" array
  4. QuestionValidator      per-question contract, one of two policies:
       StrictValidator   all-or-nothing, no repair (legacy MCQ endpoint)
       LenientValidator  best-effort auto-repair (advanced / fast endpoints)
"""

import json
import re
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from quizwise.core.errors import (
    IncompleteQuestionError,
    MalformedResponseError,
    OptionCountError,
    SchemaError,
    ValidationError,
)
from quizwise.schemas.quiz import AutoFix, Difficulty, LegacyQuestion, Question, QuestionType

logger = logging.getLogger(__name__)

TRUE_FALSE_OPTIONS = ["True", "False"]
DEFAULT_EXPLANATION = "No explanation provided."
DEFAULT_TOPIC = "General"
DEFAULT_DIFFICULTY = Difficulty.medium.value
OPTION_COUNT = 4

_LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TEXT → JSON
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang / trailing ``` pair and surrounding whitespace."""
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_response(raw_text: str) -> Any:
    cleaned = strip_code_fences(raw_text or "")
    if not cleaned:
        raise MalformedResponseError("Empty AI response received", raw_text=raw_text or "")

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"[VALIDATE] JSON parse failed ({e}). Raw response: {raw_text}")
        raise MalformedResponseError("Invalid JSON response from AI", raw_text=raw_text) from e


def extract_questions(payload: Any) -> List[Any]:
    if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
        raise SchemaError("Invalid response format: missing questions array")
    return payload["questions"]


def parse_analysis_response(raw_text: str) -> Dict[str, Any]:
    """Parse an analysis reply. Only the top-level shape is enforced."""
    payload = parse_json_response(raw_text)
    if not isinstance(payload, dict):
        raise SchemaError("Invalid response format: expected a JSON object")
    return payload


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# FIELD HELPERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _text(value: Any) -> str:
    """Scalar → trimmed string; None and containers → ''."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _options(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [_text(o) for o in value]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# VALIDATORS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class ValidatedBatch:
    questions: List[BaseModel]
    fixes: List[AutoFix] = field(default_factory=list)


class QuestionValidator(ABC):
    """Validates a batch index by index, stopping at the first hard failure."""

    name = "base"

    def validate(self, raw_questions: Sequence[Any]) -> ValidatedBatch:
        batch = ValidatedBatch(questions=[])
        for index, raw in enumerate(raw_questions, start=1):
            if not isinstance(raw, dict):
                raise IncompleteQuestionError(f"Question {index} is not an object", index=index)
            batch.questions.append(self.validate_question(raw, index, batch.fixes))
        return batch

    @abstractmethod
    def validate_question(self, raw: Dict[str, Any], index: int, fixes: List[AutoFix]) -> BaseModel:
        ...


class StrictValidator(QuestionValidator):
    """Legacy simple-MCQ contract. Any inconsistency rejects the whole batch."""

    name = "strict"

    def validate_question(self, raw: Dict[str, Any], index: int, fixes: List[AutoFix]) -> LegacyQuestion:
        question = raw.get("question")
        options = raw.get("options")
        answer = raw.get("answer")

        if not question or not options or not answer:
            raise IncompleteQuestionError(
                f"Question {index} is missing required fields", index=index
            )
        if not isinstance(options, list) or len(options) != OPTION_COUNT:
            raise OptionCountError(
                f"Question {index} must have exactly {OPTION_COUNT} options", index=index
            )
        if answer not in options:
            raise ValidationError(
                f"Question {index}: answer must match one of the options", index=index
            )

        return LegacyQuestion(
            question=str(question),
            options=[str(o) for o in options],
            answer=str(answer),
        )


class LenientValidator(QuestionValidator):
    """
    Best-effort contract for typed questions.

    Answer/option mismatches are repaired, never rejected: case-insensitive
    match first, then substring match in either direction, then the first
    option. An unmatched true/false answer becomes "True". These fallbacks
    lower correctness on purpose and every one is logged as an AutoFix.

    ``enforce_option_count=False`` is the fast-endpoint policy: mcq and
    fill-in-the-blank questions only fail when options are missing entirely.
    """

    name = "lenient"

    def __init__(self, enforce_option_count: bool = True):
        self.enforce_option_count = enforce_option_count

    def validate_question(self, raw: Dict[str, Any], index: int, fixes: List[AutoFix]) -> Question:
        question = _text(raw.get("question"))
        answer = _text(raw.get("answer"))
        qtype = _text(raw.get("type")).lower()

        if not question or not answer or not qtype:
            raise IncompleteQuestionError(
                f"Question {index} is missing required fields", index=index
            )
        if qtype not in {t.value for t in QuestionType}:
            raise ValidationError(
                f"Question {index} has unsupported type '{qtype}'", index=index
            )

        if qtype == QuestionType.true_false.value:
            options = list(TRUE_FALSE_OPTIONS)
            answer = self._normalize_true_false(answer, index, fixes)
        elif qtype == QuestionType.short_answer.value:
            options = []
        else:
            options = self._choice_options(raw.get("options"), index)
            answer = self._repair_choice_answer(answer, options, index, fixes)

        difficulty = _text(raw.get("difficulty")).lower()
        if difficulty not in {d.value for d in Difficulty}:
            difficulty = DEFAULT_DIFFICULTY

        return Question(
            question=question,
            type=qtype,
            difficulty=difficulty,
            topic=_text(raw.get("topic")) or DEFAULT_TOPIC,
            options=options,
            answer=answer,
            explanation=_text(raw.get("explanation")) or DEFAULT_EXPLANATION,
        )

    def _choice_options(self, value: Any, index: int) -> List[str]:
        options = _options(value)
        if not options:
            raise OptionCountError(f"Question {index} has no options", index=index)
        if self.enforce_option_count and len(options) != OPTION_COUNT:
            raise OptionCountError(
                f"Question {index} must have exactly {OPTION_COUNT} options", index=index
            )
        return options

    @staticmethod
    def _normalize_true_false(answer: str, index: int, fixes: List[AutoFix]) -> str:
        lowered = answer.lower()
        if "true" in lowered:
            normalized = "True"
        elif "false" in lowered:
            normalized = "False"
        else:
            normalized = "True"
            fixes.append(_record_fix(index, answer, normalized, "unrecognized true/false answer"))
        return normalized

    @staticmethod
    def _repair_choice_answer(answer: str, options: List[str], index: int, fixes: List[AutoFix]) -> str:
        lowered = answer.lower()

        for option in options:
            if option.lower() == lowered:
                return option

        for option in options:
            candidate = option.lower()
            if candidate and (lowered in candidate or candidate in lowered):
                fixes.append(_record_fix(index, answer, option, "substring match"))
                return option

        fixes.append(_record_fix(index, answer, options[0], "no matching option, used first"))
        return options[0]


def _record_fix(index: int, original: str, corrected: str, reason: str) -> AutoFix:
    logger.warning(
        f"[VALIDATE] Question {index}: answer '{original}' → '{corrected}' ({reason})"
    )
    return AutoFix(index=index, field="answer", original=original, corrected=corrected, reason=reason)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PIPELINE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def validate_quiz_response(raw_text: str, validator: QuestionValidator) -> ValidatedBatch:
    questions = extract_questions(parse_json_response(raw_text))
    batch = validator.validate(questions)
    logger.info(
        f"[VALIDATE] ✓ {len(batch.questions)} questions accepted ({validator.name}, "
        f"{len(batch.fixes)} auto-fixes)"
    )
    return batch
