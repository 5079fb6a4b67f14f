"""
QuizWise — Prompt Builder
=========================
Pure, deterministic prompt rendering. Identical inputs always render
identical text: no timestamps, no randomness, mapping order preserved.
"""

import json
from typing import Dict, List, Mapping, Optional, Sequence

from quizwise.schemas.analysis import ResultEntry
from quizwise.services.aggregator import PerformanceBreakdown, score_percent

BLANK_MARKER = "_____"

FAST_QUESTION_MIX: Dict[str, int] = {
    "mcq": 6,
    "fill_in_the_blank": 4,
    "true_false": 3,
    "short_answer": 2,
}
FAST_QUESTION_COUNT = sum(FAST_QUESTION_MIX.values())

_JSON_ONLY = "Return only valid JSON, no additional text and no markdown code fences."


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# LEGACY MCQ PROMPTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_MCQ_FORMAT = (
    'Format your response as a JSON object with a "questions" array. Each question should have:\n'
    "- question: the question text\n"
    "- options: array of 4 possible answers\n"
    "- answer: the correct answer (must match exactly one of the options)\n"
)


def build_quiz_prompt(num_questions: int, topic: Optional[str] = None, has_document: bool = False) -> str:
    """Simple MCQ prompt: document + topic, document only, or topic only."""
    if not topic and not has_document:
        raise ValueError("A topic or a document is required")

    if has_document and topic:
        opening = (
            f"Create exactly {num_questions} multiple choice questions based on the content "
            f'of this PDF document and the topic "{topic}".'
        )
        focus = "Make questions challenging but fair. Focus on key concepts and important details."
    elif has_document:
        opening = (
            f"Analyze this PDF document and create exactly {num_questions} multiple choice "
            "questions based on its content."
        )
        focus = (
            "Make questions that test understanding of the key concepts and important "
            "information in the document."
        )
    else:
        opening = f'Create exactly {num_questions} multiple choice questions about "{topic}".'
        focus = (
            "Cover different aspects and difficulty levels of the topic. "
            "Make questions educational and challenging."
        )

    return f"{opening}\n\n{_MCQ_FORMAT}\n{focus}\n\n{_JSON_ONLY}"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TYPED QUESTION PROMPTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_TYPED_FORMAT = (
    'Format your response as a JSON object with a "questions" array. Each question should have:\n'
    "- question: the question text\n"
    '- type: one of "mcq", "fill_in_the_blank", "true_false", "short_answer"\n'
    '- difficulty: one of "easy", "medium", "hard"\n'
    "- topic: the topic the question covers\n"
    "- options: array of possible answers (see rules per type)\n"
    "- answer: the correct answer\n"
    "- explanation: one or two sentences explaining the correct answer\n\n"
    "Rules per type:\n"
    "- mcq: exactly 4 options, answer must match exactly one of the options\n"
    f"- fill_in_the_blank: the question contains the blank marker {BLANK_MARKER}, "
    "exactly 4 word or phrase options, answer must match exactly one of the options\n"
    '- true_false: options must be ["True", "False"], answer is "True" or "False"\n'
    "- short_answer: options must be an empty array, answer is a short model answer\n"
)


def _render_mix(mix: Mapping[str, int]) -> str:
    # Enum keys render by value.
    return "\n".join(f"- {count} {getattr(key, 'value', key)}" for key, count in mix.items())


def _source_line(topic: Optional[str], has_document: bool) -> str:
    if has_document and topic:
        return f'based on the content of this PDF document, focusing on the topic "{topic}"'
    if has_document:
        return "based on the content of this PDF document"
    return f'about "{topic}"'


def build_advanced_quiz_prompt(
    num_questions: int,
    topic: Optional[str] = None,
    has_document: bool = False,
    question_types: Optional[Mapping[str, int]] = None,
    difficulty_distribution: Optional[Mapping[str, int]] = None,
    topic_distribution: Optional[Mapping[str, int]] = None,
) -> str:
    if not topic and not has_document:
        raise ValueError("A topic or a document is required")

    sections: List[str] = [
        f"Create exactly {num_questions} quiz questions {_source_line(topic, has_document)}."
    ]

    if question_types:
        sections.append("Question type distribution:\n" + _render_mix(question_types))
    else:
        sections.append(f"All {num_questions} questions must be of type mcq.")

    if difficulty_distribution:
        sections.append("Difficulty distribution:\n" + _render_mix(difficulty_distribution))
    else:
        sections.append("Use a balanced mix of easy, medium and hard questions.")

    if topic_distribution:
        sections.append("Topic distribution:\n" + _render_mix(topic_distribution))

    sections.append(_TYPED_FORMAT)
    sections.append(
        f"The questions array must contain exactly {num_questions} questions. {_JSON_ONLY}"
    )
    return "\n\n".join(sections)


def _fast_prompt(source: str) -> str:
    return (
        f"Create exactly {FAST_QUESTION_COUNT} quiz questions {source}.\n\n"
        "Question type distribution:\n"
        f"{_render_mix(FAST_QUESTION_MIX)}\n\n"
        f"{_TYPED_FORMAT}\n"
        "Keep questions and explanations short.\n"
        f"The questions array must contain exactly {FAST_QUESTION_COUNT} questions. {_JSON_ONLY}"
    )


def build_fast_quiz_prompt(topic: Optional[str] = None) -> str:
    """Fixed-mix prompt for a document attached to the call."""
    return _fast_prompt(_source_line(topic, has_document=True))


def build_topic_quiz_prompt(topic: str) -> str:
    """Fixed-mix prompt with no document."""
    return _fast_prompt(_source_line(topic, has_document=False))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ANALYSIS PROMPTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def build_pdf_analysis_prompt(title: Optional[str] = None) -> str:
    label = f' titled "{title}"' if title else ""
    return (
        f"Analyze this PDF document{label} for quiz preparation.\n\n"
        "Format your response as a JSON object:\n"
        "{\n"
        '  "topics": ["topic1", "topic2", ...],\n'
        '  "topicCoverage": {"topic1": 40, "topic2": 60},\n'
        '  "totalPages": 12,\n'
        '  "contentSummary": "A short summary of the document",\n'
        '  "keyTerms": ["term1", "term2", ...],\n'
        '  "difficultyLevel": "easy" | "medium" | "hard",\n'
        '  "contentAreas": ["area1", "area2", ...]\n'
        "}\n\n"
        "topicCoverage values are percentages of the document and should sum to 100.\n\n"
        f"{_JSON_ONLY}"
    )


def _render_answers(entries: Sequence[ResultEntry], with_correct: bool) -> str:
    lines = []
    for i, r in enumerate(entries, start=1):
        lines.append(f"{i}. Question: {r.question}")
        lines.append(f"   Your Answer: {r.user_answer}")
        if with_correct:
            lines.append(f"   Correct Answer: {r.correct_answer}")
    return "\n".join(lines) if lines else "(none)"


def _performance_header(
    topic: Optional[str], total_questions: int, correct_answers: int, results: Sequence[ResultEntry]
) -> str:
    incorrect = [r for r in results if not r.is_correct]
    correct = [r for r in results if r.is_correct]
    return (
        f"Topic: {topic or 'General'}\n"
        f"Total Questions: {total_questions}\n"
        f"Correct Answers: {correct_answers}\n"
        f"Score: {score_percent(correct_answers, total_questions)}%\n\n"
        f"Incorrect Answers:\n{_render_answers(incorrect, with_correct=True)}\n\n"
        f"Correct Answers:\n{_render_answers(correct, with_correct=False)}"
    )


def build_results_analysis_prompt(
    topic: Optional[str],
    total_questions: int,
    correct_answers: int,
    results: Sequence[ResultEntry],
) -> str:
    return (
        "Analyze this quiz performance and provide personalized feedback.\n\n"
        f"{_performance_header(topic, total_questions, correct_answers, results)}\n\n"
        "Based on this performance, provide:\n"
        "1. Strong Areas: topics/concepts the student understood well (based on correct answers)\n"
        "2. Weak Areas: topics/concepts that need improvement (based on incorrect answers)\n"
        "3. Suggestions: specific, actionable study recommendations\n\n"
        "Format your response as a JSON object:\n"
        "{\n"
        '  "strongAreas": ["area1", "area2", ...],\n'
        '  "weakAreas": ["area1", "area2", ...],\n'
        '  "suggestions": "Detailed study suggestions and recommendations"\n'
        "}\n\n"
        "Be specific and helpful. Focus on the actual content and concepts.\n\n"
        f"{_JSON_ONLY}"
    )


def build_advanced_results_prompt(
    topic: Optional[str],
    total_questions: int,
    correct_answers: int,
    results: Sequence[ResultEntry],
    breakdown: PerformanceBreakdown,
    pdf_analysis: Optional[Mapping] = None,
) -> str:
    """The precomputed breakdown is embedded verbatim; the model must not re-derive it."""
    stats = json.dumps(breakdown.as_dict(), indent=2)
    document = ""
    if pdf_analysis:
        document = (
            "Source document analysis:\n"
            f"{json.dumps(dict(pdf_analysis), indent=2, ensure_ascii=False)}\n\n"
        )

    return (
        "Analyze this quiz performance in depth and build a personalized learning plan.\n\n"
        f"{_performance_header(topic, total_questions, correct_answers, results)}\n\n"
        "Precomputed performance statistics (ratios of correct answers, 0 to 1). "
        "Treat these numbers as exact:\n"
        f"{stats}\n\n"
        f"{document}"
        "Format your response as a JSON object:\n"
        "{\n"
        '  "strongAreas": ["area1", ...],\n'
        '  "weakAreas": ["area1", ...],\n'
        '  "suggestions": "Detailed study suggestions",\n'
        '  "learningPath": ["step1", "step2", ...],\n'
        '  "nextSteps": ["action1", "action2", ...]\n'
        "}\n\n"
        f"{_JSON_ONLY}"
    )
