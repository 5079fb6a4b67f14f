import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from quizwise.schemas.analysis import ResultEntry
from quizwise.schemas.quiz import Difficulty, QuestionType

logger = logging.getLogger(__name__)

DIFFICULTIES = [d.value for d in Difficulty]
QUESTION_TYPES = [t.value for t in QuestionType]


@dataclass
class PerformanceBreakdown:
    """Correctness ratios in [0, 1] per topic, difficulty and question type."""
    topic_scores: Dict[str, float] = field(default_factory=dict)
    difficulty_performance: Dict[str, float] = field(default_factory=dict)
    question_type_performance: Dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "topicScores": self.topic_scores,
            "difficultyPerformance": self.difficulty_performance,
            "questionTypePerformance": self.question_type_performance,
        }


def ratio(correct: int, total: int) -> float:
    """correct / total, defined as 0.0 for an empty category."""
    if total <= 0:
        return 0.0
    return correct / total


def score_percent(correct: int, total: int) -> int:
    return round(ratio(correct, total) * 100)


def _ratios_by(
    results: Sequence[ResultEntry],
    keys: Iterable[str],
    key_of: Callable[[ResultEntry], str],
) -> Dict[str, float]:
    scores: Dict[str, float] = {}
    for key in keys:
        matching = [r for r in results if key_of(r) == key]
        scores[key] = ratio(sum(1 for r in matching if r.is_correct), len(matching))
    return scores


def aggregate_results(
    results: Sequence[ResultEntry],
    topics: Optional[Sequence[str]] = None,
) -> PerformanceBreakdown:
    """
    Aggregate a submitted result set.

    Topic keys are the known ``topics`` in order, followed by any other topic
    that appears in ``results``. Difficulty and type keys are always the full
    fixed sets, so an unseen category reports 0.0.
    """
    topic_keys: List[str] = []
    for t in list(topics or []) + [r.topic for r in results]:
        if t not in topic_keys:
            topic_keys.append(t)

    breakdown = PerformanceBreakdown(
        topic_scores=_ratios_by(results, topic_keys, lambda r: r.topic),
        difficulty_performance=_ratios_by(results, DIFFICULTIES, lambda r: r.difficulty.lower()),
        question_type_performance=_ratios_by(results, QUESTION_TYPES, lambda r: r.type.lower()),
    )
    logger.info(
        f"[ANALYSIS] Aggregated {len(results)} results over {len(topic_keys)} topics"
    )
    return breakdown
