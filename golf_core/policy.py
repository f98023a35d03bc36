# golf_core/policy.py
from __future__ import annotations

from typing import List, Mapping, Optional, Protocol, Sequence
import logging

from .config import CONTINUATION_RULES, ContinuationRules
from .types import AnswerRecord, Question, ScoreVector, SelectionContext, NUMERIC_DIMENSIONS

log = logging.getLogger(__name__)


def should_continue(
    scores: ScoreVector,
    answered_count: int,
    rules: ContinuationRules = CONTINUATION_RULES,
) -> bool:
    """Ask more only while key axes are still ambiguous, within [min, max] questions."""

    if answered_count >= rules.max_questions:
        return False
    if answered_count < rules.min_questions:
        return True
    for dim in rules.ambiguity_dimensions:
        if abs(scores.get(dim) - rules.midpoint) > rules.uncertainty_threshold:
            return True
    return any(scores.get(dim) == 0 for dim in rules.required_dimensions)


class QuestionSelector(Protocol):
    def __call__(
        self,
        answers: Mapping[str, AnswerRecord],
        scores: ScoreVector,
        catalog: Sequence[Question],
        answered_count: int,
        context: SelectionContext,
    ) -> Optional[Question]: ...


class PrioritySelector:
    """Starter first, then the unanswered question blending priority and uncertainty."""

    def __init__(self, priority_weight: float = 0.3, uncertainty_weight: float = 0.7, midpoint: float = 5.0):
        self.priority_weight = priority_weight
        self.uncertainty_weight = uncertainty_weight
        self.midpoint = midpoint

    def _uncertainty(self, question: Question, scores: ScoreVector) -> float:
        if not question.options:
            return 0.0
        dims = [d for d in question.options[0].scores if d in NUMERIC_DIMENSIONS]
        if not dims:
            return 0.0
        spread = sum(abs(scores.get(d) - self.midpoint) for d in dims) / len(dims)
        return spread / self.midpoint

    def score(self, question: Question, scores: ScoreVector) -> float:
        return (
            self.priority_weight * (question.priority / 10.0)
            + self.uncertainty_weight * self._uncertainty(question, scores)
        )

    def __call__(self, answers, scores, catalog, answered_count, context) -> Optional[Question]:
        if not catalog:
            return None
        unanswered: List[Question] = [q for q in catalog if q.id not in answers]
        if not unanswered:
            return None
        if answered_count == 0:
            starter = next((q for q in unanswered if q.type == "starter"), None)
            if starter is not None:
                return starter
        ranked = sorted(unanswered, key=lambda q: (-round(self.score(q, scores), 9), q.id))
        pick = ranked[0]
        log.debug("selector step=%d pick=%s score=%.4f", answered_count, pick.id, self.score(pick, scores))
        return pick
