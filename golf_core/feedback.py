# golf_core/feedback.py
from __future__ import annotations
from typing import Any, Dict, Literal, Optional, get_args
from datetime import datetime, timezone
import logging

from .profile import profile_to_dict
from .types import ProfilerError

log = logging.getLogger(__name__)

Accuracy = Literal["very_accurate", "mostly_accurate", "somewhat_accurate", "not_accurate"]
ACCURACY_LEVELS: tuple[str, ...] = get_args(Accuracy)

ACCURACY_SCORES: Dict[str, float] = {
    "very_accurate": 1.0,
    "mostly_accurate": 0.8,
    "somewhat_accurate": 0.5,
    "not_accurate": 0.2,
}

WEIGHT_MIN, WEIGHT_MAX = 0.1, 2.0
CREDIBILITY_MIN, CREDIBILITY_MAX = 0.1, 1.5
QUICK_RESPONSE_MS = 3000


class FeedbackError(ProfilerError, ValueError):
    pass


def accuracy_score(accuracy: str) -> float:
    if accuracy not in ACCURACY_SCORES:
        raise FeedbackError(f"accuracy must be one of {', '.join(ACCURACY_LEVELS)}")
    return ACCURACY_SCORES[accuracy]


def feedback_weight(
    accuracy: str,
    comments: str = "",
    response_time_ms: Optional[int] = None,
    dimension_feedback: bool = False,
) -> float:
    w = accuracy_score(accuracy)
    if comments and len(comments) > 20: w *= 1.2
    if dimension_feedback: w *= 1.1
    if response_time_ms and response_time_ms < QUICK_RESPONSE_MS: w *= 0.8
    return max(WEIGHT_MIN, min(WEIGHT_MAX, w))


def credibility_score(accuracy: str, answered_count: int, comments: str = "") -> float:
    c = 1.0
    if answered_count:
        c *= min(1.2, 0.8 + answered_count * 0.1)
    # extreme ratings with no explanation
    if accuracy in ("very_accurate", "not_accurate") and len(comments or "") < 10:
        c *= 0.7
    return max(CREDIBILITY_MIN, min(CREDIBILITY_MAX, c))


def build_feedback_report(
    session,
    accuracy: str,
    helpful: bool,
    *,
    comments: str = "",
    response_time_ms: Optional[int] = None,
    dimension_feedback: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Package a feedback record against a finished session.

    Raises ``SessionStateError`` (from ``completed_triple``) while the session
    is still running and ``FeedbackError`` for an unknown accuracy value.
    """

    answers, scores, profile = session.completed_triple()
    score = accuracy_score(accuracy)
    report = {
        "sessionId": session.session_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "accuracy": accuracy,
        "accuracyScore": score,
        "helpful": bool(helpful),
        "comments": comments or "",
        "responseTimeMs": response_time_ms,
        "dimensionFeedback": dict(dimension_feedback or {}),
        "feedbackWeight": round(feedback_weight(accuracy, comments, response_time_ms, bool(dimension_feedback)), 4),
        "credibilityScore": round(credibility_score(accuracy, len(answers), comments), 4),
        "enhanced": bool(getattr(session, "enhanced", False)),
        "questionSequence": list(answers),
        "answers": [rec.to_dict() for rec in answers.values()],
        "scores": scores.to_dict(),
        "profile": profile_to_dict(profile),
    }
    log.info("feedback packaged session=%s accuracy=%s helpful=%s weight=%.2f",
             session.session_id, accuracy, report["helpful"], report["feedbackWeight"])
    return report
