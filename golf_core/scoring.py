from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math

from .config import CATEGORY_WEIGHTS, DEFAULT_CATEGORY_WEIGHT, SCORE_MIN, SCORE_MAX
from .types import AnswerRecord, Question, ScoreVector, NUMERIC_DIMENSIONS, COURSE_STYLE

log = logging.getLogger(__name__)

# signed axis, centred at 0
UNCLAMPED_DIMENSIONS = frozenset({"genderLean"})


def round1(x: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(float(x) * 10.0 + 0.5) / 10.0


def _clamp(x: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, x))


def _is_number(v: object) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def category_weight(question: Optional[Question], weights: Mapping[str, float] = CATEGORY_WEIGHTS) -> float:
    if question is None:
        return DEFAULT_CATEGORY_WEIGHT
    return float(weights.get(question.type, DEFAULT_CATEGORY_WEIGHT))


def unknown_dimensions(answers: Mapping[str, AnswerRecord]) -> Dict[str, List[str]]:
    """Raw score keys outside the closed dimension set, per question id."""
    out: Dict[str, List[str]] = {}
    for qid in sorted(answers):
        extra = [k for k in answers[qid].raw_scores if k not in NUMERIC_DIMENSIONS and k != COURSE_STYLE]
        if extra:
            out[qid] = sorted(extra)
    return out


def aggregate(
    answers: Mapping[str, AnswerRecord],
    catalog: Iterable[Question],
    *,
    weights: Mapping[str, float] = CATEGORY_WEIGHTS,
) -> ScoreVector:
    """Weighted mean per dimension over every answer, recomputed from scratch.

    Answers are visited in question-id order so float sums and the
    courseStyle tally come out identical regardless of insertion order.
    """
    by_id = {q.id: q for q in catalog}
    contrib: Dict[str, List[Tuple[float, float]]] = {d: [] for d in NUMERIC_DIMENSIONS}
    styles: Dict[str, int] = {}

    for qid in sorted(answers):
        rec = answers[qid]
        w = category_weight(by_id.get(qid), weights)
        for dim, value in rec.raw_scores.items():
            if dim == COURSE_STYLE:
                label = str(value)
                styles[label] = styles.get(label, 0) + 1
            elif dim in contrib:
                if not _is_number(value):
                    log.warning("non-numeric score ignored question=%s dimension=%s value=%r", qid, dim, value)
                    continue
                contrib[dim].append((float(value), w))
            else:
                log.warning("unknown dimension ignored question=%s dimension=%s", qid, dim)

    out = ScoreVector(courseStyle=styles)
    for dim, pairs in contrib.items():
        if not pairs:
            continue
        total_w = sum(w for _, w in pairs)
        if total_w <= 0.0:
            continue
        mean = sum(v * w for v, w in pairs) / total_w
        if dim not in UNCLAMPED_DIMENSIONS:
            mean = _clamp(mean)
        setattr(out, dim, round1(mean))

    log.debug("aggregate answers=%d scores=%s", len(answers), out.to_dict())
    return out
