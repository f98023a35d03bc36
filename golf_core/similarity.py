# golf_core/similarity.py
from __future__ import annotations
from typing import Any, Dict, List, Mapping
import math

from .config import SIMILARITY_SETTINGS, SimilaritySettings


def _val(scores: Mapping[str, Any], dim: str) -> float:
    try:
        return float(scores.get(dim) or 0.0)
    except (TypeError, ValueError):
        return 0.0


def weighted_euclidean_similarity(
    a: Mapping[str, Any],
    b: Mapping[str, Any],
    settings: SimilaritySettings = SIMILARITY_SETTINGS,
) -> float:
    """1 - normalized weighted distance over the 0..10 similarity dimensions."""

    total_w = 0.0
    acc = 0.0
    for dim, w in settings.dimension_weights.items():
        diff = (_val(a, dim) - _val(b, dim)) / 10.0
        acc += w * diff * diff
        total_w += w
    if total_w <= 0.0:
        return 0.0
    return max(0.0, 1.0 - math.sqrt(acc / total_w))


def find_similar(
    target: Mapping[str, Any],
    stored: List[Dict[str, Any]],
    settings: SimilaritySettings = SIMILARITY_SETTINGS,
) -> List[Dict[str, Any]]:
    """Stored profiles at or above the threshold, most similar first.

    Each stored entry needs a "scores" mapping; the returned copies carry
    an extra "similarity" key.
    """

    out: List[Dict[str, Any]] = []
    for entry in stored:
        scores = entry.get("scores")
        if not isinstance(scores, Mapping):
            continue
        sim = weighted_euclidean_similarity(target, scores, settings)
        if sim >= settings.threshold:
            out.append({**entry, "similarity": round(sim, 4)})
    out.sort(key=lambda e: e["similarity"], reverse=True)
    return out[: settings.max_similar]
