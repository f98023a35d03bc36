"""Optional profile enrichment with a success/fallback result branch.

Enrichers follow ``enrich(answers, scores, base, rules, session_id, options)``
and return an :class:`EnrichedProfile` wrapping the caller's ``base``.
:func:`run_enrichment` is the only place the engine calls them; any failure
there yields a fallback result carrying the pure threshold profile, so a
broken backend never aborts a session.  Either way the profile is the one
the caller synthesized with its own rules.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Protocol
import logging

from .config import SIMILARITY_SETTINGS, SYNTHESIS_RULES, SimilaritySettings, SynthesisRules, get_backend
from .similarity import find_similar
from .types import AnswerRecord, EnrichedProfile, Profile, ProfilerError, ScoreVector
from . import llm_bridge

log = logging.getLogger(__name__)

CONFIDENCE_LEVELS = ("Very High", "High", "Medium", "Low", "Very Low")
COURSE_STYLES = ("links", "parkland", "coastal", "desert", "mountain")


class EnrichmentUnavailable(ProfilerError):
    """Raised by an enricher that has nothing to add for this profile."""


class Enricher(Protocol):
    def __call__(
        self,
        answers: Mapping[str, AnswerRecord],
        scores: ScoreVector,
        base: Profile,
        rules: SynthesisRules,
        session_id: str,
        options: Mapping[str, Any],
    ) -> EnrichedProfile: ...


@dataclass
class EnrichmentResult:
    status: Literal["enhanced", "fallback", "skipped"]
    profile: Profile
    enriched: Optional[EnrichedProfile] = None
    error: Optional[str] = None

    @property
    def enhanced(self) -> bool:
        return self.status == "enhanced"


def run_enrichment(
    enricher: Optional[Enricher],
    answers: Mapping[str, AnswerRecord],
    scores: ScoreVector,
    base: Profile,
    session_id: str,
    options: Optional[Mapping[str, Any]] = None,
    rules: SynthesisRules = SYNTHESIS_RULES,
) -> EnrichmentResult:
    if enricher is None:
        return EnrichmentResult(status="skipped", profile=base)
    try:
        enriched = enricher(answers, scores, base, rules, session_id, dict(options or {}))
    except EnrichmentUnavailable as e:
        log.info("enrichment unavailable session=%s reason=%s", session_id, e)
        return EnrichmentResult(status="fallback", profile=base, error=str(e))
    except Exception as e:
        log.warning("enrichment failed session=%s err=%r; using threshold profile", session_id, e)
        return EnrichmentResult(status="fallback", profile=base, error=f"{type(e).__name__}: {e}")
    if not isinstance(enriched, EnrichedProfile):
        log.warning("enrichment returned %s session=%s; using threshold profile", type(enriched).__name__, session_id)
        return EnrichmentResult(status="fallback", profile=base, error="invalid enrichment payload")
    # the profile always comes from the caller's rules
    if enriched.base is not base:
        enriched = replace(enriched, base=base)
    return EnrichmentResult(status="enhanced", profile=base, enriched=enriched)


def confidence_label(similar: List[Dict[str, Any]]) -> str:
    count = len(similar)
    if count == 0:
        return "Very Low"
    avg = sum(float(p["similarity"]) for p in similar) / count
    if count >= 10 and avg >= 0.8: return "Very High"
    if count >= 7 and avg >= 0.75: return "High"
    if count >= 5 and avg >= 0.7: return "Medium"
    if count >= 3: return "Low"
    return "Very Low"


def _style_weights(s: ScoreVector) -> Dict[str, float]:
    return {
        "links": 1.3 if s.traditionalism >= 8 else 0.8,
        "parkland": 1.2 if s.traditionalism >= 6 else 1.0,
        "coastal": 1.4 if s.luxuryLevel >= 7 else 1.0,
        "desert": 1.2 if s.skillLevel >= 6 else 0.9,
        "mountain": 1.1 if s.amenityImportance >= 6 else 1.0,
    }


def style_suitability(style: str, s: ScoreVector) -> float:
    table = {
        "links": (s.traditionalism + s.skillLevel) / 20.0,
        "parkland": (s.traditionalism + 5.0) / 15.0,
        "coastal": (s.luxuryLevel + s.amenityImportance) / 20.0,
        "desert": (s.skillLevel + s.competitiveness) / 20.0,
        "mountain": (s.luxuryLevel + s.amenityImportance) / 20.0,
    }
    return min(1.0, table.get(style, 0.5))


def _neighbour_style(entry: Mapping[str, Any]) -> str:
    rec = (entry.get("profile") or {}).get("recommendations") or {}
    style = rec.get("course_style")
    if isinstance(style, str) and style:
        return style
    votes = (entry.get("scores") or {}).get("courseStyle") or {}
    if isinstance(votes, Mapping) and votes:
        return next(iter(votes))
    return "parkland"


def _luxury_band(luxury: float) -> str:
    if luxury <= 3: return "low"
    if luxury <= 7: return "medium"
    return "high"


class SimilarityEnricher:
    """Recommendations voted by stored profiles that score close to this one."""

    def __init__(
        self,
        profile_source: Callable[[], List[Dict[str, Any]]],
        settings: SimilaritySettings = SIMILARITY_SETTINGS,
    ):
        self.profile_source = profile_source
        self.settings = settings

    def _course_style(self, scores: ScoreVector, similar: List[Dict[str, Any]]) -> Dict[str, Any]:
        votes: Dict[str, float] = {}
        for p in similar:
            style = _neighbour_style(p)
            votes[style] = votes.get(style, 0.0) + float(p["similarity"])
        weights = _style_weights(scores)
        for style in votes:
            votes[style] *= weights.get(style, 1.0)
        ranked = [k for k, _ in sorted(votes.items(), key=lambda kv: kv[1], reverse=True)]
        return {"primary": ranked[0] if ranked else "parkland", "alternatives": ranked[1:3]}

    def _budget(self, scores: ScoreVector, similar: List[Dict[str, Any]], rules: SynthesisRules) -> Dict[str, Any]:
        votes = {"low": 0.0, "medium": 0.0, "high": 0.0}
        for p in similar:
            votes[_luxury_band(float((p.get("scores") or {}).get("luxuryLevel") or 0.0))] += float(p["similarity"])
        votes[_luxury_band(scores.luxuryLevel)] *= 1.5
        best = sorted(votes.items(), key=lambda kv: kv[1], reverse=True)[0][0]
        labels = dict(zip(("low", "medium", "high"), rules.budget_labels))
        return {"primary": labels[best], "votes": {k: round(v, 4) for k, v in votes.items()}}

    def __call__(self, answers, scores, base, rules, session_id, options) -> EnrichedProfile:
        stored = [p for p in self.profile_source() if p.get("sessionId") != session_id]
        similar = find_similar(scores.numeric(), stored, self.settings)
        if len(similar) < self.settings.min_similar:
            raise EnrichmentUnavailable(
                f"{len(similar)} similar profiles, need {self.settings.min_similar}"
            )
        avg = sum(float(p["similarity"]) for p in similar) / len(similar)
        alternatives = sorted(
            ((style, round(style_suitability(style, scores), 3)) for style in COURSE_STYLES),
            key=lambda kv: kv[1], reverse=True,
        )
        return EnrichedProfile(
            base=base,
            confidence=confidence_label(similar),
            source="similarity",
            highlights=[
                f"Recommendations based on {len(similar)} golfers with "
                f"{avg * 100:.0f}% similarity to your profile."
            ],
            alternatives={
                "courseStyles": [{"style": s, "confidence": c} for s, c in alternatives if c > 0.6][:2],
            },
            recommendations={
                "courseStyle": self._course_style(scores, similar),
                "budgetLevel": self._budget(scores, similar, rules),
                "similarProfiles": len(similar),
            },
        )


class AzureEnricher:
    """LLM-written highlights and alternatives through the Azure OpenAI bridge."""

    def __call__(self, answers, scores, base, rules, session_id, options) -> EnrichedProfile:
        data = llm_bridge.request_enrichment(answers, scores, base, session_id=session_id)
        confidence = str(data.get("confidence") or "")
        if confidence not in CONFIDENCE_LEVELS:
            raise ValueError(f"unexpected confidence label {confidence!r}")
        highlights = [str(h) for h in (data.get("highlights") or [])][:3]
        alternatives = data.get("alternatives") if isinstance(data.get("alternatives"), dict) else {}
        return EnrichedProfile(
            base=base,
            confidence=confidence,
            source="azure",
            highlights=highlights,
            alternatives=alternatives,
        )


def enricher_from_config(
    cfg: Mapping[str, Any],
    profile_source: Optional[Callable[[], List[Dict[str, Any]]]] = None,
) -> Optional[Enricher]:
    backend = get_backend(dict(cfg))
    if backend == "similarity" and profile_source is not None:
        return SimilarityEnricher(profile_source)
    if backend == "azure":
        return AzureEnricher()
    return None
