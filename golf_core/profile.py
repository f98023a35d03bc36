# golf_core/profile.py
from __future__ import annotations
from dataclasses import asdict
from typing import Dict, List, Tuple
import logging

from .config import SYNTHESIS_RULES, SynthesisRules
from .types import Demographics, Profile, Recommendations, ScoreVector

log = logging.getLogger(__name__)


def _band(value: float, bands: Tuple[Tuple[float, str], ...], top: str) -> str:
    for upper, label in bands:
        if value <= upper:
            return label
    return top


def _holds(value: float, op: str, threshold: float) -> bool:
    if op == ">=":
        return value >= threshold
    if op == "<=":
        return value <= threshold
    raise ValueError(f"unsupported comparison {op!r}")


def skill_label(skill: float, rules: SynthesisRules = SYNTHESIS_RULES) -> str:
    return _band(skill, rules.skill_bands, rules.skill_top_label)


def personality_archetype(scores: ScoreVector, rules: SynthesisRules = SYNTHESIS_RULES) -> str:
    for label, conditions in rules.archetypes:
        if all(_holds(scores.get(dim), op, thr) for dim, op, thr in conditions):
            return label
    return rules.default_archetype


def preference_list(scores: ScoreVector, rules: SynthesisRules = SYNTHESIS_RULES) -> List[str]:
    return [text for dim, thr, text in rules.preferences if scores.get(dim) >= thr]


def majority_style(votes: Dict[str, int]) -> str | None:
    """Most voted label; ties go to the label counted first."""
    if not votes:
        return None
    return sorted(votes.items(), key=lambda kv: kv[1], reverse=True)[0][0]


def course_style(scores: ScoreVector, rules: SynthesisRules = SYNTHESIS_RULES) -> str:
    style = majority_style(scores.courseStyle)
    if style is not None:
        return style
    if scores.traditionalism >= rules.style_fallback_traditionalism:
        return rules.style_fallback_classic
    return rules.style_fallback_default


def budget_level(luxury: float, rules: SynthesisRules = SYNTHESIS_RULES) -> str:
    value, mid, premium = rules.budget_labels
    if luxury >= rules.budget_premium:
        return premium
    if luxury >= rules.budget_mid:
        return mid
    return value


def _amenities(scores: ScoreVector, rules: SynthesisRules) -> List[str]:
    if scores.amenityImportance >= rules.amenity_high:
        return list(rules.amenities_full)
    if scores.socialness >= rules.social_high:
        return list(rules.amenities_social)
    return list(rules.amenities_basic)


def _lodging(scores: ScoreVector, rules: SynthesisRules) -> str:
    if scores.luxuryLevel >= rules.luxury_high:
        return rules.lodging_luxury
    if scores.socialness >= rules.social_high:
        return rules.lodging_social
    return rules.lodging_default


def _companions(socialness: float, rules: SynthesisRules) -> str:
    if socialness >= rules.companions_large: return "Large groups or events"
    if socialness >= rules.companions_foursome: return "Foursomes with friends"
    return "Solo or small groups"


def _equipment(scores: ScoreVector, rules: SynthesisRules) -> List[str]:
    out: List[str] = []
    if scores.skillLevel <= rules.equipment_skill_max: out.append("Game improvement clubs")
    if scores.competitiveness >= rules.equipment_competitive: out.append("Performance tracking tools")
    if scores.luxuryLevel >= rules.equipment_luxury: out.append("Premium equipment")
    return out


def preference_style(gender_lean: float, rules: SynthesisRules = SYNTHESIS_RULES) -> str:
    if abs(gender_lean) <= rules.gender_neutral_band:
        return "Neutral preferences"
    if gender_lean > 0:
        return "More traditional masculine preferences"
    return "More contemporary/feminine preferences"


def recommendations(scores: ScoreVector, rules: SynthesisRules = SYNTHESIS_RULES) -> Recommendations:
    return Recommendations(
        course_style=course_style(scores, rules),
        budget_level=budget_level(scores.luxuryLevel, rules),
        amenities=_amenities(scores, rules),
        lodging=_lodging(scores, rules),
        companions=_companions(scores.socialness, rules),
        equipment=_equipment(scores, rules),
    )


def synthesize(scores: ScoreVector, rules: SynthesisRules = SYNTHESIS_RULES) -> Profile:
    """Threshold-rule profile; a pure function of the score vector."""

    profile = Profile(
        skill_label=skill_label(scores.skillLevel, rules),
        skill_numeric=scores.skillLevel,
        personality=personality_archetype(scores, rules),
        preferences=preference_list(scores, rules),
        recommendations=recommendations(scores, rules),
        demographics=Demographics(
            estimated_age=_band(scores.ageGeneration, rules.age_bands, rules.age_top_band),
            preference_style=preference_style(scores.genderLean, rules),
        ),
    )
    log.debug("synthesize skill=%s personality=%s style=%s", profile.skill_label,
              profile.personality, profile.recommendations.course_style)
    return profile


def profile_to_dict(profile: Profile) -> Dict[str, object]:
    return asdict(profile)
