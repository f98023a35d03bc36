from __future__ import annotations
import os, json, pathlib
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


DEFAULT_CATEGORY_WEIGHT: float = 1.0
CATEGORY_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "starter": 1.2,
    "core": 1.5,
    "skill_assessment": 1.8,
    "social": 1.3,
    "lifestyle": 1.0,
    "knowledge": 1.1,
    "personality": 1.4,
    "preparation": 1.0,
})

SCORE_MIN: float = 0.0
SCORE_MAX: float = 10.0

MIN_QUESTIONS: int = 5
MAX_QUESTIONS: int = 7


@dataclass(frozen=True)
class ContinuationRules:
    min_questions: int = MIN_QUESTIONS
    max_questions: int = MAX_QUESTIONS
    midpoint: float = 5.0
    uncertainty_threshold: float = 2.0
    ambiguity_dimensions: tuple[str, ...] = ("skillLevel", "luxuryLevel")
    required_dimensions: tuple[str, ...] = ("amenityImportance",)


@dataclass(frozen=True)
class SynthesisRules:
    # (inclusive upper bound, label); values above the last bound get skill_top_label
    skill_bands: tuple[tuple[float, str], ...] = (
        (2.0, "New to Golf"),
        (4.0, "Recreational Player"),
        (6.0, "Regular Golfer"),
        (8.0, "Serious Player"),
    )
    skill_top_label: str = "Advanced Golfer"
    # first match wins; each condition is (dimension, ">=" | "<=", threshold)
    archetypes: tuple[tuple[str, tuple[tuple[str, str, float], ...]], ...] = (
        ("Social & Fun-Focused", (("socialness", ">=", 7.0), ("competitiveness", "<=", 4.0))),
        ("Competitive Traditionalist", (("competitiveness", ">=", 7.0), ("traditionalism", ">=", 6.0))),
        ("Social Luxury Seeker", (("socialness", ">=", 7.0), ("luxuryLevel", ">=", 6.0))),
        ("Peaceful Solo Player", (("competitiveness", "<=", 3.0), ("socialness", "<=", 4.0))),
        ("Golf Purist", (("traditionalism", ">=", 8.0),)),
    )
    default_archetype: str = "Balanced Enthusiast"
    preferences: tuple[tuple[str, float, str], ...] = (
        ("amenityImportance", 6.0, "Values practice facilities & amenities"),
        ("luxuryLevel", 7.0, "Prefers upscale experiences"),
        ("socialness", 7.0, "Enjoys group golf & social aspects"),
        ("competitiveness", 7.0, "Competitive & score-focused"),
        ("traditionalism", 7.0, "Appreciates golf history & tradition"),
    )
    style_fallback_traditionalism: float = 7.0
    style_fallback_classic: str = "Classic parkland"
    style_fallback_default: str = "Resort-style"
    budget_premium: float = 7.0
    budget_mid: float = 4.0
    budget_labels: tuple[str, str, str] = ("Value ($25-50)", "Mid-range ($50-100)", "Premium ($100+)")
    amenity_high: float = 6.0
    social_high: float = 7.0
    luxury_high: float = 7.0
    amenities_full: tuple[str, ...] = ("Driving range", "Practice greens", "Pro shop", "Dining")
    amenities_social: tuple[str, ...] = ("Bar/restaurant", "Event spaces")
    amenities_basic: tuple[str, ...] = ("Basic facilities",)
    lodging_luxury: str = "Resort or boutique hotel"
    lodging_social: str = "Hotel with social areas"
    lodging_default: str = "Comfortable, convenient location"
    companions_large: float = 8.0
    companions_foursome: float = 5.0
    equipment_skill_max: float = 4.0
    equipment_competitive: float = 7.0
    equipment_luxury: float = 7.0
    age_bands: tuple[tuple[float, str], ...] = ((3.0, "25-40"), (6.0, "35-55"))
    age_top_band: str = "45-65"
    gender_neutral_band: float = 1.0


def _default_similarity_weights() -> Mapping[str, float]:
    return MappingProxyType({
        "skillLevel": 1.5,
        "socialness": 1.2,
        "traditionalism": 1.0,
        "luxuryLevel": 1.3,
        "competitiveness": 1.0,
        "ageGeneration": 0.6,
        "amenityImportance": 1.0,
        "pace": 0.8,
    })


@dataclass(frozen=True)
class SimilaritySettings:
    threshold: float = 0.7
    min_similar: int = 3
    max_similar: int = 10
    dimension_weights: Mapping[str, float] = field(default_factory=_default_similarity_weights)


CONTINUATION_RULES = ContinuationRules()
SYNTHESIS_RULES = SynthesisRules()
SIMILARITY_SETTINGS = SimilaritySettings()

ENRICHMENT_BACKEND: str = "none"
AUDIT_EXPORT_ENABLED: bool = True
# // env overrides for staging/ops; defaults remain conservative.
MIN_QUESTIONS = _env_int("MIN_QUESTIONS", MIN_QUESTIONS)
MAX_QUESTIONS = max(MIN_QUESTIONS, _env_int("MAX_QUESTIONS", MAX_QUESTIONS))
CONTINUATION_RULES = ContinuationRules(min_questions=MIN_QUESTIONS, max_questions=MAX_QUESTIONS)
SIMILARITY_SETTINGS = SimilaritySettings(
    threshold=_env_float("SIMILARITY_THRESHOLD", SIMILARITY_SETTINGS.threshold),
)
ENRICHMENT_BACKEND = (os.getenv("ENRICHMENT_BACKEND") or ENRICHMENT_BACKEND).strip().lower()
AUDIT_EXPORT_ENABLED = _env_bool("AUDIT_EXPORT_ENABLED", AUDIT_EXPORT_ENABLED)


def _env_true(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1","true","yes","on")
def load_config() -> dict:
    cfg = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError): cfg = {}
    e = os.environ
    if e.get("ENRICHMENT_BACKEND"): cfg["ENRICHMENT_BACKEND"] = e.get("ENRICHMENT_BACKEND")
    if e.get("USE_LLM_ENRICH"): cfg["USE_LLM_ENRICH"] = _env_true("USE_LLM_ENRICH")
    for k in ("AZURE_OPENAI_ENDPOINT","AZURE_OPENAI_API_VERSION","AZURE_OPENAI_API_KEY","AZURE_OPENAI_DEPLOYMENT"):
        if e.get(k): cfg[k] = e.get(k)
    return cfg
def get_backend(cfg: dict) -> str|None:
    b = (cfg.get("ENRICHMENT_BACKEND") or ENRICHMENT_BACKEND or "").lower().strip()
    if b == "azure" and cfg.get("USE_LLM_ENRICH") is False: return None
    return b if b in ("similarity","azure") else None
