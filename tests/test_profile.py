from __future__ import annotations

import pytest

from golf_core.config import SynthesisRules
from golf_core.profile import (
    budget_level,
    course_style,
    majority_style,
    personality_archetype,
    preference_list,
    preference_style,
    profile_to_dict,
    skill_label,
    synthesize,
)
from golf_core.scoring import aggregate
from golf_core.types import ScoreVector

from tests.conftest import build_question, build_record


MID = dict(skillLevel=5.0, socialness=5.0, traditionalism=5.0, luxuryLevel=5.0,
           competitiveness=5.0, ageGeneration=5.0, amenityImportance=5.0, pace=5.0)


@pytest.mark.parametrize("skill,label", [
    (0.0, "New to Golf"),
    (2.0, "New to Golf"),
    (2.1, "Recreational Player"),
    (4.0, "Recreational Player"),
    (6.0, "Regular Golfer"),
    (8.0, "Serious Player"),
    (8.1, "Advanced Golfer"),
    (10.0, "Advanced Golfer"),
])
def test_skill_bands(skill, label):
    assert skill_label(skill) == label


@pytest.mark.parametrize("overrides,label", [
    (dict(socialness=8.0, competitiveness=3.0, luxuryLevel=9.0), "Social & Fun-Focused"),
    (dict(competitiveness=8.0, traditionalism=7.0, socialness=8.0), "Competitive Traditionalist"),
    (dict(socialness=8.0, competitiveness=5.0, luxuryLevel=7.0), "Social Luxury Seeker"),
    (dict(socialness=3.0, competitiveness=2.0), "Peaceful Solo Player"),
    (dict(traditionalism=9.0), "Golf Purist"),
    ({}, "Balanced Enthusiast"),
])
def test_archetype_first_match_wins(overrides, label):
    assert personality_archetype(ScoreVector(**{**MID, **overrides})) == label


def test_preference_list_order_and_empty():
    assert preference_list(ScoreVector(**MID)) == []
    prefs = preference_list(ScoreVector(**{**MID, "traditionalism": 7.0, "amenityImportance": 6.0}))
    assert prefs == ["Values practice facilities & amenities", "Appreciates golf history & tradition"]


def test_majority_course_style():
    assert course_style(ScoreVector(**MID, courseStyle={"coastal": 2, "links": 1})) == "coastal"
    assert course_style(ScoreVector(**MID, courseStyle={"links": 1, "coastal": 2})) == "coastal"


def test_course_style_tie_goes_to_first_counted():
    assert majority_style({"links": 1, "coastal": 1}) == "links"
    assert majority_style({"coastal": 1, "links": 1}) == "coastal"
    assert majority_style({}) is None


def test_course_style_tie_follows_question_order():
    a = build_question("a_trip", "lifestyle", ({"courseStyle": "links"},))
    b = build_question("b_trip", "lifestyle", ({"courseStyle": "coastal"},))
    answers = {b.id: build_record(b), a.id: build_record(a)}
    scores = aggregate(answers, [a, b])
    assert synthesize(scores).recommendations.course_style == "links"


def test_course_style_fallback_without_votes():
    assert course_style(ScoreVector(**{**MID, "traditionalism": 7.0})) == "Classic parkland"
    assert course_style(ScoreVector(**{**MID, "traditionalism": 6.9})) == "Resort-style"


@pytest.mark.parametrize("luxury,label", [
    (9.0, "Premium ($100+)"),
    (7.0, "Premium ($100+)"),
    (6.9, "Mid-range ($50-100)"),
    (4.0, "Mid-range ($50-100)"),
    (3.9, "Value ($25-50)"),
])
def test_budget_bands(luxury, label):
    assert budget_level(luxury) == label


def test_amenities_lodging_companions_equipment():
    rec = synthesize(ScoreVector(**{**MID, "amenityImportance": 8.0, "luxuryLevel": 8.0,
                                    "socialness": 9.0, "skillLevel": 3.0})).recommendations
    assert rec.amenities == ["Driving range", "Practice greens", "Pro shop", "Dining"]
    assert rec.lodging == "Resort or boutique hotel"
    assert rec.companions == "Large groups or events"
    assert rec.equipment == ["Game improvement clubs", "Premium equipment"]

    social = synthesize(ScoreVector(**{**MID, "socialness": 7.0})).recommendations
    assert social.amenities == ["Bar/restaurant", "Event spaces"]
    assert social.lodging == "Hotel with social areas"
    assert social.companions == "Foursomes with friends"
    assert social.equipment == []

    quiet = synthesize(ScoreVector(**{**MID, "socialness": 2.0})).recommendations
    assert quiet.amenities == ["Basic facilities"]
    assert quiet.lodging == "Comfortable, convenient location"
    assert quiet.companions == "Solo or small groups"


@pytest.mark.parametrize("age,band", [(0.0, "25-40"), (3.0, "25-40"), (3.1, "35-55"), (6.0, "35-55"), (6.1, "45-65")])
def test_age_bands(age, band):
    assert synthesize(ScoreVector(**{**MID, "ageGeneration": age})).demographics.estimated_age == band


@pytest.mark.parametrize("lean,label", [
    (0.0, "Neutral preferences"),
    (1.0, "Neutral preferences"),
    (-1.0, "Neutral preferences"),
    (1.5, "More traditional masculine preferences"),
    (-2.0, "More contemporary/feminine preferences"),
])
def test_preference_style(lean, label):
    assert preference_style(lean) == label


def test_synthesize_is_pure_and_serializable():
    scores = ScoreVector(**{**MID, "skillLevel": 7.2}, courseStyle={"parkland": 1})
    first, second = synthesize(scores), synthesize(scores)
    assert first == second
    d = profile_to_dict(first)
    assert d["skill_label"] == "Serious Player"
    assert d["skill_numeric"] == 7.2
    assert d["recommendations"]["course_style"] == "parkland"


def test_rules_can_be_injected():
    rules = SynthesisRules(skill_bands=((5.0, "Learning"),), skill_top_label="Sharp")
    assert skill_label(5.0, rules) == "Learning"
    assert synthesize(ScoreVector(skillLevel=5.5), rules).skill_label == "Sharp"
