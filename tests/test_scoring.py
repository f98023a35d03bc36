from __future__ import annotations

import itertools
import logging

from golf_core.scoring import aggregate, category_weight, round1, unknown_dimensions
from golf_core.types import NUMERIC_DIMENSIONS, ScoreVector

from tests.conftest import build_question, build_record


def _answers(pairs):
    return {q.id: build_record(q, idx) for q, idx in pairs}


def test_single_answer_at_unit_weight():
    q = build_question("solo", "lifestyle", ({"skillLevel": 8, "socialness": 3},))
    scores = aggregate(_answers([(q, 0)]), [q])

    assert scores.skillLevel == 8.0
    assert scores.socialness == 3.0
    for dim in NUMERIC_DIMENSIONS:
        if dim not in ("skillLevel", "socialness"):
            assert scores.get(dim) == 0.0
    assert scores.courseStyle == {}


def test_weighted_mean_uses_category_weights():
    heavy = build_question("heavy", "core", ({"skillLevel": 8},))       # 1.5
    light = build_question("light", "lifestyle", ({"skillLevel": 4},))  # 1.0
    scores = aggregate(_answers([(heavy, 0), (light, 0)]), [heavy, light])
    assert scores.skillLevel == 6.4


def test_unlisted_category_defaults_to_unit_weight():
    q = build_question("odd", "trivia")
    assert category_weight(q) == 1.0
    assert category_weight(None) == 1.0

    a = build_question("a", "trivia", ({"pace": 9},))
    b = build_question("b", "lifestyle", ({"pace": 3},))
    assert aggregate(_answers([(a, 0), (b, 0)]), [a, b]).pace == 6.0


def test_injected_weights_override_defaults():
    a = build_question("a", "core", ({"pace": 10},))
    b = build_question("b", "lifestyle", ({"pace": 0},))
    answers = _answers([(a, 0), (b, 0)])
    scores = aggregate(answers, [a, b], weights={"core": 3.0, "lifestyle": 1.0})
    assert scores.pace == 7.5


def test_round_half_up():
    assert round1(2.25) == 2.3
    assert round1(6.75) == 6.8
    assert round1(-1.25) == -1.2
    assert round1(0.04) == 0.0


def test_course_style_votes_are_counted_unweighted():
    qs = [
        build_question("c1", "skill_assessment", ({"courseStyle": "coastal"},)),
        build_question("c2", "lifestyle", ({"courseStyle": "coastal", "luxuryLevel": 8},)),
        build_question("c3", "core", ({"courseStyle": "links"},)),
    ]
    scores = aggregate(_answers([(q, 0) for q in qs]), qs)
    assert scores.courseStyle == {"coastal": 2, "links": 1}
    assert scores.luxuryLevel == 8.0


def test_aggregate_is_deterministic(bank):
    by_id = {q.id: q for q in bank}
    answers = _answers([(by_id["golf_movie"], 1), (by_id["dream_course"], 2), (by_id["pressure_shot"], 0)])
    assert aggregate(answers, bank) == aggregate(answers, bank)


def test_aggregate_ignores_insertion_order(bank):
    by_id = {q.id: q for q in bank}
    picks = [("golf_movie", 3), ("dream_course", 0), ("playing_partner", 1), ("golf_trip", 0), ("golf_attire", 2)]
    baseline = None
    for perm in itertools.permutations(picks):
        answers = {qid: build_record(by_id[qid], idx) for qid, idx in perm}
        scores = aggregate(answers, bank)
        if baseline is None:
            baseline = scores
        assert scores == baseline
        assert list(scores.courseStyle) == list(baseline.courseStyle)


def test_numeric_dimensions_are_clamped_except_gender_lean():
    q = build_question("wild", "lifestyle", ({"skillLevel": 14, "pace": -3, "genderLean": -2},))
    scores = aggregate(_answers([(q, 0)]), [q])
    assert scores.skillLevel == 10.0
    assert scores.pace == 0.0
    assert scores.genderLean == -2.0


def test_range_holds_over_the_whole_bank(bank):
    for picks in itertools.product(range(4), repeat=3):
        chosen = bank[:3]
        answers = {q.id: build_record(q, i) for q, i in zip(chosen, picks)}
        scores = aggregate(answers, bank)
        for dim, value in scores.numeric().items():
            if dim != "genderLean":
                assert 0.0 <= value <= 10.0


def test_unknown_dimension_is_logged_and_ignored(caplog):
    q = build_question("typo", "lifestyle", ({"skillLevel": 6, "skilLevel": 2, "handedness": 1},))
    answers = _answers([(q, 0)])
    with caplog.at_level(logging.WARNING, logger="golf_core.scoring"):
        scores = aggregate(answers, [q])
    assert scores.skillLevel == 6.0
    assert "skilLevel" in caplog.text
    assert unknown_dimensions(answers) == {"typo": ["handedness", "skilLevel"]}


def test_non_numeric_value_is_skipped(caplog):
    q = build_question("bad", "lifestyle", ({"skillLevel": "high", "pace": 4},))
    with caplog.at_level(logging.WARNING, logger="golf_core.scoring"):
        scores = aggregate(_answers([(q, 0)]), [q])
    assert scores.skillLevel == 0.0
    assert scores.pace == 4.0
    assert "non-numeric" in caplog.text


def test_empty_answer_set_is_all_zero():
    assert aggregate({}, []) == ScoreVector()


def test_bank_has_no_unknown_dimensions(bank):
    for q in bank:
        for i in range(len(q.options)):
            assert unknown_dimensions({q.id: build_record(q, i)}) == {}
