from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from golf_core.question_bank import load_bank
from golf_core.types import AnswerRecord, Option, Question


def build_question(
    qid: str,
    qtype: str = "core",
    options: Optional[Sequence[Dict[str, object]]] = None,
    *,
    priority: int = 5,
) -> Question:
    """Question with one option per score mapping (two neutral options by default)."""

    payloads = list(options or ({"skillLevel": 5}, {"socialness": 5}))
    return Question(
        id=qid,
        type=qtype,
        question=f"{qid}?",
        options=tuple(Option(text=f"{qid} #{i}", scores=dict(s)) for i, s in enumerate(payloads)),
        priority=priority,
    )


def build_record(question: Question, option_index: int = 0) -> AnswerRecord:
    opt = question.options[option_index]
    return AnswerRecord(
        question_id=question.id,
        question_text=question.question,
        answer=opt.text,
        option_index=option_index,
        raw_scores=dict(opt.scores),
    )


def build_synthetic_catalog(count: int = 9) -> List[Question]:
    """Deterministic catalog whose options pull skill and luxury to the extremes or the middle."""

    types = ["starter", "core", "social", "lifestyle", "skill_assessment",
             "knowledge", "personality", "preparation"]
    out: List[Question] = []
    for i in range(count):
        out.append(build_question(
            f"q{i:02d}",
            types[i % len(types)],
            (
                {"skillLevel": 9, "luxuryLevel": 9, "amenityImportance": 8},
                {"skillLevel": 5, "luxuryLevel": 5, "amenityImportance": 5},
                {"skillLevel": 1, "luxuryLevel": 2, "amenityImportance": 0},
            ),
            priority=10 - i,
        ))
    return out


class ScriptedSelector:
    """Hands out questions in a fixed id order, then signals exhaustion."""

    def __init__(self, order: Sequence[str]):
        self.order = list(order)
        self.calls: List[Dict[str, object]] = []

    def __call__(self, answers, scores, catalog, answered_count, context):
        self.calls.append({"answered_count": answered_count, "session_id": context.session_id})
        by_id = {q.id: q for q in catalog}
        for qid in self.order:
            if qid not in answers:
                return by_id[qid]
        return None


def run_to_end(session, picks: Dict[str, int], default: int = 0):
    """Answer whatever the session asks, using ``picks`` where given."""

    q = session.start()
    while q is not None:
        session.apply_answer(q.id, picks.get(q.id, default))
        q = session.current_question
    return session


@pytest.fixture
def bank() -> List[Question]:
    return load_bank()


@pytest.fixture
def synthetic_catalog() -> List[Question]:
    return build_synthetic_catalog()
