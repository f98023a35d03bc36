# golf_core/engine.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from datetime import datetime, timezone
import logging
import uuid

from .types import (
    AnswerRecord, EnrichedProfile, Phase, Profile, Question, ScoreVector, SelectionContext,
    InvalidOptionError, RevisionError, SessionStateError, UnknownQuestionError,
)
from .question_bank import load_bank, index_bank
from .scoring import aggregate, category_weight
from .policy import PrioritySelector, QuestionSelector, should_continue
from .profile import profile_to_dict, synthesize
from .enrichment import Enricher, EnrichmentResult, run_enrichment
from .config import (
    CATEGORY_WEIGHTS,
    CONTINUATION_RULES,
    SYNTHESIS_RULES,
    ContinuationRules,
    SynthesisRules,
)


log = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SessionState:
    answers: Dict[str, AnswerRecord] = field(default_factory=dict)  # asked order
    scores: ScoreVector = field(default_factory=ScoreVector)
    step: int = 0
    phase: Phase = "awaiting_answer"
    current: Optional[Question] = None
    profile: Optional[Profile] = None
    enrichment: Optional[EnrichmentResult] = None
    audit_events: List[Dict[str, object]] = field(default_factory=list)


class ProfilerSession:
    """One questionnaire run: answers in, score vector and profile out.

    Every mutation rebuilds the score vector from the full answer set and,
    once complete, the profile from the score vector.  Callers serialize
    access; the session does no locking of its own.
    """

    def __init__(
        self,
        catalog: Optional[Sequence[Question]] = None,
        selector: Optional[QuestionSelector] = None,
        enricher: Optional[Enricher] = None,
        session_id: Optional[str] = None,
        *,
        weights: Mapping[str, float] = CATEGORY_WEIGHTS,
        continuation: ContinuationRules = CONTINUATION_RULES,
        synthesis: SynthesisRules = SYNTHESIS_RULES,
        enrich_options: Optional[Mapping[str, Any]] = None,
    ):
        self.catalog: List[Question] = list(catalog) if catalog is not None else load_bank()
        self._by_id: Dict[str, Question] = index_bank(self.catalog)
        self.selector: QuestionSelector = selector or PrioritySelector()
        self.enricher = enricher
        self.session_id = session_id or str(uuid.uuid4())
        self.weights = weights
        self.continuation = continuation
        self.synthesis = synthesis
        self.enrich_options = dict(enrich_options or {})
        self.state = SessionState()

    # ---- read-only views ----
    @property
    def answers(self) -> Dict[str, AnswerRecord]:
        return dict(self.state.answers)

    @property
    def scores(self) -> ScoreVector:
        return self.state.scores

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def is_complete(self) -> bool:
        return self.state.phase == "complete"

    @property
    def answered_count(self) -> int:
        return len(self.state.answers)

    @property
    def current_question(self) -> Optional[Question]:
        return self.state.current

    @property
    def profile(self) -> Optional[Profile]:
        return self.state.profile

    @property
    def enriched(self) -> Optional[EnrichedProfile]:
        res = self.state.enrichment
        return res.enriched if res is not None else None

    @property
    def enhanced(self) -> bool:
        res = self.state.enrichment
        return bool(res is not None and res.enhanced)

    # ---- internals ----
    def _context(self) -> SelectionContext:
        return SelectionContext(session_id=self.session_id, timestamp=_now_iso())

    def _question(self, question_id: str) -> Question:
        q = self._by_id.get(question_id)
        if q is None:
            raise UnknownQuestionError(f"unknown question {question_id!r}")
        return q

    def _build_record(self, question_id: str, option_index: Any) -> AnswerRecord:
        q = self._question(question_id)
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise InvalidOptionError(f"option index for {question_id!r} must be an integer")
        if not 0 <= option_index < len(q.options):
            raise InvalidOptionError(
                f"option index {option_index} out of range for {question_id!r} ({len(q.options)} options)"
            )
        opt = q.options[option_index]
        return AnswerRecord(
            question_id=q.id,
            question_text=q.question,
            answer=opt.text,
            option_index=option_index,
            raw_scores=dict(opt.scores),
        )

    def _audit(self, event: str, **values: object) -> Dict[str, object]:
        row: Dict[str, object] = {
            "t": _now_iso(),
            "event": event,
            "session_id": self.session_id,
            "answered_count": self.answered_count,
            "step": self.state.step,
        }
        row.update(values)
        self.state.audit_events.append(row)
        return row

    def _recompute(self) -> None:
        self.state.scores = aggregate(self.state.answers, self.catalog, weights=self.weights)

    def _select_next(self) -> Optional[Question]:
        nxt = self.selector(
            dict(self.state.answers), self.state.scores, list(self.catalog),
            self.answered_count, self._context(),
        )
        if nxt is None:
            return None
        if nxt.id in self.state.answers:
            log.warning("selector returned answered question=%s session=%s; finalizing", nxt.id, self.session_id)
            return None
        if nxt.id not in self._by_id:
            log.warning("selector returned question=%s outside catalog session=%s; finalizing", nxt.id, self.session_id)
            return None
        return nxt

    def _advance(self) -> Optional[Question]:
        cont = should_continue(self.state.scores, self.answered_count, self.continuation)
        nxt = self._select_next() if cont else None
        log.debug("advance session=%s answered=%d continue=%s next=%s",
                  self.session_id, self.answered_count, cont, nxt.id if nxt else None)
        if nxt is None:
            self.state.current = None
            self.state.phase = "finalizing"
            self.finalize()
            return None
        self.state.current = nxt
        self.state.phase = "awaiting_answer"
        return nxt

    # ---- operations ----
    def start(self) -> Optional[Question]:
        if self.state.current is not None or self.state.answers or self.is_complete:
            return self.state.current
        log.info("session started session=%s catalog=%d", self.session_id, len(self.catalog))
        return self._advance()

    def apply_answer(self, question_id: str, option_index: int) -> SessionState:
        """Record an answer (or re-select an earlier one) and move the session on."""

        if self.is_complete:
            raise SessionStateError("session is complete; use revise_answers to edit")
        current = self.state.current
        if question_id not in self.state.answers and (current is None or current.id != question_id):
            raise SessionStateError(f"question {question_id!r} is not the current question")
        record = self._build_record(question_id, option_index)

        self.state.answers[question_id] = record
        self.state.step += 1
        self._recompute()
        q = self._by_id[question_id]
        event = self._audit(
            "answer",
            question_id=question_id,
            category=q.type,
            weight=category_weight(q, self.weights),
            option_index=option_index,
        )
        self._advance()
        event["continue"] = not self.is_complete
        return self.state

    def revise_answers(self, edits: Mapping[str, int]) -> SessionState:
        """Replace the whole answer set; all-or-nothing.

        ``edits`` maps every question id that should remain answered to its
        option index.  Nothing is touched unless every entry validates.
        """

        if not edits:
            raise RevisionError("revision must contain at least one answer")
        fresh: Dict[str, AnswerRecord] = {}
        for qid, idx in edits.items():
            old = self.state.answers.get(qid)
            valid_type = isinstance(idx, int) and not isinstance(idx, bool)
            if old is not None and valid_type and old.option_index == idx:
                fresh[qid] = old
            else:
                fresh[qid] = self._build_record(qid, idx)

        order: List[str] = [qid for qid in self.state.answers if qid in fresh]
        order += [qid for qid in edits if qid not in self.state.answers]
        changed = sorted(
            qid for qid in set(fresh) | set(self.state.answers)
            if qid not in fresh or qid not in self.state.answers
            or fresh[qid].option_index != self.state.answers[qid].option_index
        )

        was_complete = self.is_complete
        self.state.answers = {qid: fresh[qid] for qid in order}
        self._recompute()
        self._audit("revise", changed=changed)
        log.info("answers revised session=%s changed=%s", self.session_id, changed)
        if was_complete:
            self.finalize()
        else:
            self._advance()
        return self.state

    def restart(self) -> Optional[Question]:
        log.info("session restarted session=%s", self.session_id)
        self.state = SessionState()
        return self._advance()

    def finalize(self) -> Profile:
        """Build the profile wholesale from the current score vector."""

        scores = self.state.scores
        base = synthesize(scores, self.synthesis)
        result = run_enrichment(
            self.enricher, dict(self.state.answers), scores, base, self.session_id, self.enrich_options,
            rules=self.synthesis,
        )
        self.state.current = None
        self.state.profile = result.profile
        self.state.enrichment = result
        self.state.phase = "complete"
        self._audit("finalize", enrichment=result.status)
        log.info("session finalized session=%s answers=%d enrichment=%s",
                 self.session_id, self.answered_count, result.status)
        return result.profile

    def completed_triple(self) -> Tuple[Dict[str, AnswerRecord], ScoreVector, Profile]:
        if not self.is_complete or self.state.profile is None:
            raise SessionStateError("session is not complete")
        return dict(self.state.answers), self.state.scores, self.state.profile

    def report(self) -> Dict[str, object]:
        """JSON-safe snapshot for hosts: answers, scores, profile, enrichment, audit."""

        res = self.state.enrichment
        enriched = self.enriched
        return {
            "session_id": self.session_id,
            "phase": self.state.phase,
            "step": self.state.step,
            "answered_count": self.answered_count,
            "answers": [rec.to_dict() for rec in self.state.answers.values()],
            "scores": self.state.scores.to_dict(),
            "profile": profile_to_dict(self.state.profile) if self.state.profile else None,
            "enhanced": self.enhanced,
            "enrichment": None if res is None else {
                "status": res.status,
                "error": res.error,
                "source": enriched.source if enriched else None,
                "confidence": enriched.confidence if enriched else None,
                "highlights": list(enriched.highlights) if enriched else [],
                "alternatives": dict(enriched.alternatives) if enriched else {},
                "recommendations": dict(enriched.recommendations) if enriched else {},
            },
            "audit_events": [dict(e) for e in self.state.audit_events],
        }
