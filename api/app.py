from __future__ import annotations
from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import logging, uuid, typing as t

# ---- Engine imports ----
from golf_core import azure_cfg
from golf_core.engine import ProfilerSession
from golf_core.enrichment import enricher_from_config
from golf_core.feedback import ACCURACY_LEVELS, FeedbackError, build_feedback_report
from golf_core.question_bank import load_bank
from golf_core.config import load_config, AUDIT_EXPORT_ENABLED
from golf_core.audit_export import to_json as audit_to_json, to_csv as audit_to_csv
from golf_core.types import (
    InvalidOptionError, Question, RevisionError, SessionStateError, UnknownQuestionError,
)
from .storage import (
    active_sessions_for_user,
    append_feedback,
    clear_active_session,
    delete_profile,
    feedback_for_session,
    find_profile_by_session,
    list_profiles_for_user,
    load_all_profiles,
    load_profile,
    record_active_session,
    save_profile,
    update_active_session,
    utcnow_iso,
)

log = logging.getLogger(__name__)

CATALOG = load_bank()
SESS: dict[str, ProfilerSession] = {}
SESSION_INFO: dict[str, dict[str, t.Any]] = {}

app = FastAPI(title="Golf Profiler API")


@app.get("/")
def root():
    return {"status": "ok", "service": "golf-profiler-api"}


ALLOWED_ORIGINS = [
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class StartReq(BaseModel):
    user_id: str | None = None
    enrichment: str | None = None   # "none" | "similarity" | "azure"; None -> server config

class AnswerReq(BaseModel):
    question_id: str
    option_index: int

class ReviseReq(BaseModel):
    answers: dict[str, int] = Field(default_factory=dict)

class FeedbackReq(BaseModel):
    accuracy: str
    helpful: bool
    comments: str = ""
    response_time_ms: int | None = None
    dimension_feedback: dict[str, t.Any] | None = None

# ---- Helpers ----
def _now_iso() -> str:
    return utcnow_iso()


def _session(sid: str) -> ProfilerSession:
    sess = SESS.get(sid)
    if not sess:
        raise HTTPException(404, "session not found")
    return sess


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, UnknownQuestionError):
        return HTTPException(422, f"unknown question: {e.args[0] if e.args else e}")
    if isinstance(e, (InvalidOptionError, RevisionError, FeedbackError)):
        return HTTPException(422, str(e))
    if isinstance(e, SessionStateError):
        return HTTPException(409, str(e))
    return HTTPException(500, "internal error")


def _serialize_question(q: Question | None):
    if q is None: return None
    return {
        "id": q.id,
        "type": q.type,
        "question": q.question,
        "options": [
            {"index": i, "text": o.text, "description": o.description, "icon": o.icon}
            for i, o in enumerate(q.options)
        ],
    }


def _persist(sid: str, sess: ProfilerSession) -> dict[str, t.Any]:
    """Store (or overwrite) the finished record for this session."""

    info = SESSION_INFO.get(sid, {})
    record = sess.report()
    pid = info.get("profile_id") or str(uuid.uuid4())
    created = info.get("created_at") or _now_iso()
    record["id"] = pid
    record["created_at"] = created
    record["user_id"] = info.get("user_id")
    metadata = {
        "sessionId": sid,
        "userId": info.get("user_id"),
        "createdAt": created,
        "updatedAt": _now_iso(),
        "skill": (record.get("profile") or {}).get("skill_label"),
        "personality": (record.get("profile") or {}).get("personality"),
        "enhanced": record.get("enhanced"),
    }
    save_profile(pid, record, metadata)
    log.info("profile stored session=%s profile=%s", sid, pid)
    info["profile_id"] = pid
    info["created_at"] = created
    SESSION_INFO[sid] = info
    if info.get("user_id"):
        clear_active_session(sid)
    return record


def _progress(sid: str, sess: ProfilerSession) -> dict[str, t.Any]:
    body: dict[str, t.Any] = {
        "done": sess.is_complete,
        "answered_count": sess.answered_count,
        "question": _serialize_question(sess.current_question),
    }
    if sess.is_complete:
        body["profile"] = _persist(sid, sess)
    elif SESSION_INFO.get(sid, {}).get("user_id"):
        update_active_session(sid, {"lastUpdated": _now_iso(), "answered": sess.answered_count})
    return body

# ---- Health ----
@app.get("/health")
def health():
    cfg = load_config()
    return {
        "enrichment_backend": cfg.get("ENRICHMENT_BACKEND") or "none",
        "azure_config_present": azure_cfg.configured(),
        "questions": len(CATALOG),
    }

# ---- Session endpoints ----
@app.post("/session/start")
def start(req: StartReq):
    cfg = load_config()
    if req.enrichment is not None:
        cfg["ENRICHMENT_BACKEND"] = req.enrichment
    if cfg.get("ENRICHMENT_BACKEND") == "azure" and not azure_cfg.configured():
        raise HTTPException(500, "Azure enrichment requested but AZURE_OPENAI_* settings are missing on the server.")
    sid = str(uuid.uuid4())
    sess = ProfilerSession(CATALOG, enricher=enricher_from_config(cfg, load_all_profiles), session_id=sid)
    SESS[sid] = sess
    first = sess.start()
    started_at = _now_iso()
    SESSION_INFO[sid] = {"user_id": req.user_id, "started_at": started_at}
    if req.user_id:
        record_active_session(
            sid,
            {
                "sessionId": sid,
                "userId": req.user_id,
                "startedAt": started_at,
                "lastUpdated": started_at,
                "answered": 0,
            },
        )
    return {"session_id": sid, "question": _serialize_question(first)}

@app.get("/session/{sid}/question")
def current_question(sid: str):
    sess = _session(sid)
    return {"done": sess.is_complete, "answered_count": sess.answered_count,
            "question": _serialize_question(sess.current_question)}

@app.post("/session/{sid}/answer")
def answer(sid: str, req: AnswerReq):
    sess = _session(sid)
    try:
        sess.apply_answer(req.question_id, req.option_index)
    except (UnknownQuestionError, InvalidOptionError, SessionStateError) as e:
        raise _http_error(e)
    return _progress(sid, sess)

@app.post("/session/{sid}/revise")
def revise(sid: str, req: ReviseReq):
    sess = _session(sid)
    try:
        sess.revise_answers(req.answers)
    except (UnknownQuestionError, InvalidOptionError, RevisionError) as e:
        raise _http_error(e)
    return _progress(sid, sess)

@app.post("/session/{sid}/restart")
def restart(sid: str):
    sess = _session(sid)
    info = SESSION_INFO.setdefault(sid, {})
    info.pop("profile_id", None); info.pop("created_at", None)
    first = sess.restart()
    return {"session_id": sid, "question": _serialize_question(first)}

@app.get("/session/{sid}/profile")
def session_profile(sid: str):
    sess = SESS.get(sid)
    if sess is None:
        stored = find_profile_by_session(sid)
        if stored:
            return stored
        raise HTTPException(404, "session not found")
    if not sess.is_complete:
        raise HTTPException(409, "session is not complete")
    return _persist(sid, sess)

@app.post("/session/{sid}/feedback")
def feedback(sid: str, req: FeedbackReq):
    sess = _session(sid)
    try:
        entry = build_feedback_report(
            sess, req.accuracy, req.helpful,
            comments=req.comments,
            response_time_ms=req.response_time_ms,
            dimension_feedback=req.dimension_feedback,
        )
    except (SessionStateError, FeedbackError) as e:
        raise _http_error(e)
    append_feedback(entry)
    return {"ok": True, "feedbackWeight": entry["feedbackWeight"], "accuracy_levels": list(ACCURACY_LEVELS)}

@app.get("/session/{sid}/feedback")
def list_feedback(sid: str):
    entries = feedback_for_session(sid)
    if not entries and sid not in SESS and find_profile_by_session(sid) is None:
        raise HTTPException(404, "session not found")
    return {"session_id": sid, "feedback": entries}

# ---- Stored profiles ----
@app.get("/profiles/{profile_id}")
def get_profile(profile_id: str):
    record = load_profile(profile_id)
    if not record:
        raise HTTPException(404, "profile not found")
    return record


@app.get("/profiles/{profile_id}/audit.json")
def get_audit_json(profile_id: str):
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")

    record = load_profile(profile_id)
    if not record:
        raise HTTPException(404, "profile not found")

    events = record.get("audit_events") if isinstance(record, dict) else None
    payload = audit_to_json(events or [])
    return {"profile_id": profile_id, **payload}


@app.get("/profiles/{profile_id}/audit.csv")
def get_audit_csv(profile_id: str):
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")

    record = load_profile(profile_id)
    if not record:
        raise HTTPException(404, "profile not found")

    events = record.get("audit_events") if isinstance(record, dict) else None
    body = audit_to_csv(events or [])
    filename = f"{profile_id}_audit.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )


@app.delete("/profiles/{profile_id}")
def delete_profile_endpoint(profile_id: str):
    ok = delete_profile(profile_id)
    if not ok:
        raise HTTPException(404, "profile not found")
    return {"ok": True}


@app.get("/users/{user_id}/profiles")
def list_profiles(user_id: str):
    return {"profiles": list_profiles_for_user(user_id)}


@app.get("/users/{user_id}/sessions/active")
def list_active_sessions(user_id: str):
    return {"sessions": active_sessions_for_user(user_id)}
