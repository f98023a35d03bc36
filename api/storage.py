"""Utility helpers for persisting finished profiles, feedback and session metadata.

Profiles and feedback are plain JSON files under ``DATA_DIR``.  Stored
profiles double as the neighbour pool for similarity enrichment, so they
keep the raw score vector next to the synthesized profile.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


log = logging.getLogger(__name__)

DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
PROFILES_DIR = DATA_ROOT / "profiles"
PROFILE_INDEX_PATH = DATA_ROOT / "profiles_index.json"
FEEDBACK_PATH = DATA_ROOT / "feedback.jsonl"
ACTIVE_SESSIONS_PATH = DATA_ROOT / "sessions_active.json"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    PROFILES_DIR.mkdir(parents=True, exist_ok=True)
    DATA_ROOT.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("unreadable json path=%s err=%s", path, e)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def save_profile(profile_id: str, record: Dict[str, Any], metadata: Dict[str, Any]) -> None:
    """Persist the finished session record and its index metadata."""

    _ensure_dirs()
    path = PROFILES_DIR / f"{profile_id}.json"

    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(PROFILE_INDEX_PATH, {})
        index[profile_id] = metadata
        _write_json(PROFILE_INDEX_PATH, index)

    _write_json(path, record)


def load_profile(profile_id: str) -> Optional[Dict[str, Any]]:
    return _read_json(PROFILES_DIR / f"{profile_id}.json", None)


def delete_profile(profile_id: str) -> bool:
    removed = False
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(PROFILE_INDEX_PATH, {})
        if profile_id in index:
            index.pop(profile_id, None)
            _write_json(PROFILE_INDEX_PATH, index)
            removed = True
    path = PROFILES_DIR / f"{profile_id}.json"
    if path.exists():
        path.unlink(missing_ok=True)
    return removed


def list_profiles_for_user(user_id: str) -> List[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(PROFILE_INDEX_PATH, {})
    out: List[Dict[str, Any]] = []
    for pid, meta in index.items():
        if meta.get("userId") == user_id:
            item = {"id": pid}
            item.update({k: v for k, v in meta.items() if k != "id"})
            out.append(item)
    out.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
    return out


def find_profile_by_session(session_id: str) -> Optional[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(PROFILE_INDEX_PATH, {})
    for pid, meta in index.items():
        if meta.get("sessionId") == session_id:
            record = load_profile(pid)
            if record:
                return record
    return None


def load_all_profiles() -> List[Dict[str, Any]]:
    """Every stored profile as ``{"sessionId", "scores", "profile"}`` for neighbour search."""

    index: Dict[str, Dict[str, Any]] = _read_json(PROFILE_INDEX_PATH, {})
    out: List[Dict[str, Any]] = []
    for pid in index:
        record = load_profile(pid)
        if not record or not isinstance(record.get("scores"), dict):
            continue
        out.append({
            "id": pid,
            "sessionId": record.get("session_id"),
            "scores": record["scores"],
            "profile": record.get("profile") or {},
        })
    return out


def append_feedback(entry: Dict[str, Any]) -> None:
    DATA_ROOT.mkdir(parents=True, exist_ok=True)
    with _LOCK:
        with FEEDBACK_PATH.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, sort_keys=True) + "\n")


def feedback_for_session(session_id: str) -> List[Dict[str, Any]]:
    if not FEEDBACK_PATH.exists():
        return []
    out: List[Dict[str, Any]] = []
    for line in FEEDBACK_PATH.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except ValueError:
            log.warning("skipping malformed feedback line in %s", FEEDBACK_PATH)
            continue
        if entry.get("sessionId") == session_id:
            out.append(entry)
    return out


def _load_sessions() -> Dict[str, Dict[str, Any]]:
    return _read_json(ACTIVE_SESSIONS_PATH, {})


def record_active_session(session_id: str, payload: Dict[str, Any]) -> None:
    if not payload.get("userId"):
        return
    with _LOCK:
        sessions = _load_sessions()
        sessions[session_id] = payload
        _write_json(ACTIVE_SESSIONS_PATH, sessions)


def update_active_session(session_id: str, updates: Dict[str, Any]) -> None:
    with _LOCK:
        sessions = _load_sessions()
        if session_id not in sessions:
            return
        sessions[session_id].update(updates)
        _write_json(ACTIVE_SESSIONS_PATH, sessions)


def clear_active_session(session_id: str) -> None:
    with _LOCK:
        sessions = _load_sessions()
        if session_id in sessions:
            sessions.pop(session_id, None)
            _write_json(ACTIVE_SESSIONS_PATH, sessions)


def active_sessions_for_user(user_id: str) -> List[Dict[str, Any]]:
    sessions = _load_sessions()
    out: List[Dict[str, Any]] = []
    for payload in sessions.values():
        if payload.get("userId") == user_id:
            out.append(payload)
    out.sort(key=lambda r: r.get("startedAt", ""), reverse=True)
    return out
