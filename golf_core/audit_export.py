"""Helpers to export per-step audit traces in JSON/CSV formats."""
from __future__ import annotations

from typing import Iterable, List, Dict, Any
import csv
import io

_FIELDS: tuple[str, ...] = (
    "t",
    "event",
    "session_id",
    "question_id",
    "category",
    "weight",
    "option_index",
    "answered_count",
    "step",
    "continue",
    "changed",
    "enrichment",
)


def _normalize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _FIELDS:
        val = event.get(key)
        if key in {"option_index", "answered_count", "step"}:
            try:
                out[key] = int(val)
            except (TypeError, ValueError):
                out[key] = -1 if key == "option_index" else 0
        elif key == "weight":
            try:
                out[key] = float(val)
            except (TypeError, ValueError):
                out[key] = 0.0
        elif key == "continue":
            out[key] = "" if val is None else bool(val)
        elif key == "changed":
            out[key] = ";".join(str(v) for v in (val or []))
        else:
            out[key] = "" if val is None else str(val)
    return out


def to_json(events: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a JSON-safe payload for audit export."""

    normalized: List[Dict[str, Any]] = [_normalize_event(evt or {}) for evt in events]
    return {"events": normalized}


def to_csv(events: Iterable[Dict[str, Any]]) -> str:
    """Render audit events as CSV with a fixed header."""

    normalized = [_normalize_event(evt or {}) for evt in events]
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in normalized:
        writer.writerow(row)
    return buf.getvalue()


__all__ = ["to_json", "to_csv"]
