from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from .types import Option, Question

CATEGORIES = ["starter","core","skill_assessment","social","lifestyle","knowledge","personality","preparation"]
BANK_PATH = Path(__file__).with_name("data") / "bank.json"

def _question_from_dict(raw: dict) -> Question:
    opts = tuple(
        Option(text=o["text"], scores=dict(o.get("scores") or {}),
               description=o.get("description", ""), icon=o.get("icon"))
        for o in raw.get("options") or []
    )
    return Question(id=raw["id"], type=raw.get("type", "core"), question=raw.get("question", ""),
                    options=opts, priority=int(raw.get("priority", 0) or 0))

def load_bank(path: Optional[Path] = None) -> List[Question]:
    data = (path or BANK_PATH).read_text(encoding="utf-8")
    return [_question_from_dict(r) for r in json.loads(data)]

def index_bank(catalog: Iterable[Question]) -> Dict[str, Question]:
    return {q.id: q for q in catalog}
