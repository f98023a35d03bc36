from __future__ import annotations
import json, os, time
from typing import Any, Dict, Mapping
import logging

from .azure_cfg import client as azure_client, settings as azure_settings
from .types import AnswerRecord, Profile, ScoreVector

log = logging.getLogger(__name__)

_SYSTEM = ("You are a golf travel concierge. Given a golfer's questionnaire answers, dimension scores (0-10) "
           "and a rule-based profile, return ONLY compact JSON with keys: "
           "confidence (one of 'Very High','High','Medium','Low'), "
           "highlights (list of at most 3 short strings), "
           "alternatives (object with optional keys courseStyles, lodging, budget; each a list of strings). "
           "No explanations.")


def _prompt(answers: Mapping[str, AnswerRecord], scores: ScoreVector, profile: Profile) -> str:
    lines = [f"- {a.question_text}: {a.answer}" for _, a in sorted(answers.items())]
    return (
        "Answers:\n" + "\n".join(lines)
        + "\n\nScores:\n" + json.dumps(scores.to_dict(), sort_keys=True)
        + "\n\nProfile:\n" + json.dumps({
            "skill": profile.skill_label,
            "personality": profile.personality,
            "courseStyle": profile.recommendations.course_style,
            "budget": profile.recommendations.budget_level,
        })
    )


def _write_log(entry: Dict[str, Any]) -> None:
    path = os.getenv("LLM_LOG_PATH")
    if not path:
        return
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except OSError as e:
        log.warning("llm log write failed path=%s err=%s", path, e)


def request_enrichment(
    answers: Mapping[str, AnswerRecord],
    scores: ScoreVector,
    profile: Profile,
    session_id: str = "",
) -> Dict[str, Any]:
    """Ask the Azure deployment for extra recommendation content; raises on any failure."""

    t0 = time.time()
    s = azure_settings(); cli = azure_client(s)
    resp = cli.chat.completions.create(
        model=s.deployment,
        messages=[{"role": "system", "content": _SYSTEM},
                  {"role": "user", "content": _prompt(answers, scores, profile)}],
        temperature=0.0, max_tokens=300, top_p=1.0,
    )
    raw = resp.choices[0].message.content or "{}"
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("enrichment response is not a JSON object")
    _write_log({
        "ts": round(time.time(), 3),
        "session": session_id,
        "deployment": s.deployment,
        "raw": data,
        "rt_ms": int((time.time() - t0) * 1000),
    })
    return data
