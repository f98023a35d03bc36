from __future__ import annotations

import importlib
import json
import os
import sys

from fastapi.testclient import TestClient


def _reload_app(tmp_path) -> tuple[object, object]:
    os.environ["DATA_DIR"] = str(tmp_path)
    if "api.storage" in sys.modules:
        importlib.reload(sys.modules["api.storage"])
    else:
        import api.storage  # noqa: F401
    storage = sys.modules["api.storage"]
    if "api.app" in sys.modules:
        importlib.reload(sys.modules["api.app"])
    else:
        import api.app  # noqa: F401
    app_module = sys.modules["api.app"]
    return storage, app_module


def _answer_all(client, sid: str, first: dict, pick: int = 0) -> dict:
    q = first
    body: dict = {}
    while q is not None:
        resp = client.post(f"/session/{sid}/answer", json={"question_id": q["id"], "option_index": pick})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        q = body["question"]
    return body


def test_health_and_root(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)
    assert client.get("/").json()["status"] == "ok"
    health = client.get("/health").json()
    assert health["questions"] == 9
    assert "azure_config_present" in health


def test_full_flow_stores_profile(tmp_path):
    storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    start = client.post("/session/start", json={"user_id": "u1", "enrichment": "none"})
    assert start.status_code == 200
    sid = start.json()["session_id"]
    first = start.json()["question"]
    assert first["id"] == "golf_movie"
    assert [o["index"] for o in first["options"]] == [0, 1, 2, 3]

    active = client.get("/users/u1/sessions/active").json()["sessions"]
    assert [s["sessionId"] for s in active] == [sid]

    current = client.get(f"/session/{sid}/question").json()
    assert current["question"]["id"] == "golf_movie"
    assert client.get(f"/session/{sid}/profile").status_code == 409

    done = _answer_all(client, sid, first)
    assert done["done"] is True
    record = done["profile"]
    assert 5 <= record["answered_count"] <= 7
    assert record["profile"]["skill_label"]
    assert record["user_id"] == "u1"

    stored = json.loads((storage.PROFILES_DIR / f"{record['id']}.json").read_text(encoding="utf-8"))
    assert stored["scores"] == record["scores"]
    assert client.get(f"/profiles/{record['id']}").json()["session_id"] == sid
    assert [p["id"] for p in client.get("/users/u1/profiles").json()["profiles"]] == [record["id"]]
    assert client.get("/users/u1/sessions/active").json()["sessions"] == []


def test_error_mapping(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    assert client.post("/session/nope/answer", json={"question_id": "golf_movie", "option_index": 0}).status_code == 404

    start = client.post("/session/start", json={"enrichment": "none"}).json()
    sid = start["session_id"]
    assert client.post(f"/session/{sid}/answer", json={"question_id": "golf_movie", "option_index": 7}).status_code == 422
    assert client.post(f"/session/{sid}/answer", json={"question_id": "pressure_shot", "option_index": 0}).status_code == 409
    assert client.post(f"/session/{sid}/revise", json={"answers": {"nope": 1}}).status_code == 422
    assert client.post(f"/session/{sid}/revise", json={"answers": {}}).status_code == 422
    assert client.post(f"/session/{sid}/feedback", json={"accuracy": "very_accurate", "helpful": True}).status_code == 409

    _answer_all(client, sid, start["question"])
    assert client.post(f"/session/{sid}/answer", json={"question_id": "golf_movie", "option_index": 1}).status_code == 409


def test_revise_overwrites_stored_profile(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    start = client.post("/session/start", json={"enrichment": "none"}).json()
    sid = start["session_id"]
    done = _answer_all(client, sid, start["question"])
    pid = done["profile"]["id"]
    edits = {a["questionId"]: 3 for a in done["profile"]["answers"]}

    revised = client.post(f"/session/{sid}/revise", json={"answers": edits})
    assert revised.status_code == 200
    body = revised.json()
    assert body["done"] is True
    assert body["profile"]["id"] == pid
    assert [a["optionIndex"] for a in body["profile"]["answers"]] == [3] * len(edits)
    assert any(e["event"] == "revise" for e in body["profile"]["audit_events"])
    assert client.get(f"/profiles/{pid}").json()["answers"] == body["profile"]["answers"]


def test_feedback_and_restart(tmp_path):
    storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    start = client.post("/session/start", json={"enrichment": "none"}).json()
    sid = start["session_id"]
    _answer_all(client, sid, start["question"])

    bad = client.post(f"/session/{sid}/feedback", json={"accuracy": "meh", "helpful": True})
    assert bad.status_code == 422
    ok = client.post(f"/session/{sid}/feedback",
                     json={"accuracy": "very_accurate", "helpful": True, "comments": "Spot on about the links"})
    assert ok.status_code == 200
    assert ok.json()["feedbackWeight"] == 1.2
    assert storage.feedback_for_session(sid)[0]["accuracy"] == "very_accurate"
    listed = client.get(f"/session/{sid}/feedback").json()
    assert [e["accuracy"] for e in listed["feedback"]] == ["very_accurate"]
    assert client.get("/session/nope/feedback").status_code == 404

    again = client.post(f"/session/{sid}/restart")
    assert again.status_code == 200
    assert again.json()["question"]["id"] == "golf_movie"
    assert client.get(f"/session/{sid}/question").json()["answered_count"] == 0


def test_similarity_enrichment_uses_stored_profiles(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    for _ in range(3):
        start = client.post("/session/start", json={"enrichment": "similarity"}).json()
        done = _answer_all(client, start["session_id"], start["question"])
        assert done["profile"]["enhanced"] is False

    start = client.post("/session/start", json={"enrichment": "similarity"}).json()
    done = _answer_all(client, start["session_id"], start["question"])
    assert done["profile"]["enhanced"] is True
    assert done["profile"]["enrichment"]["source"] == "similarity"
    assert done["profile"]["enrichment"]["recommendations"]["similarProfiles"] == 3


def test_azure_without_settings_is_refused(tmp_path, monkeypatch):
    for key in ("AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_API_VERSION", "AZURE_OPENAI_DEPLOYMENT"):
        monkeypatch.delenv(key, raising=False)
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)
    assert client.post("/session/start", json={"enrichment": "azure"}).status_code == 500
