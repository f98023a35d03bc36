# tools/azure_smoke.py
from __future__ import annotations
import json
from openai import NotFoundError
from golf_core.azure_cfg import settings
from golf_core.engine import ProfilerSession
from golf_core.llm_bridge import request_enrichment

def main():
    s = settings()
    print("Endpoint :", s.endpoint)
    print("Deploy   :", s.deployment, "(deployment name passed as model=)")
    print("API ver  :", s.api_version)
    # first-option run gives a fixed profile to enrich
    sess = ProfilerSession(session_id="azure-smoke")
    q = sess.start()
    while q is not None:
        sess.apply_answer(q.id, 0)
        q = sess.current_question
    answers, scores, profile = sess.completed_triple()
    try:
        data = request_enrichment(answers, scores, profile, session_id=sess.session_id)
        print("Reply    :", json.dumps(data, indent=2))
    except NotFoundError:
        print("ERROR 404: Azure cannot find this deployment for this API version.")
        print("Check the deployment name and api_version against the portal's Target URI.")
        raise

if __name__ == "__main__":
    main()
