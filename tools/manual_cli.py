# tools/manual_cli.py
from __future__ import annotations
import argparse, json, logging, os, sys
from typing import Dict, Optional
from golf_core.engine import ProfilerSession
from golf_core.enrichment import enricher_from_config
from golf_core.config import load_config
from golf_core.types import Question, ProfilerError
from api.storage import load_all_profiles

def _ask_int(prompt: str, default: int = 0) -> int:
    try:
        s = input(prompt).strip()
        if s == "": return default
        return int(s)
    except ValueError:
        return default

def ask(q: Question) -> int:
    print(f"\n--- {q.type} | id={q.id} ---")
    print(q.question)
    for i, opt in enumerate(q.options):
        desc = f"  ({opt.description})" if opt.description else ""
        print(f"  {i}: {opt.text}{desc}")
    return _ask_int("Choose index: ", 0)

def edit_answers(sess: ProfilerSession) -> Optional[Dict[str, int]]:
    answers = sess.answers
    print("\nYour answers:")
    for qid, rec in answers.items():
        print(f"  {qid}: [{rec.option_index}] {rec.answer}")
    qid = input("Edit which question id (blank to keep): ").strip()
    if not qid: return None
    if qid not in answers:
        print(f"{qid} was not answered in this session.")
        return None
    edits = {k: r.option_index for k, r in answers.items()}
    by_id = {q.id: q for q in sess.catalog}
    edits[qid] = ask(by_id[qid])
    return edits

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--enrich", choices=["none","similarity","azure"], default=None)
    ap.add_argument("--no-edit", action="store_true", help="skip the edit step at the end")
    ap.add_argument("--out", default=None, help="write the final record as JSON here")
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.WARNING)

    cfg = load_config()
    if a.enrich is not None:
        cfg["ENRICHMENT_BACKEND"] = a.enrich
    # similarity votes over profiles the API stored under DATA_DIR
    sess = ProfilerSession(enricher=enricher_from_config(cfg, load_all_profiles))
    print("Golf profile questionnaire. Ctrl+C to exit.")
    try:
        q = sess.start()
        while q is not None:
            try:
                sess.apply_answer(q.id, ask(q))
            except ProfilerError as e:
                print(f"  ! {e}")
                continue
            q = sess.current_question
        if not a.no_edit:
            edits = edit_answers(sess)
            if edits:
                sess.revise_answers(edits)
                while sess.current_question is not None:
                    q = sess.current_question
                    sess.apply_answer(q.id, ask(q))
    except KeyboardInterrupt:
        print("\nStopped by user.")
        if not sess.is_complete:
            sys.exit(1)

    record = sess.report()
    text = json.dumps({k: record[k] for k in ("scores", "profile", "enhanced", "enrichment")}, indent=2)
    print(text)
    if a.out:
        os.makedirs(os.path.dirname(a.out) or ".", exist_ok=True)
        with open(a.out, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
        print(f"Saved: {a.out}")

if __name__ == "__main__":
    main()
