# tools/score_file.py
"""Batch-score answers from a JSONL file: {"challenge_id": ..., "answer": ...} per line."""
from __future__ import annotations
import argparse, csv, json, sys
from pathlib import Path
from proof_core.challenges import get_challenge
from proof_core.errors import ChallengeNotFound
from proof_core.scoring import score

FIELDS = ("line", "challenge_id", "rubric", "total", "passed", "tier", "length", "indicators", "casual", "structure", "position")

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("path")
    ap.add_argument("--out", default="-", help="CSV output path ('-' for stdout)")
    a = ap.parse_args()

    rows = []
    for n, ln in enumerate(Path(a.path).read_text(encoding="utf-8").splitlines(), start=1):
        if not ln.strip(): continue
        try:
            rec = json.loads(ln)
            ch = get_challenge(rec["challenge_id"])
        except (ValueError, KeyError, ChallengeNotFound) as e:
            print(f"line {n}: skipped ({e})", file=sys.stderr); continue
        b = score(rec.get("answer", ""), ch.rubric)
        row = {"line": n, "challenge_id": ch.id, "rubric": b.rubric.value, "total": b.total,
               "passed": b.passed, "tier": b.tier}
        for k in ("length", "indicators", "casual", "structure", "position"):
            row[k] = b.components.get(k, "")
        rows.append(row)

    f = sys.stdout if a.out == "-" else open(a.out, "w", newline="", encoding="utf-8")
    try:
        w = csv.DictWriter(f, fieldnames=FIELDS); w.writeheader()
        for r in rows: w.writerow(r)
    finally:
        if f is not sys.stdout: f.close()
    passed = sum(1 for r in rows if r["passed"])
    print(f"{len(rows)} scored, {passed} passed", file=sys.stderr)

if __name__ == "__main__":
    main()
