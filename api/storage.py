"""On-disk proof records.

Each proof is one JSON file under ``proofs/``. Proofs minted for a
Farcaster id are also listed in ``fids/<fid>.json`` (newest first) so a
profile page reads one small file. The answer text is never written.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
PROOFS_DIR = DATA_ROOT / "proofs"
FIDS_DIR = DATA_ROOT / "fids"

_LOCK = threading.Lock()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def _load(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None


def save_proof(record: Dict[str, Any], summary: Dict[str, Any]) -> None:
    """Write ``record`` and, when it carries a fid, prepend ``summary`` to that fid's list."""

    _dump(PROOFS_DIR / f"{record['id']}.json", record)
    fid = record.get("fid")
    if fid is None:
        return
    path = FIDS_DIR / f"{int(fid)}.json"
    with _LOCK:
        listed = _load(path) or []
        listed.insert(0, {"id": record["id"], **summary})
        _dump(path, listed)


def load_proof(proof_id: str) -> Optional[Dict[str, Any]]:
    # ids are uuid4 strings; anything else cannot name a file of ours
    if not proof_id or "/" in proof_id or "\\" in proof_id or proof_id.startswith("."):
        return None
    return _load(PROOFS_DIR / f"{proof_id}.json")


def list_proofs_for_fid(fid: int) -> List[Dict[str, Any]]:
    return _load(FIDS_DIR / f"{int(fid)}.json") or []
