"""Pipeline audit trail and its JSON/CSV exports."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Dict, Any, Optional
import csv
import io

from .config import AUDIT_FIELDS

_FIELDS: tuple[str, ...] = AUDIT_FIELDS


class AuditTrail:
    """Ordered record of what the pipeline did for one submission."""

    def __init__(self) -> None:
        self.events: List[Dict[str, Any]] = []

    def record(self, phase: str, state: str, *, chain_id: Optional[int] = None,
               tx_hash: Optional[str] = None, error_kind: Optional[str] = None, detail: str = "") -> None:
        self.events.append({
            "t": datetime.now(timezone.utc).isoformat(),
            "phase": phase,
            "state": state,
            "chain_id": chain_id,
            "tx_hash": tx_hash,
            "error_kind": error_kind,
            "detail": detail,
        })


def _normalize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _FIELDS:
        val = event.get(key)
        if key == "chain_id":
            try:
                out[key] = int(val)
            except (TypeError, ValueError):
                out[key] = 0
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


__all__ = ["AuditTrail", "to_json", "to_csv"]
