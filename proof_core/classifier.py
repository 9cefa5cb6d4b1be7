# proof_core/classifier.py
from __future__ import annotations
from typing import Optional, Tuple

from .config import USER_REJECTED_CODE
from .errors import ErrorKind

# ordered: first match wins
_PATTERNS: Tuple[Tuple[str, ErrorKind], ...] = (
    ("user rejected", ErrorKind.USER_REJECTED_SIGNATURE),
    ("user denied", ErrorKind.USER_REJECTED_SIGNATURE),
    ("rejected the request", ErrorKind.USER_REJECTED_SIGNATURE),
    ("user cancelled", ErrorKind.USER_REJECTED_SIGNATURE),
    ("user canceled", ErrorKind.USER_REJECTED_SIGNATURE),
    ("insufficient funds", ErrorKind.INSUFFICIENT_FUNDS),
    ("insufficient balance", ErrorKind.INSUFFICIENT_FUNDS),
    ("exceeds balance", ErrorKind.INSUFFICIENT_FUNDS),
    ("wrong network", ErrorKind.WRONG_NETWORK),
    ("chain mismatch", ErrorKind.WRONG_NETWORK),
    ("unrecognized chain", ErrorKind.WRONG_NETWORK),
    ("does not match the target chain", ErrorKind.WRONG_NETWORK),
    ("invalid chain id", ErrorKind.WRONG_NETWORK),
)


def classify_error(raw: Optional[str]) -> ErrorKind:
    msg = (raw or "").lower()
    for pattern, kind in _PATTERNS:
        if pattern in msg:
            return kind
    return ErrorKind.UNKNOWN


def classify_exception(exc: BaseException) -> Tuple[ErrorKind, str]:
    """Classify a provider exception; returns (kind, raw message verbatim)."""
    raw = str(getattr(exc, "message", None) or exc)
    if getattr(exc, "code", None) == USER_REJECTED_CODE:
        return ErrorKind.USER_REJECTED_SIGNATURE, raw
    return classify_error(raw), raw
