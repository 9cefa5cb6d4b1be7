from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# rubric-independent; not overridable
PASS_THRESHOLD: int = 60
EXCELLENT_THRESHOLD: int = 80
SCORE_MAX: int = 100

CONFIRM_TIMEOUT_SEC: float = 120.0
CONFIRM_POLL_SEC: float = 2.0
RPC_TIMEOUT_SEC: float = 30.0

# wallet error codes (EIP-1193 / EIP-3326)
USER_REJECTED_CODE: int = 4001
UNRECOGNIZED_CHAIN_CODES: tuple[int, ...] = (4902,)

LEDGER_BACKEND: str = "dev"
LEDGER_BACKENDS: tuple[str, ...] = ("dev", "rpc")

AUDIT_EXPORT_ENABLED: bool = True

CREDENTIAL_SUFFIX: str = "SKL"

AUDIT_FIELDS: tuple[str, ...] = (
    "t",
    "phase",
    "state",
    "chain_id",
    "tx_hash",
    "error_kind",
    "detail",
)
# // env overrides; PASS_THRESHOLD stays fixed.
EXCELLENT_THRESHOLD = _env_int("EXCELLENT_THRESHOLD", EXCELLENT_THRESHOLD)
CONFIRM_TIMEOUT_SEC = _env_float("CONFIRM_TIMEOUT_SEC", CONFIRM_TIMEOUT_SEC)
CONFIRM_POLL_SEC = _env_float("CONFIRM_POLL_SEC", CONFIRM_POLL_SEC)
RPC_TIMEOUT_SEC = _env_float("RPC_TIMEOUT_SEC", RPC_TIMEOUT_SEC)
LEDGER_BACKEND = (os.getenv("LEDGER_BACKEND") or LEDGER_BACKEND).strip().lower()
AUDIT_EXPORT_ENABLED = _env_bool("AUDIT_EXPORT_ENABLED", AUDIT_EXPORT_ENABLED)


def load_config() -> dict:
    cfg = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError): cfg = {}
    e = os.environ
    if e.get("LEDGER_BACKEND"): cfg["LEDGER_BACKEND"] = e["LEDGER_BACKEND"].strip().lower()
    for k in ("CONFIRM_TIMEOUT_SEC", "CONFIRM_POLL_SEC", "RPC_TIMEOUT_SEC"):
        if e.get(k): cfg[k] = _env_float(k, globals()[k])
    cfg.setdefault("LEDGER_BACKEND", LEDGER_BACKEND)
    cfg.setdefault("CONFIRM_TIMEOUT_SEC", CONFIRM_TIMEOUT_SEC)
    cfg.setdefault("CONFIRM_POLL_SEC", CONFIRM_POLL_SEC)
    cfg.setdefault("RPC_TIMEOUT_SEC", RPC_TIMEOUT_SEC)
    return cfg


def get_backend(cfg: dict) -> str:
    b = str(cfg.get("LEDGER_BACKEND") or "").lower().strip()
    return b if b in LEDGER_BACKENDS else "dev"
