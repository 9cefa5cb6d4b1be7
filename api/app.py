from __future__ import annotations
from fastapi import FastAPI, HTTPException, Depends, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from eth_utils import is_address
import uuid, os, json, logging, typing as t

# ---- Engine imports ----
from proof_core import chain_cfg
from proof_core.challenges import (
    load_challenges,
    get_challenge,
    challenges_by_category,
    challenges_by_difficulty,
    random_challenge,
)
from proof_core.config import load_config, get_backend, AUDIT_EXPORT_ENABLED
from proof_core.audit_export import to_json as audit_to_json, to_csv as audit_to_csv
from proof_core.devchain import DevChain
from proof_core.errors import ChallengeNotFound, ErrorKind, guidance
from proof_core.ledger import ContractLedger
from proof_core.pipeline import ProofPipeline, ProofResult
from proof_core.provider import ProviderRpcError, WalletProvider
from proof_core.scoring import score
from proof_core.types import Challenge, Submission
from .storage import list_proofs_for_fid, load_proof, save_proof, utcnow_iso

log = logging.getLogger(__name__)

CFG = load_config()
BACKEND = get_backend(CFG)
SETTINGS = chain_cfg.settings()

_PROVIDER: WalletProvider | None = None

app = FastAPI(title="Skill Proof API")


@app.get("/")
def root():
    return {"status": "ok", "service": "skill-proof-api"}


ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,  # keep False unless you use cookies
)

# ---- Schemas ----
class ScoreReq(BaseModel):
    challenge_id: str
    answer: str

class ProofReq(BaseModel):
    challenge_id: str
    answer: str
    fid: int | None = Field(default=None, ge=1)

# ---- Dependencies ----
def get_provider() -> WalletProvider:
    global _PROVIDER
    if _PROVIDER is None:
        if BACKEND == "rpc":
            _PROVIDER = chain_cfg.client(SETTINGS, timeout=float(CFG["RPC_TIMEOUT_SEC"]))
        else:
            _PROVIDER = DevChain.for_target(SETTINGS.target)
        log.info("wallet provider: %s (chain %s)", BACKEND, SETTINGS.target.chain_id)
    return _PROVIDER


def get_contract_address() -> str:
    if BACKEND == "rpc":
        return SETTINGS.contract_address
    return t.cast(DevChain, get_provider()).contract

# ---- Helpers ----
def _serialize(obj: t.Any) -> t.Any:
    return json.loads(json.dumps(obj, default=lambda o: getattr(o, "__dict__", o)))


def _challenge_or_404(challenge_id: str) -> Challenge:
    try:
        return get_challenge(challenge_id)
    except ChallengeNotFound:
        raise HTTPException(404, "challenge not found")


def _serialize_challenge(c: Challenge) -> dict[str, t.Any]:
    return {
        "id": c.id,
        "title": c.title,
        "category": c.category,
        "rubric": c.rubric.value,
        "prompt": c.prompt,
        "instructions": c.instructions,
        "placeholder": c.placeholder,
        "difficulty": c.difficulty,
        "min_length": c.min_length,
    }


def _proof_record(result: ProofResult, *, fid: int | None) -> dict[str, t.Any]:
    pid = str(uuid.uuid4())
    onchain = _serialize(result.onchain) if result.onchain else None
    hint = None
    if result.error_kind:
        hint = guidance(
            ErrorKind(result.error_kind),
            chain_id=SETTINGS.target.chain_id,
            chain_name=SETTINGS.target.name,
            tx_url=(result.onchain.explorer_url if result.onchain else None) or SETTINGS.target.explorer_url,
        )
    return {
        "id": pid,
        "created_at": utcnow_iso(),
        "challenge_id": result.challenge_id,
        "fid": fid,
        "status": result.status,
        "passed": result.passed,
        "score": result.breakdown.total,
        "breakdown": _serialize(result.breakdown),
        "feedback": result.breakdown.feedback,
        "credential_number": result.credential_number,
        "onchain": onchain,
        "onchain_note": result.onchain_note,
        "error_kind": result.error_kind,
        "guidance": hint,
        "audit_events": result.events,
    }

# ---- Health ----
@app.get("/health")
def health():
    return {
        "ledger_backend": BACKEND,
        "chain_id": SETTINGS.target.chain_id,
        "chain_name": SETTINGS.target.name,
        "contract_configured": BACKEND == "dev" or SETTINGS.contract_configured,
    }

# ---- Challenges ----
@app.get("/challenges")
def list_challenges(category: str | None = None, difficulty: str | None = None):
    items = list(load_challenges())
    if category:
        items = challenges_by_category(category)
    if difficulty:
        wanted = {c.id for c in challenges_by_difficulty(difficulty)}
        items = [c for c in items if c.id in wanted]
    return {"challenges": [_serialize_challenge(c) for c in items]}


@app.get("/challenges/random")
def pick_challenge():
    return {"challenge": _serialize_challenge(random_challenge())}


@app.get("/challenges/{challenge_id}")
def read_challenge(challenge_id: str):
    return {"challenge": _serialize_challenge(_challenge_or_404(challenge_id))}

# ---- Scoring ----
@app.post("/score")
def score_answer(req: ScoreReq):
    challenge = _challenge_or_404(req.challenge_id)
    breakdown = score(req.answer, challenge.rubric)
    return {"challenge_id": challenge.id, **_serialize(breakdown)}

# ---- Proofs ----
@app.post("/proofs")
async def create_proof(
    req: ProofReq,
    provider: WalletProvider = Depends(get_provider),
    contract: str = Depends(get_contract_address),
):
    challenge = _challenge_or_404(req.challenge_id)
    pipeline = ProofPipeline(
        provider,
        SETTINGS.target,
        contract,
        confirm_timeout=float(CFG["CONFIRM_TIMEOUT_SEC"]),
        poll_interval=float(CFG["CONFIRM_POLL_SEC"]),
    )
    result = await pipeline.run(Submission(text=req.answer, challenge=challenge), fid=req.fid)
    record = _proof_record(result, fid=req.fid)
    summary = {
        "challengeId": challenge.id,
        "createdAt": record["created_at"],
        "status": record["status"],
        "score": record["score"],
        "credentialNumber": record["credential_number"],
        "txHash": (record["onchain"] or {}).get("tx_hash"),
    }
    save_proof(record, summary)
    return record


@app.get("/proofs/{proof_id}")
def get_proof(proof_id: str):
    record = load_proof(proof_id)
    if not record:
        raise HTTPException(404, "proof not found")
    return record


@app.get("/proofs/{proof_id}/audit.json")
def get_audit_json(proof_id: str):
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")

    record = load_proof(proof_id)
    if not record:
        raise HTTPException(404, "proof not found")

    payload = audit_to_json(record.get("audit_events") or [])
    return {"proof_id": proof_id, **payload}


@app.get("/proofs/{proof_id}/audit.csv")
def get_audit_csv(proof_id: str):
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")

    record = load_proof(proof_id)
    if not record:
        raise HTTPException(404, "proof not found")

    body = audit_to_csv(record.get("audit_events") or [])
    filename = f"{proof_id}_audit.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )


@app.get("/fids/{fid}/proofs")
def list_proofs(fid: int):
    return {"proofs": list_proofs_for_fid(fid)}

# ---- Ledger reads ----
@app.get("/ledger/{address}/credentials")
async def list_credentials(
    address: str,
    provider: WalletProvider = Depends(get_provider),
    contract: str = Depends(get_contract_address),
    limit: int = Query(50, ge=1, le=500),
):
    if not is_address(address):
        raise HTTPException(400, "invalid address")
    ledger = ContractLedger(provider, contract)
    try:
        creds = await ledger.list_credentials(address)
    except ProviderRpcError as exc:
        raise HTTPException(502, f"ledger read failed: {exc.message}")
    return {"address": address, "count": len(creds), "credentials": _serialize(creds[:limit])}
