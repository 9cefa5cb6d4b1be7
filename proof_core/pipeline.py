"""Submission -> verdict -> reconciled chain -> credential write.

The local verdict and the on-chain proof are reported separately: a
passing answer stays passed even when minting fails, and a failed or
ambiguous write is never reported as a credential.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .audit_export import AuditTrail
from .config import CONFIRM_TIMEOUT_SEC, CONFIRM_POLL_SEC, CREDENTIAL_SUFFIX
from .errors import ErrorKind, ReconciliationFailed
from .provider import WalletProvider
from .reconciler import NetworkReconciler, NetworkState
from .scoring import score
from .submitter import TransactionSubmitter
from .types import ChainTarget, ScoreBreakdown, Submission, TransactionOutcome, TxState

log = logging.getLogger(__name__)

NO_WALLET_NOTE = "Connect wallet to mint onchain credential"


@dataclass(frozen=True)
class BadgeMetadata:
    fid: int
    challenge_id: str
    credential_number: str
    category: str
    timestamp: int
    score: Optional[int] = None


def generate_credential_number(now_ms: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    ms = int(time.time() * 1000) if now_ms is None else int(now_ms)
    return f"{ms}-{(rng or random).randrange(10000)}-{CREDENTIAL_SUFFIX}"


def validate_badge_metadata(meta: BadgeMetadata) -> bool:
    return bool(meta.fid and meta.challenge_id and meta.credential_number and meta.category and meta.timestamp)


@dataclass(frozen=True)
class ProofResult:
    challenge_id: str
    breakdown: ScoreBreakdown
    credential_number: Optional[str] = None
    metadata: Optional[BadgeMetadata] = None
    onchain: Optional[TransactionOutcome] = None
    onchain_note: Optional[str] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.breakdown.passed

    @property
    def error_kind(self) -> Optional[str]:
        if not self.breakdown.passed:
            return ErrorKind.SCORING_REJECTED.value
        return self.onchain.error_kind if self.onchain else None

    @property
    def status(self) -> str:
        if not self.breakdown.passed: return "rejected"
        if self.onchain is None: return "verified"
        if self.onchain.confirmed: return "confirmed"
        if self.onchain.state is TxState.SUBMITTED: return "pending"
        return "failed"


class ProofPipeline:
    def __init__(
        self,
        provider: Optional[WalletProvider],
        target: ChainTarget,
        contract_address: str,
        *,
        confirm_timeout: float = CONFIRM_TIMEOUT_SEC,
        poll_interval: float = CONFIRM_POLL_SEC,
        rng: Optional[random.Random] = None,
        clock=time.time,
    ) -> None:
        self.provider = provider
        self.target = target
        self.contract_address = contract_address
        self.confirm_timeout = confirm_timeout
        self.poll_interval = poll_interval
        self.rng = rng
        self.clock = clock

    async def run(self, submission: Submission, fid: Optional[int] = None) -> ProofResult:
        challenge = submission.challenge
        audit = AuditTrail()
        breakdown = score(submission.text, challenge.rubric)
        if not breakdown.passed:
            log.info("challenge %s rejected at %d", challenge.id, breakdown.total)
            audit.record("score", "rejected", error_kind=ErrorKind.SCORING_REJECTED.value,
                         detail=f"{breakdown.total}/100")
            return ProofResult(challenge_id=challenge.id, breakdown=breakdown, events=audit.events)
        audit.record("score", "passed", detail=f"{breakdown.total}/100")

        now_ms = int(self.clock() * 1000)
        number = generate_credential_number(now_ms, self.rng)
        meta = BadgeMetadata(
            fid=int(fid or 0), challenge_id=challenge.id, credential_number=number,
            category=challenge.category, timestamp=now_ms, score=breakdown.total,
        )
        if self.provider is None or not validate_badge_metadata(meta):
            audit.record("mint", "skipped", detail=NO_WALLET_NOTE)
            return ProofResult(challenge_id=challenge.id, breakdown=breakdown, credential_number=number,
                               metadata=meta, onchain_note=NO_WALLET_NOTE, events=audit.events)

        reconciler = NetworkReconciler(self.provider, self.target)
        try:
            await reconciler.reconcile()
        except ReconciliationFailed as exc:
            audit.record("reconcile", NetworkState.FAILED.value, chain_id=reconciler.observed_chain_id,
                         error_kind=exc.kind.value, detail=exc.raw)
            outcome = TransactionOutcome(state=TxState.FAILED, error_kind=exc.kind.value, message=str(exc))
            return ProofResult(challenge_id=challenge.id, breakdown=breakdown, credential_number=number,
                               metadata=meta, onchain=outcome, events=audit.events)
        switched = NetworkState.SWITCHING in reconciler.history
        audit.record(
            "reconcile", NetworkState.CORRECT.value, chain_id=self.target.chain_id,
            error_kind=ErrorKind.NETWORK_MISMATCH.value if switched else None,
            detail=" -> ".join(s.value for s in reconciler.history),
        )

        submitter = TransactionSubmitter(
            self.provider, self.target, self.contract_address,
            confirm_timeout=self.confirm_timeout, poll_interval=self.poll_interval, audit=audit,
        )
        outcome = await submitter.issue(meta.fid, challenge.category)
        return ProofResult(challenge_id=challenge.id, breakdown=breakdown, credential_number=number,
                           metadata=meta, onchain=outcome, events=audit.events)
