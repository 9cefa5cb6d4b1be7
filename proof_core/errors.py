"""Error taxonomy shared by the scoring and chain layers."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    SCORING_REJECTED = "ScoringRejected"
    NETWORK_MISMATCH = "NetworkMismatch"
    RECONCILIATION_FAILED = "ReconciliationFailed"
    SIMULATION_REVERTED = "SimulationReverted"
    USER_REJECTED_SIGNATURE = "UserRejectedSignature"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    WRONG_NETWORK = "WrongNetwork"
    SUBMISSION_TIMEOUT = "SubmissionTimeout"
    TRANSACTION_REVERTED = "TransactionReverted"
    UNKNOWN = "UnknownProviderError"


GUIDANCE: dict[ErrorKind, str] = {
    ErrorKind.SCORING_REJECTED: "Edit your answer and submit again.",
    ErrorKind.NETWORK_MISMATCH: "Your wallet is on a different network; switching automatically.",
    ErrorKind.RECONCILIATION_FAILED: "Switch your wallet to chain id {chain_id} ({chain_name}) manually and try again.",
    ErrorKind.SIMULATION_REVERTED: "The ledger contract rejected this credential. Change your inputs before trying again.",
    ErrorKind.USER_REJECTED_SIGNATURE: "You declined the signature request. Submit again when ready.",
    ErrorKind.INSUFFICIENT_FUNDS: "Your wallet cannot cover the network fee. Top it up and try again.",
    ErrorKind.WRONG_NETWORK: "Your wallet is connected to the wrong network. Switch to chain id {chain_id} and try again.",
    ErrorKind.SUBMISSION_TIMEOUT: "Confirmation is taking longer than expected. Check {tx_url} before trying again.",
    ErrorKind.TRANSACTION_REVERTED: "The transaction was included but reverted. No credential was recorded.",
    ErrorKind.UNKNOWN: "The wallet reported an unexpected error.",
}


def guidance(kind: ErrorKind, **context: object) -> str:
    text = GUIDANCE.get(kind, GUIDANCE[ErrorKind.UNKNOWN])
    try:
        return text.format(**context)
    except (KeyError, IndexError):
        return text


class ProofError(Exception):
    """Base for classified failures raised inside the proof pipeline."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, kind: Optional[ErrorKind] = None, raw: Optional[str] = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.raw = raw if raw is not None else message


class ReconciliationFailed(ProofError):
    kind = ErrorKind.RECONCILIATION_FAILED

    def __init__(self, message: str, *, target_chain_id: int, cause: Optional[ErrorKind] = None,
                 raw: Optional[str] = None) -> None:
        super().__init__(message, raw=raw)
        self.target_chain_id = target_chain_id
        self.cause = cause


class CredentialNotFound(IndexError):
    def __init__(self, owner: str, index: int) -> None:
        super().__init__(f"no credential #{index} for {owner}")
        self.owner = owner
        self.index = index


class ChallengeNotFound(KeyError):
    pass
