# proof_core/submitter.py
"""Simulate -> submit -> confirm for ``issueCredential``.

Each phase runs once. A failure aborts the remaining phases; nothing is
retried here, so a user sees exactly one signature request per passing
answer.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Optional

from .audit_export import AuditTrail
from .classifier import classify_exception
from .config import CONFIRM_TIMEOUT_SEC, CONFIRM_POLL_SEC
from .errors import ErrorKind, guidance
from .ledger import ContractLedger, find_issued
from .provider import ProviderRpcError, WalletProvider, to_int
from .types import ChainTarget, TransactionOutcome, TxState

log = logging.getLogger(__name__)


class TransactionSubmitter:
    def __init__(
        self,
        provider: WalletProvider,
        target: ChainTarget,
        contract_address: str,
        *,
        confirm_timeout: float = CONFIRM_TIMEOUT_SEC,
        poll_interval: float = CONFIRM_POLL_SEC,
        audit: Optional[AuditTrail] = None,
    ) -> None:
        if confirm_timeout <= 0:
            raise ValueError("confirm_timeout must be positive")
        self.provider = provider
        self.target = target
        self.ledger = ContractLedger(provider, contract_address)
        self.confirm_timeout = float(confirm_timeout)
        self.poll_interval = float(poll_interval)
        self.audit = audit or AuditTrail()

    def _note(self, phase: str, state: str, **fields: Any) -> None:
        self.audit.record(phase, state, chain_id=self.target.chain_id, **fields)

    def _failed(self, phase: str, kind: ErrorKind, raw: str, tx_hash: Optional[str] = None) -> TransactionOutcome:
        log.warning("%s failed (%s): %s", phase, kind.value, raw)
        self._note(phase, TxState.FAILED.value, tx_hash=tx_hash, error_kind=kind.value, detail=raw)
        return TransactionOutcome(
            state=TxState.FAILED,
            tx_hash=tx_hash,
            error_kind=kind.value,
            message=raw,
            explorer_url=self.target.tx_url(tx_hash) if tx_hash else None,
        )

    async def signer(self) -> str:
        accounts = await self.provider.request("eth_accounts", [])
        if not accounts:
            raise ProviderRpcError(4100, "No wallet account found. Please connect your wallet.")
        return str(accounts[0])

    async def _await_receipt(self, tx_hash: str) -> Dict[str, Any]:
        while True:
            try:
                receipt = await self.provider.request("eth_getTransactionReceipt", [tx_hash])
            except ProviderRpcError as exc:
                log.debug("receipt poll for %s failed: %s", tx_hash, exc.message)
                receipt = None
            if receipt:
                return receipt
            await asyncio.sleep(self.poll_interval)

    async def issue(self, fid: int, skill_name: str) -> TransactionOutcome:
        """Write one credential for the connected signer."""
        try:
            sender = await self.signer()
        except ProviderRpcError as exc:
            kind, raw = classify_exception(exc)
            return self._failed("submit", kind, raw)
        tx = self.ledger.issue_credential_tx(sender, fid, skill_name)

        try:
            await self.provider.request("eth_call", [tx, "latest"])
        except ProviderRpcError as exc:
            _, raw = classify_exception(exc)
            return self._failed("simulate", ErrorKind.SIMULATION_REVERTED, raw)
        self._note("simulate", TxState.SIMULATED.value)

        try:
            tx_hash = str(await self.provider.request("eth_sendTransaction", [tx]))
        except ProviderRpcError as exc:
            kind, raw = classify_exception(exc)
            return self._failed("submit", kind, raw)
        log.info("credential tx submitted: %s", tx_hash)
        self._note("submit", TxState.SUBMITTED.value, tx_hash=tx_hash)

        url = self.target.tx_url(tx_hash)
        try:
            receipt = await asyncio.wait_for(self._await_receipt(tx_hash), timeout=self.confirm_timeout)
        except asyncio.TimeoutError:
            msg = guidance(ErrorKind.SUBMISSION_TIMEOUT, tx_url=url)
            log.warning("no receipt for %s within %.1fs", tx_hash, self.confirm_timeout)
            self._note("confirm", TxState.SUBMITTED.value, tx_hash=tx_hash,
                       error_kind=ErrorKind.SUBMISSION_TIMEOUT.value, detail=msg)
            # outcome unknown: still Submitted, never Confirmed or Failed
            return TransactionOutcome(
                state=TxState.SUBMITTED,
                tx_hash=tx_hash,
                error_kind=ErrorKind.SUBMISSION_TIMEOUT.value,
                message=msg,
                explorer_url=url,
            )

        try:
            status = to_int(receipt.get("status", "0x1"))
        except (TypeError, ValueError):
            raw = f"receipt for {tx_hash} has unreadable status {receipt.get('status')!r}"
            log.warning("%s", raw)
            self._note("confirm", TxState.SUBMITTED.value, tx_hash=tx_hash,
                       error_kind=ErrorKind.UNKNOWN.value, detail=raw)
            # included, but the outcome cannot be read: never report it as Confirmed
            return TransactionOutcome(state=TxState.SUBMITTED, tx_hash=tx_hash,
                                      error_kind=ErrorKind.UNKNOWN.value, message=raw, explorer_url=url)
        if status != 1:
            return self._failed("confirm", ErrorKind.TRANSACTION_REVERTED,
                                guidance(ErrorKind.TRANSACTION_REVERTED), tx_hash=tx_hash)

        cred = find_issued(receipt, self.ledger.address)
        log.info("credential tx confirmed: %s", tx_hash)
        self._note("confirm", TxState.CONFIRMED.value, tx_hash=tx_hash)
        return TransactionOutcome(state=TxState.CONFIRMED, tx_hash=tx_hash, explorer_url=url, credential=cred)
