# proof_core/reconciler.py
from __future__ import annotations
import logging
from enum import Enum
from typing import List, NoReturn, Optional, Sequence

from .classifier import classify_exception
from .config import UNRECOGNIZED_CHAIN_CODES
from .errors import ReconciliationFailed, guidance, ErrorKind
from .provider import ProviderRpcError, WalletProvider, to_int
from .types import ChainTarget

log = logging.getLogger(__name__)


class NetworkState(str, Enum):
    UNKNOWN = "Unknown"
    CORRECT = "Correct"
    MISMATCHED = "Mismatched"
    SWITCHING = "Switching"
    ADDING_CHAIN = "AddingChain"
    FAILED = "Failed"


class NetworkReconciler:
    """Bring the wallet onto ``target`` before any ledger write.

    At most one add-chain request and one retry switch are issued per
    reconciliation; anything else ends in ``Failed``.
    """

    def __init__(
        self,
        provider: WalletProvider,
        target: ChainTarget,
        *,
        unrecognized_codes: Sequence[int] = UNRECOGNIZED_CHAIN_CODES,
    ) -> None:
        self.provider = provider
        self.target = target
        self.unrecognized_codes = tuple(unrecognized_codes)
        self.state = NetworkState.UNKNOWN
        self.history: List[NetworkState] = [NetworkState.UNKNOWN]
        self.error: Optional[ReconciliationFailed] = None
        self.observed_chain_id: Optional[int] = None

    def _enter(self, state: NetworkState) -> None:
        log.debug("network %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _fail(self, message: str, exc: Optional[BaseException] = None) -> NoReturn:
        cause, raw = (classify_exception(exc) if exc is not None else (ErrorKind.WRONG_NETWORK, message))
        hint = guidance(ErrorKind.RECONCILIATION_FAILED, chain_id=self.target.chain_id, chain_name=self.target.name)
        err = ReconciliationFailed(f"{message}. {hint}", target_chain_id=self.target.chain_id, cause=cause, raw=raw)
        self.error = err
        self._enter(NetworkState.FAILED)
        log.warning("network reconciliation failed (target=%s): %s", self.target.chain_id, raw)
        raise err from exc

    def _is_unrecognized(self, exc: ProviderRpcError) -> bool:
        if exc.code in self.unrecognized_codes:
            return True
        return "unrecognized chain" in str(exc.message).lower()

    async def current_chain_id(self) -> int:
        raw = await self.provider.request("eth_chainId", [])
        try:
            cid = to_int(raw)
        except (TypeError, ValueError):
            raise ProviderRpcError(-32603, f"eth_chainId returned {raw!r}") from None
        self.observed_chain_id = cid
        return cid

    async def _switch(self) -> None:
        await self.provider.request("wallet_switchEthereumChain", [{"chainId": self.target.chain_id_hex}])

    async def _add(self) -> None:
        await self.provider.request("wallet_addEthereumChain", [self.target.add_chain_params()])

    async def reconcile(self) -> NetworkState:
        try:
            current = await self.current_chain_id()
        except ProviderRpcError as exc:
            self._fail("could not read the wallet chain id", exc)
        if current == self.target.chain_id:
            self._enter(NetworkState.CORRECT)
            return self.state

        log.info("wallet on chain %s, target %s; switching", current, self.target.chain_id)
        self._enter(NetworkState.MISMATCHED)
        self._enter(NetworkState.SWITCHING)
        try:
            await self._switch()
        except ProviderRpcError as exc:
            if not self._is_unrecognized(exc):
                self._fail("wallet refused to switch networks", exc)
            self._enter(NetworkState.ADDING_CHAIN)
            try:
                await self._add()
            except ProviderRpcError as add_exc:
                self._fail(f"wallet refused to add {self.target.name}", add_exc)
            self._enter(NetworkState.SWITCHING)
            try:
                await self._switch()
            except ProviderRpcError as retry_exc:
                self._fail("wallet refused to switch after adding the network", retry_exc)

        try:
            current = await self.current_chain_id()
        except ProviderRpcError as exc:
            self._fail("could not confirm the wallet chain id", exc)
        if current != self.target.chain_id:
            self._fail(f"wallet still on chain {current} after switching")
        self._enter(NetworkState.CORRECT)
        return self.state
