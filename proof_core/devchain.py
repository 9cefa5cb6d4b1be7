# proof_core/devchain.py
"""In-process wallet + chain for local runs and tests.

Speaks the same ``request(method, params)`` dialect as a browser wallet and
hosts a single ledger contract backed by :class:`InMemoryLedger`. Knobs on
the instance reproduce the wallet/chain failures the pipeline must handle.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from eth_abi import decode, encode
from eth_utils import decode_hex, encode_hex, keccak, to_checksum_address

from . import ledger as abi
from .provider import ProviderRpcError, to_int
from .types import ChainTarget

log = logging.getLogger(__name__)

DEV_ACCOUNT = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DEV_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
DEV_BALANCE_WEI = 10 ** 21
TX_FEE_WEI = 21_000 * 10 ** 9


class DevChain:
    def __init__(
        self,
        *,
        chain_id: int,
        ledger_chain_id: Optional[int] = None,
        accounts: Sequence[str] = (DEV_ACCOUNT,),
        contract: str = DEV_CONTRACT,
        known_chains: Iterable[int] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.chain_id = int(chain_id)
        self.ledger_chain_id = int(ledger_chain_id if ledger_chain_id is not None else chain_id)
        self.accounts = [to_checksum_address(a) for a in accounts]
        self.contract = to_checksum_address(contract)
        self.known_chains: Set[int] = {self.chain_id, *known_chains}
        self.clock = clock
        self.ledger = abi.InMemoryLedger()
        self.balances: Dict[str, int] = {a: DEV_BALANCE_WEI for a in self.accounts}
        self.block_number = 0
        self.calls: List[Tuple[str, list]] = []
        self._nonces: Dict[str, int] = {}
        self._pending: List[Dict[str, Any]] = []
        self._receipts: Dict[str, Dict[str, Any]] = {}
        # failure knobs
        self.reject_switch = False
        self.reject_add = False
        self.ignore_switch = False
        self.reject_signatures = False
        self.revert_reason: Optional[str] = None
        self.fail_execution = False
        self.auto_mine = True
        self.send_error: Optional[ProviderRpcError] = None

    @classmethod
    def for_target(cls, target: ChainTarget, **kwargs: Any) -> "DevChain":
        kwargs.setdefault("chain_id", target.chain_id)
        kwargs.setdefault("ledger_chain_id", target.chain_id)
        return cls(**kwargs)

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        p = list(params or [])
        self.calls.append((method, p))
        handler = getattr(self, "_rpc_" + method, None)
        if handler is None:
            raise ProviderRpcError(4200, f"The Provider does not support the requested method: {method}")
        return handler(p)

    # -- wallet ---------------------------------------------------------
    def _rpc_eth_chainId(self, p: list) -> str:
        return hex(self.chain_id)

    def _rpc_eth_accounts(self, p: list) -> List[str]:
        return list(self.accounts)

    _rpc_eth_requestAccounts = _rpc_eth_accounts

    def _rpc_wallet_switchEthereumChain(self, p: list) -> None:
        if self.reject_switch:
            raise ProviderRpcError(4001, "User rejected the request.")
        wanted = to_int(p[0]["chainId"])
        if wanted not in self.known_chains:
            raise ProviderRpcError(4902, f"Unrecognized chain ID \"{hex(wanted)}\". Try adding the chain using wallet_addEthereumChain first.")
        if not self.ignore_switch:
            self.chain_id = wanted
        return None

    def _rpc_wallet_addEthereumChain(self, p: list) -> None:
        if self.reject_add:
            raise ProviderRpcError(4001, "User rejected the request.")
        desc = p[0]
        if not desc.get("rpcUrls") or not desc.get("chainName"):
            raise ProviderRpcError(-32602, "Invalid chain descriptor")
        self.known_chains.add(to_int(desc["chainId"]))
        return None

    # -- chain ----------------------------------------------------------
    def _hosts_contract(self, to: Any) -> bool:
        return bool(to) and self.chain_id == self.ledger_chain_id and to_checksum_address(to) == self.contract

    def _execute_view(self, tx: Dict[str, Any]) -> str:
        if not self._hosts_contract(tx.get("to")):
            raise ProviderRpcError(3, "execution reverted")
        selector, args = abi.split_call(tx.get("data"))
        if selector == abi.ISSUE_SELECTOR:
            abi.decode_issue_args(args)
            if self.revert_reason:
                raise ProviderRpcError(3, f"execution reverted: {self.revert_reason}")
            return "0x"
        if selector == abi.COUNT_SELECTOR:
            owner = decode(["address"], args)[0]
            return encode_hex(encode(["uint256"], [self.ledger.get_credential_count(owner)]))
        if selector == abi.GET_SELECTOR:
            owner, index = decode(["address", "uint256"], args)
            if index >= self.ledger.get_credential_count(owner):
                raise ProviderRpcError(3, "execution reverted: index out of bounds")
            c = self.ledger.get_credential(owner, index)
            return encode_hex(encode(["uint256", "string", "uint256"], [c.fid, c.skill_name, c.issued_at]))
        raise ProviderRpcError(3, "execution reverted: unknown selector")

    def _rpc_eth_call(self, p: list) -> str:
        return self._execute_view(p[0])

    def _rpc_eth_sendTransaction(self, p: list) -> str:
        tx = dict(p[0])
        if self.send_error is not None:
            raise self.send_error
        if self.reject_signatures:
            raise ProviderRpcError(4001, "User rejected the request.")
        sender = to_checksum_address(tx["from"]) if tx.get("from") else None
        if sender not in self.accounts:
            raise ProviderRpcError(4100, "The requested account and/or method has not been authorized by the user.")
        if self.balances.get(sender, 0) < TX_FEE_WEI:
            raise ProviderRpcError(-32000, "insufficient funds for gas * price + value")
        self.balances[sender] -= TX_FEE_WEI
        nonce = self._nonces.get(sender, 0)
        self._nonces[sender] = nonce + 1
        tx_hash = encode_hex(keccak(encode(["address", "uint256", "bytes"], [sender, nonce, decode_hex(tx.get("data") or "0x")])))
        self._pending.append({"hash": tx_hash, "tx": tx, "from": sender})
        if self.auto_mine:
            self.mine()
        return tx_hash

    def _rpc_eth_getTransactionReceipt(self, p: list) -> Optional[Dict[str, Any]]:
        return self._receipts.get(str(p[0]).lower())

    def _rpc_eth_blockNumber(self, p: list) -> str:
        return hex(self.block_number)

    def mine(self) -> int:
        """Include every pending transaction in a new block."""
        self.block_number += 1
        ts = int(self.clock())
        for pending in self._pending:
            self._receipts[pending["hash"].lower()] = self._include(pending, ts)
        mined = len(self._pending)
        self._pending = []
        log.debug("devchain block %d: %d tx", self.block_number, mined)
        return mined

    def _include(self, pending: Dict[str, Any], ts: int) -> Dict[str, Any]:
        tx, sender = pending["tx"], pending["from"]
        logs: List[Dict[str, Any]] = []
        ok = False
        if not self.fail_execution and self._hosts_contract(tx.get("to")):
            selector, args = abi.split_call(tx.get("data"))
            if selector == abi.ISSUE_SELECTOR and not self.revert_reason:
                fid, skill_name = abi.decode_issue_args(args)
                cred = self.ledger.append(sender, fid, skill_name, ts)
                logs.append(abi.encode_credential_issued(self.contract, cred))
                ok = True
        return {
            "transactionHash": pending["hash"],
            "blockNumber": hex(self.block_number),
            "from": sender,
            "to": tx.get("to"),
            "status": "0x1" if ok else "0x0",
            "logs": logs,
        }
