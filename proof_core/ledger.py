"""Credential ledger contract: ABI codecs, a provider-backed client and the
append-only in-memory log used by the dev chain.

ABI (must stay bit-exact with the deployed contract)::

    function issueCredential(uint256 fid, string skillName)
    event CredentialIssued(address indexed user, uint256 indexed fid, string skillName, uint256 timestamp)
    function getCredentialCount(address user) view returns (uint256)
    function getCredential(address user, uint256 index) view returns (uint256 fid, string skillName, uint256 completedAt)

Ownership is always the transaction signer; no call here takes an owner
argument for a write.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from eth_abi import decode, encode
from eth_utils import (
    decode_hex,
    encode_hex,
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
    to_checksum_address,
)

from .errors import CredentialNotFound
from .provider import ProviderRpcError, WalletProvider
from .types import Credential

log = logging.getLogger(__name__)

ISSUE_SIGNATURE = "issueCredential(uint256,string)"
COUNT_SIGNATURE = "getCredentialCount(address)"
GET_SIGNATURE = "getCredential(address,uint256)"
EVENT_SIGNATURE = "CredentialIssued(address,uint256,string,uint256)"

ISSUE_SELECTOR: bytes = function_signature_to_4byte_selector(ISSUE_SIGNATURE)
COUNT_SELECTOR: bytes = function_signature_to_4byte_selector(COUNT_SIGNATURE)
GET_SELECTOR: bytes = function_signature_to_4byte_selector(GET_SIGNATURE)
CREDENTIAL_ISSUED_TOPIC: bytes = event_signature_to_log_topic(EVENT_SIGNATURE)


def _as_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return decode_hex(str(data or "0x"))


def encode_issue(fid: int, skill_name: str) -> str:
    return encode_hex(ISSUE_SELECTOR + encode(["uint256", "string"], [int(fid), skill_name]))


def encode_count(owner: str) -> str:
    return encode_hex(COUNT_SELECTOR + encode(["address"], [to_checksum_address(owner)]))


def encode_get(owner: str, index: int) -> str:
    return encode_hex(GET_SELECTOR + encode(["address", "uint256"], [to_checksum_address(owner), int(index)]))


def split_call(data: Any) -> Tuple[bytes, bytes]:
    raw = _as_bytes(data)
    return raw[:4], raw[4:]


def decode_issue_args(args: bytes) -> Tuple[int, str]:
    fid, skill_name = decode(["uint256", "string"], args)
    return int(fid), skill_name


def decode_count(result: Any) -> int:
    (count,) = decode(["uint256"], _as_bytes(result))
    return int(count)


def decode_credential_result(result: Any) -> Tuple[int, str, int]:
    fid, skill_name, completed_at = decode(["uint256", "string", "uint256"], _as_bytes(result))
    return int(fid), skill_name, int(completed_at)


def encode_credential_issued(contract: str, cred: Credential) -> Dict[str, Any]:
    return {
        "address": to_checksum_address(contract),
        "topics": [
            encode_hex(CREDENTIAL_ISSUED_TOPIC),
            encode_hex(encode(["address"], [to_checksum_address(cred.owner)])),
            encode_hex(encode(["uint256"], [cred.fid])),
        ],
        "data": encode_hex(encode(["string", "uint256"], [cred.skill_name, cred.issued_at])),
    }


def decode_credential_issued(entry: Dict[str, Any]) -> Credential:
    topics = [_as_bytes(t) for t in entry.get("topics") or []]
    if len(topics) != 3 or topics[0] != CREDENTIAL_ISSUED_TOPIC:
        raise ValueError("log entry is not a CredentialIssued event")
    (owner,) = decode(["address"], topics[1])
    (fid,) = decode(["uint256"], topics[2])
    skill_name, ts = decode(["string", "uint256"], _as_bytes(entry.get("data")))
    return Credential(owner=to_checksum_address(owner), fid=int(fid), skill_name=skill_name, issued_at=int(ts))


def find_issued(receipt: Dict[str, Any], contract: str) -> Credential | None:
    want = to_checksum_address(contract)
    for entry in receipt.get("logs") or []:
        try:
            if to_checksum_address(entry.get("address", "")) != want:
                continue
            return decode_credential_issued(entry)
        except ValueError:
            continue
    return None


class InMemoryLedger:
    """Append-only credential log keyed by owner address.

    Index ``i`` of an owner's sequence never changes once written; there is
    no update or delete.
    """

    def __init__(self) -> None:
        self._log: Dict[str, List[Credential]] = {}

    def append(self, owner: str, fid: int, skill_name: str, issued_at: int) -> Credential:
        key = to_checksum_address(owner)
        cred = Credential(owner=key, fid=int(fid), skill_name=skill_name, issued_at=int(issued_at))
        self._log.setdefault(key, []).append(cred)
        return cred

    def get_credential_count(self, owner: str) -> int:
        return len(self._log.get(to_checksum_address(owner), ()))

    def get_credential(self, owner: str, index: int) -> Credential:
        key = to_checksum_address(owner)
        seq = self._log.get(key, [])
        if index < 0 or index >= len(seq):
            raise CredentialNotFound(key, index)
        return seq[index]

    def credentials(self, owner: str) -> Tuple[Credential, ...]:
        return tuple(self._log.get(to_checksum_address(owner), ()))


class ContractLedger:
    """Client for the deployed ledger contract, through a wallet provider."""

    def __init__(self, provider: WalletProvider, address: str) -> None:
        self.provider = provider
        self.address = to_checksum_address(address)

    def issue_credential_tx(self, sender: str, fid: int, skill_name: str) -> Dict[str, str]:
        return {"from": to_checksum_address(sender), "to": self.address, "data": encode_issue(fid, skill_name)}

    async def _call(self, data: str) -> Any:
        return await self.provider.request("eth_call", [{"to": self.address, "data": data}, "latest"])

    async def get_credential_count(self, owner: str) -> int:
        return decode_count(await self._call(encode_count(owner)))

    async def get_credential(self, owner: str, index: int) -> Credential:
        if index < 0:
            raise CredentialNotFound(to_checksum_address(owner), index)
        try:
            result = await self._call(encode_get(owner, index))
        except ProviderRpcError:
            if index >= await self.get_credential_count(owner):
                raise CredentialNotFound(to_checksum_address(owner), index) from None
            raise
        fid, skill_name, completed_at = decode_credential_result(result)
        return Credential(owner=to_checksum_address(owner), fid=fid, skill_name=skill_name, issued_at=completed_at)

    async def list_credentials(self, owner: str) -> List[Credential]:
        count = await self.get_credential_count(owner)
        return [await self.get_credential(owner, i) for i in range(count)]
