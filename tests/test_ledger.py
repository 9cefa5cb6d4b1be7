from __future__ import annotations

import pytest
from eth_utils import keccak

from proof_core import ledger as L
from proof_core.devchain import DEV_ACCOUNT
from proof_core.errors import CredentialNotFound
from proof_core.provider import ProviderRpcError
from proof_core.types import Credential

OTHER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


def test_selectors_match_abi_signatures():
    assert L.ISSUE_SELECTOR == keccak(text="issueCredential(uint256,string)")[:4]
    assert L.COUNT_SELECTOR == keccak(text="getCredentialCount(address)")[:4]
    assert L.GET_SELECTOR == keccak(text="getCredential(address,uint256)")[:4]
    assert L.CREDENTIAL_ISSUED_TOPIC == keccak(text="CredentialIssued(address,uint256,string,uint256)")


def test_issue_calldata_layout():
    data = L.encode_issue(7, "x")
    raw = bytes.fromhex(data[2:])
    # selector + fid + string offset + string length + one padded word
    assert len(raw) == 4 + 32 * 4
    assert raw[:4] == L.ISSUE_SELECTOR
    assert int.from_bytes(raw[4:36], "big") == 7
    assert L.decode_issue_args(raw[4:]) == (7, "x")


def test_in_memory_ledger_is_append_only_and_ordered():
    ledger = L.InMemoryLedger()
    for i in range(3):
        ledger.append(DEV_ACCOUNT, 100 + i, f"skill-{i}", 1000 + i)
    assert ledger.get_credential_count(DEV_ACCOUNT) == 3
    assert ledger.get_credential_count(DEV_ACCOUNT.lower()) == 3
    assert [c.fid for c in ledger.credentials(DEV_ACCOUNT)] == [100, 101, 102]
    assert ledger.get_credential(DEV_ACCOUNT, 1).skill_name == "skill-1"
    assert ledger.get_credential_count(OTHER) == 0


def test_in_memory_ledger_out_of_bounds():
    ledger = L.InMemoryLedger()
    ledger.append(DEV_ACCOUNT, 1, "a", 1)
    with pytest.raises(CredentialNotFound):
        ledger.get_credential(DEV_ACCOUNT, 1)
    with pytest.raises(IndexError):
        ledger.get_credential(DEV_ACCOUNT, -1)
    with pytest.raises(CredentialNotFound):
        ledger.get_credential(OTHER, 0)


def test_issued_event_found_only_for_our_contract(chain):
    cred = Credential(owner=DEV_ACCOUNT, fid=9, skill_name="Business English", issued_at=1234)
    entry = L.encode_credential_issued(chain.contract, cred)
    receipt = {"logs": [dict(entry, address=OTHER), entry]}
    assert L.find_issued(receipt, chain.contract) == cred
    assert L.find_issued({"logs": [dict(entry, address=OTHER)]}, chain.contract) is None
    assert L.find_issued({"logs": []}, chain.contract) is None


def test_issue_tx_binds_owner_to_sender(chain):
    tx = L.ContractLedger(chain, chain.contract).issue_credential_tx(DEV_ACCOUNT.lower(), 3, "Negotiation")
    assert tx == {"from": DEV_ACCOUNT, "to": chain.contract, "data": L.encode_issue(3, "Negotiation")}


@pytest.mark.asyncio
async def test_contract_reads_through_provider(chain):
    chain.ledger.append(DEV_ACCOUNT, 11, "Business English", 50)
    chain.ledger.append(DEV_ACCOUNT, 12, "Business Communication", 60)
    client = L.ContractLedger(chain, chain.contract)
    assert await client.get_credential_count(DEV_ACCOUNT) == 2
    creds = await client.list_credentials(DEV_ACCOUNT)
    assert [(c.fid, c.skill_name, c.issued_at) for c in creds] == [
        (11, "Business English", 50),
        (12, "Business Communication", 60),
    ]
    with pytest.raises(CredentialNotFound):
        await client.get_credential(DEV_ACCOUNT, 2)


@pytest.mark.asyncio
async def test_reads_against_wrong_chain_surface_provider_error(foreign_chain):
    client = L.ContractLedger(foreign_chain, foreign_chain.contract)
    with pytest.raises(ProviderRpcError):
        await client.get_credential_count(DEV_ACCOUNT)
