from __future__ import annotations

import random
import re

import pytest

from proof_core.devchain import DevChain
from proof_core.errors import ErrorKind
from proof_core.pipeline import (
    NO_WALLET_NOTE,
    BadgeMetadata,
    ProofPipeline,
    generate_credential_number,
    validate_badge_metadata,
)
from proof_core.types import RubricKind, Submission

from conftest import FIXED_NOW, make_challenge


def _pipeline(provider, target, contract=None):
    return ProofPipeline(
        provider, target, contract or getattr(provider, "contract", "0x" + "00" * 20),
        confirm_timeout=1.0, poll_interval=0.01,
        rng=random.Random(1), clock=lambda: FIXED_NOW,
    )


def test_credential_number_format():
    num = generate_credential_number(1_700_000_000_123, random.Random(0))
    assert re.fullmatch(r"1700000000123-\d{1,4}-SKL", num)


def test_badge_metadata_requires_fid():
    meta = BadgeMetadata(fid=0, challenge_id="email-1", credential_number="1-2-SKL",
                         category="Business English", timestamp=1)
    assert not validate_badge_metadata(meta)
    assert validate_badge_metadata(BadgeMetadata(7, "email-1", "1-2-SKL", "Business English", 1))


@pytest.mark.asyncio
async def test_rejected_answer_never_touches_the_chain(chain, target):
    sub = Submission(text="hey thx asap", challenge=make_challenge())
    res = await _pipeline(chain, target).run(sub, fid=7)
    assert not res.passed
    assert res.status == "rejected"
    assert res.error_kind == ErrorKind.SCORING_REJECTED.value
    assert res.credential_number is None and res.onchain is None
    assert chain.calls == []
    assert [e["phase"] for e in res.events] == ["score"]


@pytest.mark.asyncio
async def test_passing_without_fid_is_verified_locally(chain, target, email_submission):
    res = await _pipeline(chain, target).run(email_submission)
    assert res.passed and res.status == "verified"
    assert res.onchain is None
    assert res.onchain_note == NO_WALLET_NOTE
    assert res.credential_number.endswith("-SKL")
    assert chain.calls == []


@pytest.mark.asyncio
async def test_passing_without_provider(target, email_submission):
    res = await _pipeline(None, target, contract="0x" + "11" * 20).run(email_submission, fid=3)
    assert res.status == "verified"
    assert res.onchain_note == NO_WALLET_NOTE


@pytest.mark.asyncio
async def test_full_mint(chain, target, email_submission):
    res = await _pipeline(chain, target).run(email_submission, fid=7)
    assert res.status == "confirmed"
    assert res.error_kind is None
    assert res.credential_number.startswith(f"{int(FIXED_NOW * 1000)}-")
    assert res.metadata.fid == 7
    assert res.metadata.category == "Business English"
    assert res.onchain.credential.skill_name == "Business English"
    assert [e["phase"] for e in res.events] == ["score", "reconcile", "simulate", "submit", "confirm"]


@pytest.mark.asyncio
async def test_mint_after_network_switch(foreign_chain, target, email_submission):
    res = await _pipeline(foreign_chain, target).run(email_submission, fid=7)
    assert res.status == "confirmed"
    reconcile = [e for e in res.events if e["phase"] == "reconcile"][0]
    assert reconcile["error_kind"] == ErrorKind.NETWORK_MISMATCH.value
    assert "AddingChain" in reconcile["detail"]


@pytest.mark.asyncio
async def test_reconciliation_failure_keeps_local_verdict(foreign_chain, target, email_submission):
    foreign_chain.reject_add = True
    res = await _pipeline(foreign_chain, target).run(email_submission, fid=7)
    assert res.passed
    assert res.status == "failed"
    assert res.error_kind == ErrorKind.RECONCILIATION_FAILED.value
    assert foreign_chain.count("eth_sendTransaction") == 0
    assert foreign_chain.count("eth_call") == 0


@pytest.mark.asyncio
async def test_pending_when_confirmation_times_out(chain, target):
    chain.auto_mine = False
    pipe = _pipeline(chain, target)
    pipe.confirm_timeout = 0.05
    sub = Submission(
        text="We are excited to unveil our new platform. It will transform how teams work.",
        challenge=make_challenge(rubric=RubricKind.PRESENTATION_INTRO, category="Business Communication",
                                 min_length=30),
    )
    res = await pipe.run(sub, fid=9)
    assert res.status == "pending"
    assert res.error_kind == ErrorKind.SUBMISSION_TIMEOUT.value
    assert res.onchain.tx_hash


@pytest.mark.asyncio
async def test_each_passing_run_writes_a_new_entry(target, email_submission):
    chain = DevChain.for_target(target, clock=lambda: FIXED_NOW)
    pipe = _pipeline(chain, target)
    await pipe.run(email_submission, fid=7)
    await pipe.run(email_submission, fid=7)
    assert chain.ledger.get_credential_count(chain.accounts[0]) == 2
