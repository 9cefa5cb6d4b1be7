from __future__ import annotations

import random

import pytest

from proof_core.chain_cfg import SONEIUM_MINATO
from proof_core.devchain import DevChain
from proof_core.types import ChainTarget, Challenge, RubricKind, Submission

FIXED_NOW = 1_700_000_000.0

PROFESSIONAL_EMAIL = "Dear team, I apologize for the delay; I will send the report by Friday. Best regards"


def make_challenge(
    *,
    rubric: RubricKind = RubricKind.CORRESPONDENCE_REWRITE,
    category: str = "Business English",
    min_length: int = 20,
) -> Challenge:
    """Deterministic challenge independent of the bundled catalogue."""

    return Challenge(
        id=f"test-{rubric.value}",
        category=category,
        rubric=rubric,
        prompt="hey, can u send me that report? need it asap. thx",
        min_length=min_length,
        title="Test challenge",
    )


@pytest.fixture
def target() -> ChainTarget:
    return SONEIUM_MINATO


@pytest.fixture
def chain(target) -> DevChain:
    return DevChain.for_target(target, clock=lambda: FIXED_NOW)


@pytest.fixture
def foreign_chain(target) -> DevChain:
    """Wallet on mainnet that has never seen the target network."""

    return DevChain(chain_id=1, ledger_chain_id=target.chain_id, clock=lambda: FIXED_NOW)


@pytest.fixture
def email_submission() -> Submission:
    return Submission(text=PROFESSIONAL_EMAIL, challenge=make_challenge())


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)
