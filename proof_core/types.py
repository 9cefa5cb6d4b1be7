from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Literal, Optional, Tuple

Difficulty = Literal["easy", "medium", "hard"]
FeedbackTier = Literal["too_short", "fail", "pass", "excellent"]


class RubricKind(str, Enum):
    CORRESPONDENCE_REWRITE = "correspondence-rewrite"
    PRESENTATION_INTRO = "presentation-intro"
    NEGOTIATION_RESPONSE = "negotiation-response"


class TxState(str, Enum):
    SIMULATED = "Simulated"
    SUBMITTED = "Submitted"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"


@dataclass(frozen=True)
class Challenge:
    id: str; category: str; rubric: RubricKind; prompt: str
    min_length: int
    title: str = ""
    instructions: str = ""
    placeholder: str = ""
    difficulty: Optional[Difficulty] = None


@dataclass(frozen=True)
class Submission:
    text: str
    challenge: Challenge


@dataclass(frozen=True)
class ScoreBreakdown:
    rubric: RubricKind
    components: Dict[str, int]
    total: int
    passed: bool
    tier: FeedbackTier
    feedback: str

    @property
    def length_score(self) -> int:
        return self.components.get("length", 0)

    @property
    def indicator_score(self) -> int:
        return self.components.get("indicators", 0)

    @property
    def casual_score(self) -> int:
        return self.components.get("casual", 0)

    @property
    def structure_score(self) -> int:
        return self.components.get("structure", 0)


@dataclass(frozen=True)
class Credential:
    owner: str
    fid: int
    skill_name: str
    issued_at: int


@dataclass(frozen=True)
class NativeCurrency:
    name: str = "Ether"
    symbol: str = "ETH"
    decimals: int = 18


@dataclass(frozen=True)
class ChainTarget:
    chain_id: int
    name: str
    rpc_urls: Tuple[str, ...]
    explorer_url: str
    currency: NativeCurrency = field(default_factory=NativeCurrency)

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"

    def add_chain_params(self) -> Dict[str, object]:
        """EIP-3085 descriptor for wallet_addEthereumChain."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.name,
            "rpcUrls": list(self.rpc_urls),
            "blockExplorerUrls": [self.explorer_url],
            "nativeCurrency": {
                "name": self.currency.name,
                "symbol": self.currency.symbol,
                "decimals": self.currency.decimals,
            },
        }


@dataclass(frozen=True)
class TransactionOutcome:
    state: TxState
    tx_hash: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None
    explorer_url: Optional[str] = None
    credential: Optional[Credential] = None

    @property
    def confirmed(self) -> bool:
        return self.state is TxState.CONFIRMED

    @property
    def failed(self) -> bool:
        return self.state is TxState.FAILED
