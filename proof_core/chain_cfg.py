# proof_core/chain_cfg.py
from __future__ import annotations
import os, json, pathlib
from dataclasses import dataclass

from eth_utils import is_address, to_checksum_address

from .config import RPC_TIMEOUT_SEC
from .provider import JsonRpcProvider
from .types import ChainTarget

SONEIUM_MINATO = ChainTarget(
    chain_id=1946,
    name="Soneium Minato",
    rpc_urls=("https://rpc.minato.soneium.org/",),
    explorer_url="https://soneium-minato.blockscout.com",
)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class ChainSettings:
    target: ChainTarget
    contract_address: str

    @property
    def contract_configured(self) -> bool:
        return self.contract_address != ZERO_ADDRESS


def _from_env() -> dict[str, str]:
    return {
        "chain_id":     os.getenv("CHAIN_ID", ""),
        "chain_name":   os.getenv("CHAIN_NAME", ""),
        "rpc_url":      os.getenv("CHAIN_RPC_URL", ""),
        "explorer_url": os.getenv("CHAIN_EXPLORER_URL", ""),
        "contract":     os.getenv("CONTRACT_ADDRESS", ""),
    }


def _from_json(path: str = ".chain_config.json") -> dict[str, str]:
    p = pathlib.Path(path)
    if not p.exists(): return {}
    try:
        j = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return {k: str(j.get(k, "")) for k in ("chain_id", "chain_name", "rpc_url", "explorer_url", "contract")}


def settings(path: str = ".chain_config.json") -> ChainSettings:
    cfg = _from_env()
    if not all(cfg.values()):
        for k, v in _from_json(path).items():
            if not cfg.get(k): cfg[k] = v
    base = SONEIUM_MINATO
    try:
        chain_id = int(cfg["chain_id"], 0) if cfg["chain_id"] else base.chain_id
    except ValueError:
        raise RuntimeError(f"Chain not configured correctly. Bad CHAIN_ID: {cfg['chain_id']!r}") from None
    contract = cfg["contract"] or ZERO_ADDRESS
    if not is_address(contract):
        raise RuntimeError(f"Chain not configured correctly. Bad CONTRACT_ADDRESS: {contract!r}")
    target = ChainTarget(
        chain_id=chain_id,
        name=cfg["chain_name"] or base.name,
        rpc_urls=(cfg["rpc_url"],) if cfg["rpc_url"] else base.rpc_urls,
        explorer_url=(cfg["explorer_url"] or base.explorer_url).rstrip("/"),
    )
    return ChainSettings(target=target, contract_address=to_checksum_address(contract))


def client(s: ChainSettings | None = None, timeout: float = RPC_TIMEOUT_SEC) -> JsonRpcProvider:
    s = s or settings()
    return JsonRpcProvider(s.target.rpc_urls[0], timeout=timeout)
