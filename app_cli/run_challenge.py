from __future__ import annotations
import argparse, asyncio, logging
from proof_core.challenges import get_challenge, random_challenge
from proof_core.chain_cfg import settings
from proof_core.devchain import DevChain
from proof_core.pipeline import ProofPipeline
from proof_core.types import Submission

def _print_breakdown(b) -> None:
    parts = "  ".join(f"{k}={v}" for k, v in b.components.items())
    print(f"\nScore: {b.total}/100  ({'PASS' if b.passed else 'FAIL'})  [{parts}]")
    print(b.feedback)

async def _run(challenge_id: str | None, fid: int | None) -> int:
    challenge = get_challenge(challenge_id) if challenge_id else random_challenge()
    s = settings()
    chain = DevChain.for_target(s.target)
    print(f"{challenge.title}\n{challenge.instructions}\n\n  \"{challenge.prompt}\"\n")
    text = input(f"{challenge.placeholder} ").strip()
    pipeline = ProofPipeline(chain, s.target, chain.contract)
    res = await pipeline.run(Submission(text=text, challenge=challenge), fid=fid)
    _print_breakdown(res.breakdown)
    if not res.passed:
        return 1
    print(f"Credential #{res.credential_number}")
    if res.onchain is None:
        print(res.onchain_note)
    elif res.onchain.confirmed:
        print(f"Recorded on {s.target.name} (dev chain): {res.onchain.explorer_url}")
    else:
        print(f"On-chain proof absent [{res.onchain.error_kind}]: {res.onchain.message}")
    return 0

def main():
    ap = argparse.ArgumentParser(description="Answer one challenge and mint on the in-process dev chain.")
    ap.add_argument("--challenge", default=None, help="challenge id (random if omitted)")
    ap.add_argument("--fid", type=int, default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args()
    logging.basicConfig(level=logging.INFO if a.verbose else logging.WARNING, format="[%(levelname)s] %(message)s")
    raise SystemExit(asyncio.run(_run(a.challenge, a.fid)))

if __name__ == "__main__": main()
