from __future__ import annotations
import json, random, importlib.resources as ir
from functools import lru_cache
from typing import List, Optional, Tuple

from .errors import ChallengeNotFound
from .rubrics import get_rubric, resolve_kind
from .types import Challenge

CATEGORIES = ["Business English", "Business Communication"]
DIFFICULTIES = ("easy", "medium", "hard")


def _from_raw(r: dict) -> Challenge:
    kind = resolve_kind(r["rubric"])
    difficulty = r.get("difficulty")
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValueError(f"Challenge {r.get('id')!r}: unknown difficulty {difficulty!r}")
    return Challenge(
        id=r["id"], category=r["category"], rubric=kind, prompt=r["prompt"],
        min_length=int(r.get("min_length") or get_rubric(kind).min_length),
        title=r.get("title", ""),
        instructions=r.get("instructions", ""),
        placeholder=r.get("placeholder", ""),
        difficulty=difficulty,
    )


@lru_cache(maxsize=1)
def load_challenges() -> Tuple[Challenge, ...]:
    data = ir.files(__package__).joinpath("data/challenges.json").read_text(encoding="utf-8")
    return tuple(_from_raw(r) for r in json.loads(data))


def get_challenge(challenge_id: str) -> Challenge:
    for c in load_challenges():
        if c.id == challenge_id:
            return c
    raise ChallengeNotFound(challenge_id)


def challenges_by_category(category: str) -> List[Challenge]:
    return [c for c in load_challenges() if c.category == category]


def challenges_by_difficulty(difficulty: str) -> List[Challenge]:
    return [c for c in load_challenges() if c.difficulty == difficulty]


def random_challenge(rng: Optional[random.Random] = None) -> Challenge:
    pool = load_challenges()
    return (rng or random).choice(pool)
