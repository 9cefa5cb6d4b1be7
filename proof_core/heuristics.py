# proof_core/heuristics.py
# Lexical probes. Plain substring containment on lower-cased text: a short
# marker inside a longer word counts ("hi" in "this").
from __future__ import annotations
import math
from typing import Iterable, List


def normalize(text: str) -> str:
    if not isinstance(text, str): return ""
    return text.strip()


def contains_any(lowered: str, keywords: Iterable[str]) -> bool:
    return any(k in lowered for k in keywords)


def distinct_hits(lowered: str, keywords: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for k in keywords:
        if k in lowered and k not in seen:
            seen.append(k)
    return seen


def length_points(length: int, ideal: int, weight: int) -> int:
    if ideal <= 0 or length >= ideal:
        return weight
    return int(math.floor((length / ideal) * weight))


def sentence_segments(text: str) -> int:
    return len(text.split("."))
