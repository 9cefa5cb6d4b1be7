# proof_core/rubrics.py
"""Rubric registry: one scoring table per rubric kind.

Weights, keyword lists and feedback tiers live here so the scorer never
branches on challenge identity. Keyword order matters only for display;
every keyword of a list is probed.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple, Union

from .types import RubricKind


@dataclass(frozen=True)
class LengthRule:
    ideal: int
    weight: int


@dataclass(frozen=True)
class IndicatorRule:
    keywords: Tuple[str, ...]
    present: int = 0
    absent: int = 0
    per_keyword: int = 0   # > 0 switches to "points per distinct keyword"
    cap: int = 0

    @property
    def counted(self) -> bool:
        return self.per_keyword > 0


@dataclass(frozen=True)
class CasualRule:
    keywords: Tuple[str, ...]
    base: int
    per_word: int


@dataclass(frozen=True)
class StructureRule:
    openings: Tuple[str, ...] = ()
    closings: Tuple[str, ...] = ()
    bonus: int = 0
    # sentence mode: segments split on "." (used when openings/closings are empty)
    min_segments: int = 0
    present: int = 0
    absent: int = 0

    @property
    def greeting_mode(self) -> bool:
        return bool(self.openings or self.closings)


@dataclass(frozen=True)
class PositionRule:
    concession_keywords: Tuple[str, ...]
    hold_keywords: Tuple[str, ...]
    holds: int
    concedes: int


@dataclass(frozen=True)
class Rubric:
    kind: RubricKind
    version: str
    min_length: int
    length: LengthRule
    indicators: IndicatorRule
    feedback: Mapping[str, str]
    casual: Optional[CasualRule] = None
    structure: Optional[StructureRule] = None
    position: Optional[PositionRule] = None

    @property
    def max_points(self) -> int:
        pts = self.length.weight
        ind = self.indicators
        pts += min(ind.cap, ind.per_keyword * len(ind.keywords)) if ind.counted else max(ind.present, ind.absent)
        if self.casual: pts += self.casual.base
        if self.structure:
            s = self.structure
            pts += s.bonus if s.greeting_mode else max(s.present, s.absent)
        if self.position: pts += max(self.position.holds, self.position.concedes)
        return pts


CORRESPONDENCE = Rubric(
    kind=RubricKind.CORRESPONDENCE_REWRITE,
    version="v1",
    min_length=20,
    length=LengthRule(ideal=50, weight=20),
    indicators=IndicatorRule(
        keywords=(
            "dear", "regards", "sincerely", "thank you", "please", "appreciate",
            "would", "could", "apologize", "apology", "regarding", "concerning",
            "respectfully", "best", "kind regards", "yours truly",
        ),
        present=40, absent=20,
    ),
    casual=CasualRule(
        keywords=(
            "hey", "hi", "thx", "u ", "ur ", "asap", "maybe", "sorry",
            "yo", "waste", "cancel", "just", "gonna", "wanna",
        ),
        base=30, per_word=10,
    ),
    structure=StructureRule(
        openings=("dear", "hello", "good"),
        closings=("regards", "sincerely", "best"),
        bonus=10,
    ),
    feedback={
        "too_short": "Your response is too short. Professional communications should be more detailed.",
        "fail": "Try using more formal language, proper greetings, complete sentences, and professional closings.",
        "pass": "Good job! Your email is professional, though there's room for improvement in formality and structure.",
        "excellent": "Excellent! Your email demonstrates strong professional communication skills.",
    },
)

PRESENTATION = Rubric(
    kind=RubricKind.PRESENTATION_INTRO,
    version="v1",
    min_length=30,
    length=LengthRule(ideal=50, weight=30),
    indicators=IndicatorRule(
        keywords=("excited", "proud", "innovative", "transform", "revolutionary", "breakthrough"),
        present=40, absent=20,
    ),
    structure=StructureRule(min_segments=2, present=30, absent=15),
    feedback={
        "too_short": "Your introduction is too short. Aim for 2-3 engaging sentences.",
        "fail": "Try to make your introduction more engaging and clear. Use action words and structure it well.",
        "pass": "Good introduction! It's clear, though it could hook the audience harder.",
        "excellent": "Great introduction! It's engaging and well-structured.",
    },
)

NEGOTIATION = Rubric(
    kind=RubricKind.NEGOTIATION_RESPONSE,
    version="v1",
    min_length=40,
    length=LengthRule(ideal=80, weight=25),
    indicators=IndicatorRule(
        keywords=("understand", "appreciate", "value", "consider", "explore", "alternative", "flexible"),
        per_keyword=10, cap=40,
    ),
    position=PositionRule(
        concession_keywords=("discount",),
        hold_keywords=("cannot", "unable", "alternative"),
        holds=35, concedes=15,
    ),
    feedback={
        "too_short": "Your response is too short. Negotiation requires detailed, diplomatic communication.",
        "fail": "Try to be more diplomatic while clearly maintaining your pricing position. Offer alternatives when possible.",
        "pass": "Solid negotiation response. Add more diplomatic framing to strengthen the relationship.",
        "excellent": "Excellent negotiation response! You maintained your position while being diplomatic.",
    },
)

RUBRICS: Dict[RubricKind, Rubric] = {
    RubricKind.CORRESPONDENCE_REWRITE: CORRESPONDENCE,
    RubricKind.PRESENTATION_INTRO: PRESENTATION,
    RubricKind.NEGOTIATION_RESPONSE: NEGOTIATION,
}

_missing = [k.value for k in RubricKind if k not in RUBRICS]
if _missing:
    raise RuntimeError(f"Rubric registry incomplete. Missing: {', '.join(_missing)}")


def resolve_kind(kind: Union[RubricKind, str]) -> RubricKind:
    """Map a configured rubric name onto the closed enumeration."""
    if isinstance(kind, RubricKind):
        return kind
    try:
        return RubricKind(str(kind).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown rubric kind: {kind!r}") from None


def get_rubric(kind: Union[RubricKind, str]) -> Rubric:
    return RUBRICS[resolve_kind(kind)]
