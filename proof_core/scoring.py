from __future__ import annotations
from typing import Dict, Union

from .config import PASS_THRESHOLD, EXCELLENT_THRESHOLD, SCORE_MAX
from .heuristics import normalize, contains_any, distinct_hits, length_points, sentence_segments
from .rubrics import Rubric, get_rubric
from .types import RubricKind, ScoreBreakdown, FeedbackTier


def _indicator_points(rubric: Rubric, lowered: str) -> int:
    rule = rubric.indicators
    if rule.counted:
        return min(rule.cap, rule.per_keyword * len(distinct_hits(lowered, rule.keywords)))
    return rule.present if contains_any(lowered, rule.keywords) else rule.absent


def _casual_points(rubric: Rubric, lowered: str) -> int:
    rule = rubric.casual
    if rule is None:
        return 0
    hits = distinct_hits(lowered, rule.keywords)
    return max(0, rule.base - rule.per_word * len(hits))


def _structure_points(rubric: Rubric, trimmed: str, lowered: str) -> int:
    rule = rubric.structure
    if rule is None:
        return 0
    if rule.greeting_mode:
        both = contains_any(lowered, rule.openings) and contains_any(lowered, rule.closings)
        return rule.bonus if both else 0
    return rule.present if sentence_segments(trimmed) >= rule.min_segments else rule.absent


def _position_points(rubric: Rubric, lowered: str) -> int:
    rule = rubric.position
    if rule is None:
        return 0
    holds = (not contains_any(lowered, rule.concession_keywords)) or contains_any(lowered, rule.hold_keywords)
    return rule.holds if holds else rule.concedes


def _tier(total: int) -> FeedbackTier:
    if total < PASS_THRESHOLD: return "fail"
    if total >= EXCELLENT_THRESHOLD: return "excellent"
    return "pass"


def score(text: str, kind: Union[RubricKind, str]) -> ScoreBreakdown:
    """Score free text against the rubric registered for ``kind``.

    Pure and deterministic: the same (text, kind) pair always yields an
    equal breakdown.
    """
    rubric = get_rubric(kind)
    trimmed = normalize(text)
    if len(trimmed) < rubric.min_length:
        return ScoreBreakdown(
            rubric=rubric.kind,
            components={"length": 0, "indicators": 0, "casual": 0, "structure": 0},
            total=0,
            passed=False,
            tier="too_short",
            feedback=rubric.feedback["too_short"],
        )

    lowered = trimmed.lower()
    components: Dict[str, int] = {
        "length": length_points(len(trimmed), rubric.length.ideal, rubric.length.weight),
        "indicators": _indicator_points(rubric, lowered),
        "casual": _casual_points(rubric, lowered),
        "structure": _structure_points(rubric, trimmed, lowered),
    }
    if rubric.position is not None:
        components["position"] = _position_points(rubric, lowered)

    total = max(0, min(SCORE_MAX, sum(components.values())))
    tier = _tier(total)
    return ScoreBreakdown(
        rubric=rubric.kind,
        components=components,
        total=total,
        passed=total >= PASS_THRESHOLD,
        tier=tier,
        feedback=rubric.feedback[tier],
    )
