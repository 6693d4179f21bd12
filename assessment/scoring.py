# assessment/scoring.py
"""Deterministic maturity scoring.

Each section's raw weighted score is rescaled to 0..15 and multiplied by the
section weight; the contributions add up to the overall 0..15 score, which is
bucketed into a stage 0..6 through STAGE_BANDS. Everything here is pure: the
same sections and answers always give the same ScoreBundle.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

from .content import MAX_ANSWER_VALUE, MAX_SCORE, SECTIONS, STAGE_BANDS, Section, SectionId

ENGINE_VERSION = "1.0.0"

log = logging.getLogger(__name__)

AnswerMap = Dict[str, int]

# floating-point slack when weights that sum to 1.0 push a perfect score past 15
_OVERSHOOT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class SectionScore:
    section_id: SectionId
    raw: float
    max_raw: float
    normalized: float
    weight: float
    contribution: float
    stage: int


@dataclass(frozen=True)
class ScoreBundle:
    overall_score: float
    overall_stage: int
    section_scores: Tuple[SectionScore, ...]

    def section(self, section_id: SectionId) -> SectionScore:
        for s in self.section_scores:
            if s.section_id == section_id:
                return s
        raise KeyError(section_id)


def score_section(section: Section, answers: Mapping[str, int]) -> Tuple[float, float]:
    """Return (raw, max) for one section. Unanswered questions count as 0."""
    raw = 0.0
    max_raw = 0.0
    for q in section.questions:
        raw += answers.get(q.id, 0) * q.weight
        max_raw += MAX_ANSWER_VALUE * q.weight
    return raw, max_raw


def normalize(raw: float, max_raw: float, weight: float) -> Tuple[float, float]:
    """Rescale raw to 0..15 and apply the section weight -> (normalized, contribution)."""
    normalized = (raw / max_raw) * MAX_SCORE if max_raw > 0 else 0.0
    return normalized, normalized * weight


def clamp_score(score: float) -> float:
    if not math.isfinite(score):
        raise ValueError(f"Score must be a finite number, got {score!r}")
    if score < 0.0 or score > MAX_SCORE + _OVERSHOOT_TOLERANCE:
        log.error("Score %r outside 0..%s; clamping", score, MAX_SCORE)
    return max(0.0, min(MAX_SCORE, float(score)))


def classify_stage(score: float, bands: Sequence[Tuple[float, int]] = STAGE_BANDS) -> int:
    s = clamp_score(score)
    for upper, stage in bands:
        if s <= upper:
            return stage
    return bands[-1][1]


def score_assessment(answers: Mapping[str, int], sections: Sequence[Section] = SECTIONS) -> ScoreBundle:
    section_scores: List[SectionScore] = []
    overall = 0.0
    for section in sections:
        raw, max_raw = score_section(section, answers)
        normalized, contribution = normalize(raw, max_raw, section.weight)
        overall += contribution
        section_scores.append(
            SectionScore(
                section_id=section.id,
                raw=raw,
                max_raw=max_raw,
                normalized=normalized,
                weight=section.weight,
                contribution=contribution,
                stage=classify_stage(normalized),
            )
        )

    overall = clamp_score(overall)
    return ScoreBundle(
        overall_score=overall,
        overall_stage=classify_stage(overall),
        section_scores=tuple(section_scores),
    )
