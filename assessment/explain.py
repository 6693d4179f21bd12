from dataclasses import dataclass
from typing import Dict, List, Sequence

from .content import SECTIONS, Section, SectionId
from .scoring import ScoreBundle, SectionScore


@dataclass(frozen=True)
class BreakdownRow:
    part: str
    raw: str
    max: str
    scaled0to15: str
    weight: float
    contribution: str


def _titles(sections: Sequence[Section]) -> Dict[SectionId, str]:
    return {s.id: s.title for s in sections}


def breakdown_rows(bundle: ScoreBundle, sections: Sequence[Section] = SECTIONS) -> List[BreakdownRow]:
    """Per-part score breakdown, formatted for the debug table."""
    titles = _titles(sections)
    return [
        BreakdownRow(
            part=titles.get(s.section_id, s.section_id.value),
            raw=f"{s.raw:.2f}",
            max=f"{s.max_raw:.2f}",
            scaled0to15=f"{s.normalized:.2f}",
            weight=s.weight,
            contribution=f"{s.contribution:.2f}",
        )
        for s in bundle.section_scores
    ]


def weakest_sections(bundle: ScoreBundle, n: int = 2) -> List[SectionScore]:
    """
    Lowest normalized section scores first. Ties keep questionnaire order so
    the result is stable for identical bundles.
    """
    return sorted(bundle.section_scores, key=lambda s: s.normalized)[:n]
