from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ContentConfigError(Exception):
    """Questionnaire, band or narrative configuration is incomplete or inconsistent."""


class SectionId(str, Enum):
    CAPTURE = "capture"
    STORAGE = "storage"
    ANALYTICS = "analytics"
    GOVERNANCE = "governance"


@dataclass(frozen=True)
class Answer:
    label: str
    value: int  # 0 = lowest maturity .. 3 = highest


@dataclass(frozen=True)
class Question:
    id: str
    prompt: str
    weight: float
    answers: Tuple[Answer, ...]
    description: Optional[str] = None


@dataclass(frozen=True)
class Section:
    id: SectionId
    title: str
    weight: float  # share of the overall score
    questions: Tuple[Question, ...]

    @property
    def max_raw(self) -> float:
        return sum(3 * q.weight for q in self.questions)


MAX_ANSWER_VALUE = 3
MAX_SCORE = 15.0

# (upper bound inclusive, stage) on the 0..15 scale, first match wins
STAGE_BANDS: List[Tuple[float, int]] = [
    (0.0, 0),
    (2.0, 1),
    (5.0, 2),
    (8.0, 3),
    (11.0, 4),
    (13.0, 5),
    (15.0, 6),
]

STAGES: Tuple[int, ...] = tuple(stage for _, stage in STAGE_BANDS)

STAGE_NAMES: Dict[int, str] = {
    0: "No digitalization",
    1: "Spreadsheets & PPT",
    2: "Centralization & Dashboards",
    3: "Automated Pipelines & Warehouse",
    4: "Real-Time & Governed Platforms",
    5: "Automated Reporting & Alerts",
    6: "Advanced ML/AI Integration",
}


def _scale(*labels: str) -> Tuple[Answer, ...]:
    return tuple(Answer(label=label, value=i) for i, label in enumerate(labels))


FREQUENCY = _scale("Never", "Occasionally", "Most of the time", "Always")
COVERAGE = _scale("Not at all", "A little", "Mostly", "Fully")


SECTIONS: Tuple[Section, ...] = (
    Section(
        id=SectionId.CAPTURE,
        title="Data Capture",
        weight=0.35,
        questions=(
            Question(
                id="cap.q1",
                prompt="How is operational data recorded today?",
                weight=1.5,
                answers=_scale(
                    "On paper or not at all",
                    "In personal spreadsheets",
                    "In shared business applications",
                    "Automatically, at the source",
                ),
            ),
            Question(
                id="cap.q2",
                prompt="How standardized are the forms and fields you capture?",
                weight=1.0,
                answers=_scale(
                    "Every team does its own thing",
                    "Some shared templates",
                    "Mostly standardized",
                    "Fully standardized with validation",
                ),
            ),
            Question(
                id="cap.q3",
                prompt="How often is captured data checked for errors?",
                description="Think of duplicate entries, missing values and typos.",
                weight=1.0,
                answers=FREQUENCY,
            ),
            Question(
                id="cap.q4",
                prompt="Are machines, sensors or external systems connected to your data flow?",
                weight=1.0,
                answers=COVERAGE,
            ),
        ),
    ),
    Section(
        id=SectionId.STORAGE,
        title="Data Storage",
        weight=0.35,
        questions=(
            Question(
                id="stor.q1",
                prompt="Do you centralize your data securely?",
                weight=1.5,
                answers=_scale(
                    "Scattered across devices",
                    "Shared drives",
                    "A central database per department",
                    "One governed central platform",
                ),
            ),
            Question(
                id="stor.q2",
                prompt="How consistent are your data schemas?",
                weight=1.0,
                answers=COVERAGE,
            ),
            Question(
                id="stor.q3",
                prompt="Are backups and retention policies in place?",
                weight=1.0,
                answers=_scale(
                    "No backups",
                    "Manual backups now and then",
                    "Scheduled backups",
                    "Tested backups with retention policies",
                ),
            ),
        ),
    ),
    Section(
        id=SectionId.ANALYTICS,
        title="Analytics",
        weight=0.18,
        questions=(
            Question(
                id="ana.q1",
                prompt="Do teams use dashboards for decisions?",
                weight=1.0,
                answers=FREQUENCY,
            ),
            Question(
                id="ana.q2",
                prompt="Are experiments or A/B tests common?",
                weight=1.0,
                answers=FREQUENCY,
            ),
            Question(
                id="ana.q3",
                prompt="Do you use forecasting or machine learning models?",
                description="Count anything from a simple demand forecast to a production model.",
                weight=0.5,
                answers=_scale(
                    "No",
                    "Ad-hoc in spreadsheets",
                    "A few models maintained by specialists",
                    "Models embedded in daily operations",
                ),
            ),
        ),
    ),
    Section(
        id=SectionId.GOVERNANCE,
        title="Governance",
        weight=0.12,
        questions=(
            Question(
                id="gov.q1",
                prompt="Are there clear data and AI usage guidelines?",
                weight=1.0,
                answers=COVERAGE,
            ),
            Question(
                id="gov.q2",
                prompt="Do you track compliance and data risks?",
                weight=1.0,
                answers=FREQUENCY,
            ),
            Question(
                id="gov.q3",
                prompt="Is ownership of each key dataset assigned?",
                weight=1.0,
                answers=COVERAGE,
            ),
        ),
    ),
)

SECTIONS_BY_ID: Dict[SectionId, Section] = {s.id: s for s in SECTIONS}


def all_questions(sections: Tuple[Section, ...] = SECTIONS) -> List[Tuple[Section, Question]]:
    """Flatten sections into the order the questionnaire presents them."""
    return [(s, q) for s in sections for q in s.questions]


def validate_bands(bands: List[Tuple[float, int]]) -> None:
    if not bands:
        raise ContentConfigError("Stage bands are empty.")
    if bands[0] != (0.0, 0):
        raise ContentConfigError("The first stage band must be (0, stage 0).")
    if bands[-1][0] != MAX_SCORE:
        raise ContentConfigError(f"Stage bands must end at {MAX_SCORE}.")
    for (prev_upper, prev_stage), (upper, stage) in zip(bands, bands[1:]):
        if upper <= prev_upper:
            raise ContentConfigError(f"Stage band bounds must increase: {prev_upper} -> {upper}")
        if stage != prev_stage + 1:
            raise ContentConfigError(f"Stages must be consecutive: {prev_stage} -> {stage}")


def validate_sections(sections: Tuple[Section, ...]) -> None:
    seen_sections = set()
    seen_questions = set()
    for section in sections:
        if section.id in seen_sections:
            raise ContentConfigError(f"Duplicate section '{section.id.value}'.")
        seen_sections.add(section.id)

        if section.weight <= 0:
            raise ContentConfigError(f"Section '{section.id.value}' needs a positive weight.")
        if not section.questions:
            raise ContentConfigError(f"Section '{section.id.value}' has no questions.")

        for q in section.questions:
            if q.id in seen_questions:
                raise ContentConfigError(f"Duplicate question id '{q.id}'.")
            seen_questions.add(q.id)
            if q.weight <= 0:
                raise ContentConfigError(f"Question '{q.id}' needs a positive weight.")
            values = sorted(a.value for a in q.answers)
            if values != list(range(MAX_ANSWER_VALUE + 1)):
                raise ContentConfigError(
                    f"Question '{q.id}' must offer exactly four answers valued 0..3, got {values}."
                )


validate_bands(STAGE_BANDS)
validate_sections(SECTIONS)
