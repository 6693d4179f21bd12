from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .content import SECTIONS, STAGE_NAMES, STAGES, ContentConfigError, Section, SectionId
from .explain import BreakdownRow, breakdown_rows, weakest_sections
from .scoring import ScoreBundle


@dataclass(frozen=True)
class StageNarrative:
    recommendation: str
    quick: str
    long_term: str


OVERALL_NARRATIVE: Dict[int, StageNarrative] = {
    0: StageNarrative(
        recommendation="Start with awareness and a quick win: pick one process and start recording it digitally.",
        quick="Move one paper-based log into a shared spreadsheet this week.",
        long_term="Agree on which business questions data should answer in the next year.",
    ),
    1: StageNarrative(
        recommendation="Build early habits and templates so spreadsheets stop diverging between teams.",
        quick="Create one shared template for your most-used report.",
        long_term="Plan a move from personal files to a central, access-controlled store.",
    ),
    2: StageNarrative(
        recommendation="Standardize a few use cases and make the central store the single source of truth.",
        quick="Retire duplicate copies of your two most important datasets.",
        long_term="Automate the feeds into your dashboards instead of refreshing them by hand.",
    ),
    3: StageNarrative(
        recommendation="Measure and scale the patterns that work; pipelines are in place, now make them reliable.",
        quick="Add failure alerts to your most important data pipeline.",
        long_term="Introduce a data warehouse model that every team reports from.",
    ),
    4: StageNarrative(
        recommendation="Add governance and shared tooling so growth in data does not mean growth in risk.",
        quick="Name an owner for every dataset used in management reporting.",
        long_term="Stream operational data in near real time where decisions depend on it.",
    ),
    5: StageNarrative(
        recommendation="Optimize data flows and KPIs; reporting runs itself, so focus on acting on it.",
        quick="Review alert thresholds with the people who receive them.",
        long_term="Pilot predictive models on top of your automated reporting.",
    ),
    6: StageNarrative(
        recommendation="Track ROI and govern ML/AI at scale; keep models, data and people aligned.",
        quick="Publish a quarterly summary of value delivered by data products.",
        long_term="Institutionalize model monitoring, retraining and responsible-AI reviews.",
    ),
}


def _by_stage(*entries: Tuple[str, str, str]) -> Dict[int, StageNarrative]:
    return {stage: StageNarrative(*entry) for stage, entry in zip(STAGES, entries)}


SECTION_NARRATIVE: Dict[SectionId, Dict[int, StageNarrative]] = {
    SectionId.CAPTURE: _by_stage(
        ("Data is barely captured; most knowledge lives in people's heads.",
         "Write down the five data points you would most like to have every day.",
         "Capture core transactions digitally at the moment they happen."),
        ("Data is captured in personal spreadsheets with little structure.",
         "Agree on column names and formats for your main spreadsheet.",
         "Replace spreadsheets with forms in a shared application."),
        ("Capture happens in shared tools but quality varies.",
         "Add required fields and drop-down lists to your input forms.",
         "Connect capture tools directly to the central store."),
        ("Capture is standardized and mostly validated at entry.",
         "Track how many records fail validation each week.",
         "Automate capture from machines and partner systems."),
        ("Capture is automated for most sources.",
         "Remove the last manual re-typing steps.",
         "Stream source data continuously instead of in batches."),
        ("Capture is automated and monitored end to end.",
         "Add alerts when a source stops sending data.",
         "Enrich captured data with external reference data."),
        ("Capture is automated, monitored and feeds ML use cases.",
         "Document capture lineage for model training sets.",
         "Use captured data to retrain models automatically."),
    ),
    SectionId.STORAGE: _by_stage(
        ("Data is scattered across devices without backups.",
         "Copy critical files to a shared, backed-up location.",
         "Choose one central place for business data."),
        ("Data sits on shared drives in many versions.",
         "Delete or archive outdated copies of key files.",
         "Move key datasets into a managed database."),
        ("Departments keep their own central databases.",
         "Document where each key dataset is stored.",
         "Consolidate departmental stores into one platform."),
        ("A warehouse exists and pipelines load it automatically.",
         "Schedule and test restores of your backups.",
         "Model shared dimensions such as customer and product once."),
        ("Storage is governed with consistent schemas.",
         "Apply retention rules to personal data.",
         "Serve real-time data alongside historical data."),
        ("Storage is automated, monitored and cost-controlled.",
         "Review storage costs per dataset.",
         "Offer curated datasets as self-service products."),
        ("Storage supports feature stores and ML workloads.",
         "Version the datasets used to train models.",
         "Unify analytical and ML storage under one governance model."),
    ),
    SectionId.ANALYTICS: _by_stage(
        ("Decisions are made without data.",
         "Pick one KPI and calculate it monthly.",
         "Build a small set of KPIs the leadership team reviews."),
        ("Reports are built by hand in spreadsheets or slides.",
         "Turn your most frequent slide into a reusable template.",
         "Move recurring reports into a dashboard tool."),
        ("Dashboards exist and are used by some teams.",
         "Remove dashboards nobody opened last month.",
         "Connect dashboards to automatically refreshed data."),
        ("Dashboards are refreshed automatically and trusted.",
         "Add targets and trends to every KPI tile.",
         "Run structured experiments before big decisions."),
        ("Teams run experiments and near real-time analysis.",
         "Share experiment results in a common log.",
         "Introduce forecasting for your key volumes."),
        ("Reporting and alerting run automatically.",
         "Route alerts to the person who can act on them.",
         "Embed forecasts and recommendations in daily tools."),
        ("ML models support daily operations.",
         "Measure the business impact of each model.",
         "Scale successful models across the organization."),
    ),
    SectionId.GOVERNANCE: _by_stage(
        ("There are no data or AI usage rules.",
         "Write a one-page guideline on handling customer data.",
         "Assign someone responsible for data protection."),
        ("Rules exist informally and depend on individuals.",
         "List the tools in which personal data is stored.",
         "Turn informal rules into a written data policy."),
        ("A basic policy exists but is not enforced.",
         "Train staff on the policy once a year.",
         "Name data owners for every key dataset."),
        ("Ownership and policies are defined for key data.",
         "Review access rights to sensitive data.",
         "Track compliance and data risks in a register."),
        ("Compliance and data risks are tracked.",
         "Automate access reviews where possible.",
         "Add data quality metrics to the governance routine."),
        ("Governance is embedded in processes and tooling.",
         "Publish a data catalogue for internal users.",
         "Extend governance to AI models and their decisions."),
        ("AI governance operates at scale.",
         "Run a responsible-AI review on your highest-impact model.",
         "Benchmark governance maturity against industry peers."),
    ),
}

# image references resolve against the report assets directory
SECTION_IMAGES: Dict[SectionId, Dict[int, str]] = {
    section_id: {stage: f"stages/stage-{stage}.png" for stage in STAGES}
    for section_id in SectionId
}


def validate_narrative(sections: Sequence[Section] = SECTIONS) -> None:
    """Every stage needs a name and overall text; every (section, stage) needs text and an image."""
    missing: List[str] = []
    for stage in STAGES:
        if not STAGE_NAMES.get(stage):
            missing.append(f"stage name for stage {stage}")
        if stage not in OVERALL_NARRATIVE:
            missing.append(f"overall narrative for stage {stage}")
    for section in sections:
        for stage in STAGES:
            if stage not in SECTION_NARRATIVE.get(section.id, {}):
                missing.append(f"narrative for ({section.id.value}, {stage})")
            if not SECTION_IMAGES.get(section.id, {}).get(stage):
                missing.append(f"image for ({section.id.value}, {stage})")
    if missing:
        raise ContentConfigError("Missing content: " + "; ".join(missing))


@dataclass(frozen=True)
class ReportBlock:
    title: str
    stage: int
    stage_name: str
    score: float
    recommendation: str
    quick: str
    long_term: str
    image: Optional[str] = None


@dataclass(frozen=True)
class ReportBundle:
    overall: ReportBlock
    sections: Tuple[ReportBlock, ...]
    focus_areas: Tuple[str, ...]
    breakdown: Tuple[BreakdownRow, ...] = ()


def stage_name(stage: int) -> str:
    try:
        return STAGE_NAMES[stage]
    except KeyError:
        raise ContentConfigError(f"No stage name for stage {stage}") from None


def section_narrative(section_id: SectionId, stage: int) -> Tuple[StageNarrative, str]:
    try:
        text = SECTION_NARRATIVE[section_id][stage]
        image = SECTION_IMAGES[section_id][stage]
    except KeyError:
        raise ContentConfigError(f"No narrative for ({section_id.value}, stage {stage})") from None
    return text, image


def build_report(
    bundle: ScoreBundle,
    include_breakdown: bool = False,
    sections: Sequence[Section] = SECTIONS,
) -> ReportBundle:
    titles = {s.id: s.title for s in sections}
    try:
        overall_text = OVERALL_NARRATIVE[bundle.overall_stage]
    except KeyError:
        raise ContentConfigError(f"No overall narrative for stage {bundle.overall_stage}") from None

    overall = ReportBlock(
        title="Overall results",
        stage=bundle.overall_stage,
        stage_name=stage_name(bundle.overall_stage),
        score=bundle.overall_score,
        recommendation=overall_text.recommendation,
        quick=overall_text.quick,
        long_term=overall_text.long_term,
    )

    blocks: List[ReportBlock] = []
    for s in bundle.section_scores:
        text, image = section_narrative(s.section_id, s.stage)
        blocks.append(
            ReportBlock(
                title=titles[s.section_id],
                stage=s.stage,
                stage_name=stage_name(s.stage),
                score=s.normalized,
                recommendation=text.recommendation,
                quick=text.quick,
                long_term=text.long_term,
                image=image,
            )
        )

    return ReportBundle(
        overall=overall,
        sections=tuple(blocks),
        focus_areas=tuple(titles[s.section_id] for s in weakest_sections(bundle)),
        breakdown=tuple(breakdown_rows(bundle, sections)) if include_breakdown else (),
    )


validate_narrative()
