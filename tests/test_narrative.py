import pytest

from assessment import narrative
from assessment.content import STAGE_NAMES, STAGES, ContentConfigError, SectionId
from assessment.narrative import build_report, section_narrative, validate_narrative
from assessment.scoring import score_assessment


def test_narrative_table_is_complete():
    validate_narrative()
    for section_id in SectionId:
        for stage in STAGES:
            text, image = section_narrative(section_id, stage)
            assert text.recommendation and text.quick and text.long_term
            assert image.endswith(".png")


def test_build_report_uses_stage_text(all_max_answers):
    report = build_report(score_assessment(all_max_answers))

    assert report.overall.stage == 6
    assert report.overall.stage_name == STAGE_NAMES[6]
    assert report.overall.recommendation == narrative.OVERALL_NARRATIVE[6].recommendation
    assert [b.title for b in report.sections] == ["Data Capture", "Data Storage", "Analytics", "Governance"]
    capture = report.sections[0]
    assert capture.stage == 6
    assert capture.long_term == narrative.SECTION_NARRATIVE[SectionId.CAPTURE][6].long_term
    assert capture.image == "stages/stage-6.png"
    assert report.breakdown == ()


def test_focus_areas_are_weakest_sections():
    answers = {"cap.q1": 3, "cap.q2": 3, "cap.q3": 3, "cap.q4": 3, "gov.q1": 2}
    report = build_report(score_assessment(answers))
    assert report.focus_areas == ("Data Storage", "Analytics")


def test_breakdown_rows_are_formatted():
    report = build_report(score_assessment({"cap.q1": 2}), include_breakdown=True)
    first = report.breakdown[0]
    assert first.part == "Data Capture"
    assert first.raw == "3.00"
    assert first.max == "13.50"
    assert first.scaled0to15 == "3.33"
    assert first.weight == 0.35
    assert first.contribution == "1.17"


def test_missing_section_narrative_fails_loudly(monkeypatch):
    trimmed = {k: dict(v) for k, v in narrative.SECTION_NARRATIVE.items()}
    del trimmed[SectionId.ANALYTICS][0]
    monkeypatch.setattr(narrative, "SECTION_NARRATIVE", trimmed)

    with pytest.raises(ContentConfigError, match="analytics"):
        validate_narrative()
    with pytest.raises(ContentConfigError):
        build_report(score_assessment({}))


def test_missing_image_fails_validation(monkeypatch):
    images = {k: dict(v) for k, v in narrative.SECTION_IMAGES.items()}
    images[SectionId.GOVERNANCE][3] = ""
    monkeypatch.setattr(narrative, "SECTION_IMAGES", images)

    with pytest.raises(ContentConfigError, match="image for \\(governance, 3\\)"):
        validate_narrative()
