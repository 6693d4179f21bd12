import pytest

from assessment.content import (
    SECTIONS,
    STAGE_BANDS,
    STAGE_NAMES,
    Answer,
    ContentConfigError,
    Question,
    Section,
    SectionId,
    all_questions,
    validate_bands,
    validate_sections,
)

FOUR = tuple(Answer(label=str(v), value=v) for v in range(4))


def test_shipped_content_is_valid():
    validate_bands(STAGE_BANDS)
    validate_sections(SECTIONS)


def test_section_weights_sum_to_one():
    assert sum(s.weight for s in SECTIONS) == pytest.approx(1.0)


def test_question_ids_are_unique_and_ordered():
    ids = [q.id for _, q in all_questions()]
    assert len(ids) == len(set(ids))
    assert ids[0] == SECTIONS[0].questions[0].id


def test_every_stage_has_a_name():
    assert sorted(STAGE_NAMES) == [stage for _, stage in STAGE_BANDS]


def test_max_raw_is_three_times_weights():
    section = Section(
        id=SectionId.CAPTURE,
        title="Capture",
        weight=1.0,
        questions=(
            Question(id="a", prompt="?", weight=1.5, answers=FOUR),
            Question(id="b", prompt="?", weight=1.0, answers=FOUR),
        ),
    )
    assert section.max_raw == pytest.approx(7.5)


@pytest.mark.parametrize(
    "bands",
    [
        [],
        [(1.0, 0), (15.0, 1)],
        [(0.0, 0), (5.0, 1), (4.0, 2), (15.0, 3)],
        [(0.0, 0), (5.0, 2), (15.0, 3)],
        [(0.0, 0), (5.0, 1), (14.0, 2)],
    ],
)
def test_invalid_bands_are_rejected(bands):
    with pytest.raises(ContentConfigError):
        validate_bands(bands)


def test_section_without_questions_is_rejected():
    with pytest.raises(ContentConfigError, match="no questions"):
        validate_sections((Section(id=SectionId.CAPTURE, title="Capture", weight=1.0, questions=()),))


def test_duplicate_question_ids_are_rejected():
    q = Question(id="dup", prompt="?", weight=1.0, answers=FOUR)
    sections = (
        Section(id=SectionId.CAPTURE, title="Capture", weight=0.5, questions=(q,)),
        Section(id=SectionId.STORAGE, title="Storage", weight=0.5, questions=(q,)),
    )
    with pytest.raises(ContentConfigError, match="Duplicate question"):
        validate_sections(sections)


def test_question_needs_four_answers_valued_zero_to_three():
    q = Question(id="x", prompt="?", weight=1.0, answers=FOUR[:3])
    with pytest.raises(ContentConfigError, match="exactly four answers"):
        validate_sections((Section(id=SectionId.CAPTURE, title="Capture", weight=1.0, questions=(q,)),))


def test_non_positive_weights_are_rejected():
    q = Question(id="x", prompt="?", weight=0.0, answers=FOUR)
    with pytest.raises(ContentConfigError, match="positive weight"):
        validate_sections((Section(id=SectionId.CAPTURE, title="Capture", weight=1.0, questions=(q,)),))
