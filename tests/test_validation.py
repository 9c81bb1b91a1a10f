"""Answer validation and progress tests."""

import pytest

from survey_engine.models.question import QuestionConfig
from survey_engine.progress import survey_progress
from survey_engine.validation import (
    RequiredAnswerError,
    is_answered,
    require_answer,
    validate_answer,
)

from helpers.builders import make_question, ten_questions


# =====================================================================
# validate_answer
# =====================================================================


class TestChoice:

    def setup_method(self):
        self.q = make_question("q1", type="choice", options=["Ward", "ICU", "Other"])

    def test_known_option(self):
        validate_answer(self.q, "ICU")

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="not an option"):
            validate_answer(self.q, "Clinic")

    def test_other_answer(self):
        validate_answer(self.q, {"selected": "Other", "other_text": "Mobile unit"})

    def test_other_answer_must_select_other(self):
        with pytest.raises(ValueError, match="must select"):
            validate_answer(self.q, {"selected": "ICU", "other_text": "x"})

    def test_other_answer_needs_other_option(self):
        q = make_question("q2", type="choice", options=["A", "B"])
        with pytest.raises(ValueError, match="no 'Other' option"):
            validate_answer(q, {"selected": "Other", "other_text": "x"})


class TestMultiChoice:

    def setup_method(self):
        self.q = make_question(
            "q1",
            type="multi-choice",
            options=["EHR", "Telemedicine", "Paper", "Other"],
            config=QuestionConfig(max_selections=2),
        )

    def test_subset(self):
        validate_answer(self.q, ["EHR", "Paper"])

    def test_not_a_list(self):
        with pytest.raises(ValueError, match="must be a list"):
            validate_answer(self.q, "EHR")

    def test_duplicates(self):
        with pytest.raises(ValueError, match="Duplicate"):
            validate_answer(self.q, ["EHR", "EHR"])

    def test_max_selections(self):
        with pytest.raises(ValueError, match="At most 2"):
            validate_answer(self.q, ["EHR", "Paper", "Telemedicine"])

    def test_other_answer(self):
        validate_answer(self.q, {"selected": ["EHR", "Other"], "other_text": "Radio"})


class TestScalarTypes:

    def test_boolean(self):
        q = make_question("q1", type="boolean")
        validate_answer(q, False)
        with pytest.raises(ValueError):
            validate_answer(q, "yes")

    def test_likert_default_scale(self):
        q = make_question("q1", type="likert")
        validate_answer(q, 5)
        with pytest.raises(ValueError, match="<= 5"):
            validate_answer(q, 6)
        with pytest.raises(ValueError, match="integer"):
            validate_answer(q, 2.5)
        with pytest.raises(ValueError, match="integer"):
            validate_answer(q, True)

    def test_slider_bounds(self):
        q = make_question("q1", type="slider", config=QuestionConfig(min=0, max=50))
        validate_answer(q, 0)
        validate_answer(q, 12.5)
        with pytest.raises(ValueError, match=">= 0"):
            validate_answer(q, -1)

    def test_text(self):
        q = make_question("q1", type="textarea")
        validate_answer(q, "")
        with pytest.raises(ValueError, match="string"):
            validate_answer(q, 42)

    def test_info_takes_no_answer(self):
        with pytest.raises(ValueError, match="does not take an answer"):
            validate_answer(make_question("q1", type="info"), "x")

    def test_none_rejected(self):
        with pytest.raises(ValueError):
            validate_answer(make_question("q1"), None)


# =====================================================================
# Required answers
# =====================================================================


class TestRequired:

    @pytest.mark.parametrize("value", [None, "", "   ", [], {"selected": []}])
    def test_unanswered_values(self, value):
        assert is_answered(value) is False

    @pytest.mark.parametrize("value", ["x", 0, False, ["a"], {"selected": "Other"}])
    def test_answered_values(self, value):
        assert is_answered(value) is True

    def test_required_question_blocks(self):
        q = make_question("q1", required=True)
        with pytest.raises(RequiredAnswerError):
            require_answer(q, "  ")

    def test_optional_question_passes(self):
        require_answer(make_question("q1"), None)

    def test_required_info_never_blocks(self):
        require_answer(make_question("q1", type="info", required=True), None)


# =====================================================================
# Progress
# =====================================================================


class TestSurveyProgress:

    def test_counts_per_section(self):
        visible = ten_questions()
        answers = {"q1": "a", "q2": "b", "q6": "c", "q7": ""}
        progress = survey_progress(visible, answers, current_index=6)

        assert (progress.answered, progress.total, progress.percent) == (3, 10, 30)
        assert [(s.section, s.answered_count, s.question_count) for s in progress.sections] == [
            ("Part A", 2, 5),
            ("Part B", 1, 5),
        ]
        assert progress.current_section == "Part B"
        assert progress.position_in_section == 2
        assert progress.section_size == 5

    def test_empty_sequence(self):
        progress = survey_progress([], {}, current_index=0)
        assert progress.total == 0
        assert progress.percent == 0
        assert progress.current_section is None
