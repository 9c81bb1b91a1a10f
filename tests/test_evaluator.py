"""ConditionEvaluator unit tests — operators and visibility.

Operator reference (from evaluator._compare):
    equals, notEquals — exact equality / inequality
    contains          — element (list answer) or substring (anything else)
    in, notIn         — answer membership in the condition's list
"""

import pytest

from survey_engine.evaluator import ConditionEvaluator

from helpers.builders import cond, make_question


@pytest.fixture
def evaluator():
    """Fresh ConditionEvaluator for each test."""
    return ConditionEvaluator()


# =====================================================================
# Operator tests: one class per concern
# =====================================================================


class TestOperators:
    """Each operator against a present answer."""

    def test_equals(self, evaluator):
        c = cond("A", "equals", "Yes")
        assert evaluator.evaluate_condition(c, "Yes") is True
        assert evaluator.evaluate_condition(c, "No") is False

    def test_equals_is_type_strict(self, evaluator):
        """1 and "1" are different answers."""
        c = cond("A", "equals", 1)
        assert evaluator.evaluate_condition(c, "1") is False

    def test_not_equals(self, evaluator):
        c = cond("A", "notEquals", 0)
        assert evaluator.evaluate_condition(c, 5) is True
        assert evaluator.evaluate_condition(c, 0) is False

    def test_contains_list_membership(self, evaluator):
        c = cond("A", "contains", "Telemedicine")
        assert evaluator.evaluate_condition(c, ["Telemedicine", "Mobile apps"]) is True
        assert evaluator.evaluate_condition(c, ["Mobile apps"]) is False

    def test_contains_substring(self, evaluator):
        c = cond("A", "contains", "night")
        assert evaluator.evaluate_condition(c, "mostly nights") is True
        assert evaluator.evaluate_condition(c, "days") is False

    def test_contains_stringifies_scalars(self, evaluator):
        c = cond("A", "contains", "2")
        assert evaluator.evaluate_condition(c, 12) is True

    def test_in(self, evaluator):
        c = cond("A", "in", ["Night shifts", "Rotating shifts"])
        assert evaluator.evaluate_condition(c, "Night shifts") is True
        assert evaluator.evaluate_condition(c, "Day shifts") is False

    def test_in_with_non_list_value_is_false(self, evaluator):
        c = cond("A", "in", "Night shifts")
        assert evaluator.evaluate_condition(c, "Night shifts") is False

    def test_not_in(self, evaluator):
        c = cond("A", "notIn", ["Clinic"])
        assert evaluator.evaluate_condition(c, "Government hospital") is True
        assert evaluator.evaluate_condition(c, "Clinic") is False

    def test_not_in_with_non_list_value_is_true(self, evaluator):
        c = cond("A", "notIn", "Clinic")
        assert evaluator.evaluate_condition(c, "Clinic") is True

    def test_unknown_operator_is_false(self, evaluator):
        c = cond("A", "equals", "x").model_copy(update={"operator": "startsWith"})
        assert evaluator.evaluate_condition(c, "xyz") is False

    def test_other_answer_compares_selected(self, evaluator):
        """An "Other" answer is compared through its selected part."""
        c = cond("A", "equals", "Other")
        answer = {"selected": "Other", "other_text": "Locum agency"}
        assert evaluator.evaluate_condition(c, answer) is True


class TestUnanswered:
    """An unanswered target makes every operator false."""

    @pytest.mark.parametrize("operator,value", [
        ("equals", "Yes"),
        ("notEquals", "Yes"),
        ("contains", "Yes"),
        ("in", ["Yes"]),
        ("notIn", ["Yes"]),
    ])
    def test_none_answer(self, evaluator, operator, value):
        assert evaluator.evaluate_condition(cond("A", operator, value), None) is False


# =====================================================================
# Visibility
# =====================================================================


class TestVisibleQuestions:
    """visible_questions over whole catalogs."""

    def test_no_conditions_always_visible(self, evaluator):
        qs = [make_question("q1"), make_question("q2")]
        assert evaluator.visible_questions(qs, {}) == qs

    def test_unmet_condition_hides_question(self, evaluator):
        """A condition requiring A == "Yes" hides the question while A is unanswered or "No"."""
        a = make_question("a", external_id="A", type="choice")
        b = make_question("b", conditions=[cond("A", "equals", "Yes")])
        assert [q.id for q in evaluator.visible_questions([a, b], {})] == ["a"]
        assert [q.id for q in evaluator.visible_questions([a, b], {"a": "No"})] == ["a"]
        assert [q.id for q in evaluator.visible_questions([a, b], {"a": "Yes"})] == ["a", "b"]

    def test_conditions_are_anded(self, evaluator):
        a = make_question("a", external_id="A", type="choice")
        b = make_question("b", external_id="B", type="boolean")
        c = make_question("c", conditions=[
            cond("A", "equals", "Yes"),
            cond("B", "equals", True),
        ])
        qs = [a, b, c]
        assert "c" not in [q.id for q in evaluator.visible_questions(qs, {"a": "Yes"})]
        assert "c" in [q.id for q in evaluator.visible_questions(qs, {"a": "Yes", "b": True})]

    def test_reference_resolves_external_id_to_internal_id(self, evaluator):
        """Answers are keyed by internal id; conditions use external id."""
        a = make_question("internal_7", external_id="N1", type="slider")
        b = make_question("b", conditions=[cond("N1", "notEquals", 0)])
        visible = evaluator.visible_questions([a, b], {"internal_7": 4})
        assert [q.id for q in visible] == ["internal_7", "b"]

    def test_unknown_reference_falls_back_to_raw_id(self, evaluator):
        b = make_question("b", conditions=[cond("a", "equals", "Yes")])
        assert evaluator.visible_questions([b], {"a": "Yes"}) == [b]

    def test_is_visible_without_index_uses_raw_ids(self, evaluator):
        b = make_question("b", conditions=[cond("a", "equals", "Yes")])
        assert evaluator.is_visible(b, {"a": "Yes"}) is True
        assert evaluator.is_visible(b, {"a": "No"}) is False

    def test_is_visible_without_index_does_not_map_external_ids(self, evaluator):
        """An external id only resolves through the map from build_index."""
        a = make_question("internal_7", external_id="N1", type="slider")
        b = make_question("b", conditions=[cond("N1", "equals", 4)])
        answers = {"internal_7": 4}
        assert evaluator.is_visible(b, answers) is False
        assert evaluator.is_visible(b, answers, evaluator.build_index([a, b])) is True

    def test_order_is_preserved(self, evaluator):
        qs = [make_question(f"q{i}") for i in range(5)]
        assert [q.id for q in evaluator.visible_questions(qs, {})] == [f"q{i}" for i in range(5)]

    def test_changing_answer_recomputes_visibility(self, evaluator):
        """No cached state: the same catalog re-evaluates per call."""
        a = make_question("a", external_id="A", type="choice")
        b = make_question("b", conditions=[cond("A", "equals", "Yes")])
        answers = {"a": "Yes"}
        assert len(evaluator.visible_questions([a, b], answers)) == 2
        answers["a"] = "No"
        assert len(evaluator.visible_questions([a, b], answers)) == 1
