"""ConditionEvaluator — decides which catalog questions are visible.

A question is visible when every one of its ``conditions`` holds (the list
is AND-ed; an empty list means always visible).  Each condition names its
target question by ``external_id`` and compares that question's answer:

  - **equals** / **notEquals**: exact equality / inequality
  - **contains**: list membership when the answer is a list, otherwise a
    substring test on the stringified answer
  - **in** / **notIn**: membership of the answer in the condition's list

An unanswered target makes the condition false, whatever the operator.
Visibility is always recomputed from scratch over the full catalog and the
current answers; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from survey_engine.models.question import Condition, Question

logger = logging.getLogger(__name__)


def comparable_answer(answer: Any) -> Any:
    """Return the part of an answer that conditions compare against.

    An "Other" answer ``{"selected": ..., "other_text": ...}`` compares
    through its ``selected`` part; every other answer is used as-is.
    """
    if isinstance(answer, dict) and "selected" in answer:
        return answer["selected"]
    return answer


class ConditionEvaluator:
    """Evaluates question visibility against the respondent's answers."""

    def visible_questions(
        self, questions: list[Question], answers: dict[str, Any]
    ) -> list[Question]:
        """Return the ordered subset of ``questions`` whose conditions all hold."""
        index = self.build_index(questions)
        return [q for q in questions if self.is_visible(q, answers, index)]

    def is_visible(
        self,
        question: Question,
        answers: dict[str, Any],
        index: dict[str, str] | None = None,
    ) -> bool:
        """True if every condition of ``question`` holds.

        Args:
            question: the question to test
            answers: answers keyed by internal question id
            index: external_id -> id map from :meth:`build_index`.  When
                   omitted, every condition reference is looked up as a
                   raw internal id.
        """
        if not question.conditions:
            return True
        if index is None:
            index = {}
        for cond in question.conditions:
            target_id = index.get(cond.question_external_id, cond.question_external_id)
            if not self.evaluate_condition(cond, answers.get(target_id)):
                return False
        return True

    @staticmethod
    def build_index(questions: Iterable[Question]) -> dict[str, str]:
        """Map each question's external id to its internal id."""
        return {q.external_id: q.id for q in questions}

    # ------------------------------------------------------------------
    # Condition evaluation
    # ------------------------------------------------------------------

    def evaluate_condition(self, condition: Condition, answer: Any) -> bool:
        """Evaluate a single condition against the target's raw answer.

        If the target question has not been answered, the condition
        evaluates to False.
        """
        if answer is None:
            return False
        return self._compare(condition.operator, comparable_answer(answer), condition.value)

    @staticmethod
    def _compare(op: str, answer: Any, value: Any) -> bool:
        """Apply an operator to an answer and an expected value."""
        if op == "equals":
            return answer == value

        if op == "notEquals":
            return answer != value

        if op == "contains":
            # Works for both "X in list" and "substring in string"
            if isinstance(answer, list):
                return value in answer
            return str(value) in str(answer)

        if op == "in":
            if not isinstance(value, list):
                return False
            return answer in value

        if op == "notIn":
            if not isinstance(value, list):
                return True
            return answer not in value

        logger.warning("Unknown condition operator: %s", op)
        return False
