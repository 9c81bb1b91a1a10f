"""Shorthand builders for catalog questions used across tests."""

from typing import Any

from survey_engine.models.question import Condition, Question

_OPTION_TYPES = {"choice", "multi-choice"}


def make_question(
    qid: str,
    *,
    external_id: str | None = None,
    type: str = "text",
    section: str = "General",
    section_order: int = 1,
    order: int = 0,
    options: list[str] | None = None,
    conditions: list[Condition] | None = None,
    **kwargs: Any,
) -> Question:
    """Build a Question; ``external_id`` defaults to ``qid`` upper-cased."""
    if options is None and type in _OPTION_TYPES:
        options = ["Yes", "No"]
    return Question(
        id=qid,
        external_id=external_id or qid.upper(),
        type=type,
        section=section,
        section_order=section_order,
        order=order,
        text=kwargs.pop("text", f"Question {qid}?"),
        options=options,
        conditions=conditions or [],
        **kwargs,
    )


def cond(external_id: str, operator: str, value: Any) -> Condition:
    """Shorthand to build a Condition."""
    return Condition(question_external_id=external_id, operator=operator, value=value)


def ten_questions() -> list[Question]:
    """Ten required text questions in two sections, q1..q10."""
    return [
        make_question(
            f"q{i}",
            section="Part A" if i <= 5 else "Part B",
            section_order=1 if i <= 5 else 2,
            order=i,
            required=True,
        )
        for i in range(1, 11)
    ]
