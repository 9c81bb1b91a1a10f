"""Answer validation — shape checks and the required-answer rule.

Validation failures raise ``ValueError`` locally and never reach the
network.  ``validate_answer`` runs when an answer is given;
``require_answer`` runs when the respondent tries to move past a question.
"""

from __future__ import annotations

from typing import Any

from survey_engine.constants import DISPLAY_ONLY_TYPES, OTHER_OPTION
from survey_engine.models.question import Question

# Likert scale bounds when the question config does not set them
DEFAULT_LIKERT_MIN = 1
DEFAULT_LIKERT_MAX = 5


class RequiredAnswerError(ValueError):
    """Navigation blocked because a required question has no answer."""


def is_answered(value: Any) -> bool:
    """True if ``value`` counts as an answer.

    None, blank strings, empty lists and "Other" answers with nothing
    selected are all unanswered.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list):
        return len(value) > 0
    if isinstance(value, dict) and "selected" in value:
        return is_answered(value["selected"])
    return True


def require_answer(question: Question, value: Any) -> None:
    """Raise ``RequiredAnswerError`` if a required question is unanswered."""
    if not question.required or question.type in DISPLAY_ONLY_TYPES:
        return
    if not is_answered(value):
        raise RequiredAnswerError(f"Question {question.id} requires an answer")


def validate_answer(question: Question, value: Any) -> None:
    """Check that ``value`` has the shape ``question.type`` expects.

    Raises:
        ValueError: with a descriptive message if any check fails.
    """
    qtype = question.type

    if qtype in DISPLAY_ONLY_TYPES:
        raise ValueError(f"Question {question.id} does not take an answer")
    if value is None:
        raise ValueError(f"Answer to {question.id} must not be None")

    # --- choice: one option label, or an "Other" answer ---
    if qtype == "choice":
        if isinstance(value, dict):
            _validate_other(question, value, multiple=False)
            return
        if value not in (question.options or []):
            raise ValueError(f"'{value}' is not an option of {question.id}")

    # --- multi-choice: list of distinct option labels ---
    elif qtype == "multi-choice":
        selected = value
        if isinstance(value, dict):
            _validate_other(question, value, multiple=True)
            selected = value["selected"]
        if not isinstance(selected, list):
            raise ValueError(
                f"Answer to {question.id} must be a list, got {type(selected).__name__}"
            )
        unknown = [v for v in selected if v not in (question.options or [])]
        if unknown:
            raise ValueError(f"{unknown} are not options of {question.id}")
        if len(set(selected)) != len(selected):
            raise ValueError(f"Duplicate selections for {question.id}")
        limit = question.config.max_selections if question.config else None
        if limit is not None and len(selected) > limit:
            raise ValueError(
                f"At most {limit} selections allowed for {question.id}, got {len(selected)}"
            )

    # --- boolean ---
    elif qtype == "boolean":
        if not isinstance(value, bool):
            raise ValueError(
                f"Answer to {question.id} must be a boolean, got {type(value).__name__}"
            )

    # --- likert: integer on the scale ---
    elif qtype == "likert":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(
                f"Answer to {question.id} must be an integer, got {type(value).__name__}"
            )
        lo, hi = _bounds(question, DEFAULT_LIKERT_MIN, DEFAULT_LIKERT_MAX)
        _check_range(question, value, lo, hi)

    # --- slider: number within the configured range ---
    elif qtype == "slider":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(
                f"Answer to {question.id} must be a number, got {type(value).__name__}"
            )
        lo, hi = _bounds(question, None, None)
        _check_range(question, value, lo, hi)

    # --- text / textarea ---
    elif qtype in ("text", "textarea"):
        if not isinstance(value, str):
            raise ValueError(
                f"Answer to {question.id} must be a string, got {type(value).__name__}"
            )


def _validate_other(question: Question, value: dict, *, multiple: bool) -> None:
    """Validate an ``{"selected": ..., "other_text": ...}`` answer."""
    if OTHER_OPTION not in (question.options or []):
        raise ValueError(f"Question {question.id} has no '{OTHER_OPTION}' option")
    if "selected" not in value:
        raise ValueError(f"Other answer to {question.id} is missing 'selected'")
    selected = value["selected"]
    if multiple:
        chose_other = isinstance(selected, list) and OTHER_OPTION in selected
    else:
        chose_other = selected == OTHER_OPTION
    if not chose_other:
        raise ValueError(
            f"Other answer to {question.id} must select '{OTHER_OPTION}'"
        )
    other_text = value.get("other_text")
    if other_text is not None and not isinstance(other_text, str):
        raise ValueError(f"other_text of {question.id} must be a string")


def _bounds(
    question: Question, lo: float | None, hi: float | None
) -> tuple[float | None, float | None]:
    if question.config is not None:
        if question.config.min is not None:
            lo = question.config.min
        if question.config.max is not None:
            hi = question.config.max
    return lo, hi


def _check_range(
    question: Question, value: float, lo: float | None, hi: float | None
) -> None:
    if lo is not None and value < lo:
        raise ValueError(f"Answer to {question.id} must be >= {lo}, got {value}")
    if hi is not None and value > hi:
        raise ValueError(f"Answer to {question.id} must be <= {hi}, got {value}")
