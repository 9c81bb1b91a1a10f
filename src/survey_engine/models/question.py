"""Question catalog models.

A catalog question is read-only to the engine.  Its ``type`` selects the
answer shape the respondent produces:

  - choice:       one option label (or an "Other" answer, see below)
  - multi-choice: a list of option labels (or an "Other" answer)
  - boolean:      True / False
  - likert:       an integer on the configured scale
  - slider:       a number within ``config.min`` .. ``config.max``
  - text:         a short string
  - textarea:     a long string
  - info:         display-only, never answered

When a respondent picks the "Other" option, the answer is stored as
``{"selected": <label or list>, "other_text": <free text>}``.

Visibility is controlled by ``conditions`` (AND-ed).  Each condition refers
to another question by its stable ``external_id`` so the same reference
survives catalog re-imports that change internal ids.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

QuestionType = Literal[
    "choice",
    "multi-choice",
    "boolean",
    "likert",
    "slider",
    "text",
    "textarea",
    "info",
]

ConditionOperator = Literal["equals", "notEquals", "contains", "in", "notIn"]

# Types whose answers are picked from ``options``
OPTION_TYPES: set[str] = {"choice", "multi-choice"}


class Condition(BaseModel):
    """A single visibility predicate over a prior answer."""

    question_external_id: str
    operator: ConditionOperator
    value: Any = None


class LikertLabels(BaseModel):
    """End-point labels for a likert scale."""

    low: str | None = None
    high: str | None = None


class QuestionConfig(BaseModel):
    """Type-specific rendering and validation hints."""

    min: float | None = None
    max: float | None = None
    step: float | None = None
    likert_labels: LikertLabels | None = None
    placeholder: str | None = None
    max_selections: int | None = None


class Question(BaseModel):
    """One catalog question.

    ``id`` is the internal key answers are stored under; ``external_id`` is
    the stable reference used by conditions and ``{{...}}`` piping tokens.
    """

    id: str
    external_id: str
    section: str
    section_order: int = 0
    order: int = 0
    text: str
    sub_text: Optional[str] = None
    type: QuestionType
    options: Optional[list[str]] = None
    required: bool = False
    randomize: bool = False
    conditions: list[Condition] = Field(default_factory=list)
    config: Optional[QuestionConfig] = None
    # Which population sees the question; only meaningful inside the catalog.
    role: Literal["nurse", "doctor", "both"] = "both"

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        """Option-based types must carry at least one option."""
        if self.type in OPTION_TYPES and not self.options:
            raise ValueError(
                f"Question {self.id} of type {self.type} must define options"
            )
        return self

    @property
    def takes_answer(self) -> bool:
        """False for display-only questions (``info``)."""
        return self.type != "info"
