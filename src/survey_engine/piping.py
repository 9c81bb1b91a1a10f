"""Text piping — substitutes earlier answers into question text.

A token ``{{N1}}`` in a question's ``text`` or ``sub_text`` is replaced by
the answer to the question whose ``external_id`` is ``N1``.  Substitution
is a single pass: text produced by an answer is never scanned again.

Tokens that reference an unknown question, or a question without an answer,
are left in place verbatim so a missing answer is visible rather than
silently blank.
"""

from __future__ import annotations

import json
import re
from typing import Any

from survey_engine.models.question import Question

# {{external_id}} with an identifier made of word characters
TOKEN_RE = re.compile(r"\{\{(\w+)\}\}")


def render_answer(answer: Any) -> str:
    """Render an answer as display text.

    Lists join with ``", "``; dicts (e.g. "Other" answers) render as JSON;
    booleans and numbers use their plain string form.
    """
    if isinstance(answer, list):
        return ", ".join(str(item) for item in answer)
    if isinstance(answer, dict):
        return json.dumps(answer, ensure_ascii=False)
    return str(answer)


def pipe_text(
    text: str | None, questions: list[Question], answers: dict[str, Any]
) -> str | None:
    """Replace every ``{{externalId}}`` token in ``text`` with its answer."""
    if not text:
        return text

    by_external = {q.external_id: q.id for q in questions}

    def _substitute(match: re.Match) -> str:
        question_id = by_external.get(match.group(1))
        if question_id is None:
            return match.group(0)
        answer = answers.get(question_id)
        if answer is None:
            return match.group(0)
        return render_answer(answer)

    return TOKEN_RE.sub(_substitute, text)


def pipe_question(
    question: Question, questions: list[Question], answers: dict[str, Any]
) -> Question:
    """Return a copy of ``question`` with piping applied to text and sub_text.

    The catalog question itself is never modified.
    """
    text = pipe_text(question.text, questions, answers)
    sub_text = pipe_text(question.sub_text, questions, answers)
    if text == question.text and sub_text == question.sub_text:
        return question
    return question.model_copy(update={"text": text, "sub_text": sub_text})
