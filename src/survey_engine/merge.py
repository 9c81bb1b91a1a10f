"""Resume merge — reconcile the server's view with the local snapshot.

Local answers win for any question present in both maps: a local answer
exists only because the respondent gave it on this device, and may simply
not have been delivered yet.  The position comes from the server, which
computes it as the first visible unanswered question, and is clamped to the
visible sequence derived from the merged answers.

``merge_resume_state`` is pure: no I/O, no clock, no mutation of its inputs.
"""

from __future__ import annotations

import logging

from survey_engine.evaluator import ConditionEvaluator
from survey_engine.models.records import ProgressSnapshot
from survey_engine.models.session import ResolvedState, ServerSessionState

logger = logging.getLogger(__name__)


def merge_resume_state(
    server: ServerSessionState,
    local: ProgressSnapshot | None,
    evaluator: ConditionEvaluator | None = None,
) -> ResolvedState:
    """Combine server state and an optional local snapshot.

    A snapshot that belongs to a different session is ignored.
    """
    evaluator = evaluator or ConditionEvaluator()

    answers = dict(server.answers)
    language = server.language
    if local is not None:
        if local.session_id == server.session_id:
            answers.update(local.answers)
            language = server.language or local.language
        else:
            logger.info(
                "Ignoring snapshot of session %s while resuming %s",
                local.session_id, server.session_id,
            )

    visible = evaluator.visible_questions(server.questions, answers)
    current_index = min(max(server.current_index, 0), max(len(visible) - 1, 0))

    return ResolvedState(
        session_id=server.session_id,
        role=server.role,
        language=language,
        questions=server.questions,
        answers=answers,
        current_index=current_index,
    )
