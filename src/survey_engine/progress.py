"""Section progress over the visible question sequence."""

from __future__ import annotations

from typing import Any

from survey_engine.models.question import Question
from survey_engine.models.session import SectionProgress, SurveyProgress
from survey_engine.validation import is_answered


def survey_progress(
    visible: list[Question], answers: dict[str, Any], current_index: int
) -> SurveyProgress:
    """Summarise answered/total counts per section and the current position.

    Sections appear in order of first appearance in ``visible``, which is
    already sorted by section order.
    """
    sections: dict[str, SectionProgress] = {}
    for q in visible:
        entry = sections.get(q.section)
        if entry is None:
            entry = SectionProgress(
                section=q.section,
                section_order=q.section_order,
                question_count=0,
                answered_count=0,
            )
            sections[q.section] = entry
        entry.question_count += 1
        if is_answered(answers.get(q.id)):
            entry.answered_count += 1

    answered = sum(s.answered_count for s in sections.values())
    total = len(visible)
    progress = SurveyProgress(
        answered=answered,
        total=total,
        percent=round(answered * 100 / total) if total else 0,
        sections=list(sections.values()),
    )

    if 0 <= current_index < total:
        current = visible[current_index]
        in_section = [q.id for q in visible if q.section == current.section]
        progress.current_section = current.section
        progress.position_in_section = in_section.index(current.id) + 1
        progress.section_size = len(in_section)
    return progress
