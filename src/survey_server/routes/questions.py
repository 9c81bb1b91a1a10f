"""Read-only catalog endpoints — no database access.

Serves the live catalog, not a session's frozen snapshot; sessions always
read their questions from the snapshot taken at creation.
"""

from fastapi import APIRouter, Depends, Query

from survey_engine.models.question import Question

from survey_server.dependencies import get_service
from survey_server.service import SurveyService

router = APIRouter(tags=["questions"])


@router.get("/questions")
async def list_questions(
    role: str = Query(...),
    service: SurveyService = Depends(get_service),
) -> list[Question]:
    """Questions for ``role`` in survey order.  400 for an unknown role."""
    return service.list_questions(role)
