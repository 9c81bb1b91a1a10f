"""Answer submission endpoint — idempotent upsert per (session, question)."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from survey_server.dependencies import get_db, get_service
from survey_server.service import SurveyService

router = APIRouter(tags=["responses"])


class SubmitAnswerRequest(BaseModel):
    """Body for POST /responses."""
    session_id: str
    question_id: str
    value: Any = None
    time_taken: int | None = None


@router.post("/responses")
async def submit_answer(
    body: SubmitAnswerRequest,
    db: AsyncSession = Depends(get_db),
    service: SurveyService = Depends(get_service),
) -> dict:
    """Store (or overwrite) one answer.

    404 if the session or the question is unknown.  Re-sending the same
    answer is safe.
    """
    await service.submit_answer(
        db,
        session_id=body.session_id,
        question_id=body.question_id,
        value=body.value,
        time_taken=body.time_taken,
    )
    return {"session_id": body.session_id, "question_id": body.question_id}
