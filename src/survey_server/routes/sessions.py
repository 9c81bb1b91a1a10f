"""Session lifecycle endpoints — create, resume, complete."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from survey_engine.models.session import (
    CompletionReceipt,
    CreatedSession,
    ServerSessionState,
)

from survey_server.dependencies import get_db, get_service
from survey_server.service import SurveyService

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    """Body for POST /sessions."""
    role: str
    language: str = "en"
    participant_hash: str | None = None
    fingerprint: str | None = None
    source_code: str | None = None
    device_info: dict[str, Any] | None = None


class UpdateSessionRequest(BaseModel):
    """Body for PATCH /sessions/{session_id}."""
    complete: bool = False
    response_time: int | None = None
    is_valid: bool | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/sessions", status_code=201)
async def create_session(
    body: CreateSessionRequest,
    db: AsyncSession = Depends(get_db),
    service: SurveyService = Depends(get_service),
) -> CreatedSession:
    """Create a session and return its frozen question snapshot."""
    return await service.create_session(
        db,
        role=body.role,
        language=body.language,
        participant_hash=body.participant_hash,
        fingerprint=body.fingerprint,
        source_code=body.source_code,
        device_info=body.device_info,
    )


@router.get("/sessions/{session_id}/resume")
async def resume_session(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    service: SurveyService = Depends(get_service),
) -> ServerSessionState:
    """Resume payload: questions, answers and the first unanswered index.

    404 if the session does not exist, 409 if it is already completed.
    """
    return await service.resume_session(db, session_id=session_id)


@router.patch("/sessions/{session_id}")
async def update_session(
    session_id: str,
    body: UpdateSessionRequest,
    db: AsyncSession = Depends(get_db),
    service: SurveyService = Depends(get_service),
) -> CompletionReceipt:
    """Complete a session.  Repeating the request keeps the first timestamp."""
    if not body.complete:
        raise ValueError("Invalid update: only completion is supported")
    return await service.complete_session(
        db,
        session_id=session_id,
        response_time=body.response_time,
        is_valid=body.is_valid,
    )
