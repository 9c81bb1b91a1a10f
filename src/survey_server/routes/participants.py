"""Participant dedup lookup."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from survey_engine.models.session import ParticipantLookup

from survey_server.dependencies import get_db, get_service
from survey_server.service import SurveyService

router = APIRouter(tags=["participants"])


@router.get("/participants/check")
async def check_participant(
    participant_hash: str | None = Query(None),
    fingerprint: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    service: SurveyService = Depends(get_service),
) -> ParticipantLookup:
    """Classify the caller as new, in_progress or completed.

    400 if neither a participant hash nor a fingerprint is given.
    """
    return await service.check_participant(
        db, participant_hash=participant_hash, fingerprint=fingerprint,
    )
