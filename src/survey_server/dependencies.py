"""FastAPI dependency injection — DB sessions and the survey service.

Each request that touches the database gets a fresh ``AsyncSession`` from
``get_db()``.  It commits on success and rolls back on error; the service
and repository only ever ``flush()``.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.engine import get_session_factory
from survey_server.service import SurveyService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_service(request: Request) -> SurveyService:
    """Return the SurveyService singleton stashed on ``app.state``."""
    return request.app.state.service
