"""survey_db — PostgreSQL persistence layer for survey sessions.

This package provides the ORM models, async engine factory, and repository
behind the session lifecycle API.  It is consumed by ``survey_server``.
"""

from survey_db.engine import get_engine, get_session_factory
from survey_db.models.fingerprint import DeviceFingerprint
from survey_db.models.response import SurveyResponse
from survey_db.models.session import SurveySession
from survey_db.repository import SessionRepository

__all__ = [
    "DeviceFingerprint",
    "SurveyResponse",
    "SurveySession",
    "get_engine",
    "get_session_factory",
    "SessionRepository",
]
