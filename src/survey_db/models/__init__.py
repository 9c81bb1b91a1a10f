"""ORM models for survey_db."""

from survey_db.models.base import Base
from survey_db.models.fingerprint import DeviceFingerprint
from survey_db.models.response import SurveyResponse
from survey_db.models.session import SurveySession

__all__ = ["Base", "DeviceFingerprint", "SurveyResponse", "SurveySession"]
