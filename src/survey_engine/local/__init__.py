"""Respondent-side durable storage (SQLite via SQLAlchemy)."""

from survey_engine.local.models import LocalEntry, PendingResponseRow
from survey_engine.local.store import LocalStore

__all__ = ["LocalEntry", "LocalStore", "PendingResponseRow"]
