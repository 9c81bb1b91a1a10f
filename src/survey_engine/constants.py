"""Survey engine constants shared across the SDK.

These values are referenced by the controller, the sync driver, the snapshot
store and the server-side session service.

Several constants can be overridden via environment variables so that
field deployments can tune retry and expiry behaviour without code changes.
"""

import os

# Respondent populations.  Catalog questions tagged "both" are shown to every role.
ROLES: tuple[str, ...] = ("nurse", "doctor")
SHARED_ROLE = "both"

# Display languages the respondent may switch between mid-survey.
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "hi", "ta", "ml")
DEFAULT_LANGUAGE = os.getenv("SURVEY_DEFAULT_LANGUAGE", "en")

# A saved progress snapshot older than this (measured from its last update)
# is discarded instead of being offered for recovery.
SNAPSHOT_TTL_HOURS = float(os.getenv("SNAPSHOT_TTL_HOURS", "24"))

# Completion is attempted this many times; the delays (seconds) are slept
# between consecutive attempts, so there is one fewer delay than attempts.
COMPLETION_MAX_ATTEMPTS = int(os.getenv("COMPLETION_MAX_ATTEMPTS", "3"))
COMPLETION_RETRY_DELAYS: tuple[float, ...] = (1.0, 2.0)

# Period of the background sync loop.
SYNC_INTERVAL_SECONDS = float(os.getenv("SYNC_INTERVAL_SECONDS", "30"))

# A device fingerprint that has already started this many sessions marks the
# next session as a probable duplicate (is_valid=False).  Never blocks entry.
FINGERPRINT_DUPLICATE_THRESHOLD = int(
    os.getenv("FINGERPRINT_DUPLICATE_THRESHOLD", "2")
)

# Label of the free-text escape option on choice questions.
OTHER_OPTION = "Other"

# Question types that never take an answer and are skipped by the
# required-answer check.
DISPLAY_ONLY_TYPES: set[str] = {"info"}

# Local durable store (SQLite file) used by the respondent-side engine.
LOCAL_DB_PATH = os.getenv("SURVEY_LOCAL_DB", "survey_local.db")

# HTTP client defaults.
API_BASE_URL = os.getenv("SURVEY_API_URL", "http://localhost:8080")
HTTP_TIMEOUT_SECONDS = float(os.getenv("SURVEY_HTTP_TIMEOUT", "10"))
