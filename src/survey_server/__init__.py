"""survey_server — FastAPI service for the survey session lifecycle.

Exposes ``SurveyService`` over HTTP:

    POST  /api/v1/sessions                 — create a session (frozen questions)
    GET   /api/v1/sessions/{id}/resume     — resume payload
    PATCH /api/v1/sessions/{id}            — complete a session
    POST  /api/v1/responses                — upsert one answer
    GET   /api/v1/participants/check       — dedup lookup
    GET   /api/v1/questions?role=          — read-only catalog
    GET   /health                          — readiness check
"""
