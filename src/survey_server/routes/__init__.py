"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from survey_server.routes.participants import router as participants_router
from survey_server.routes.questions import router as questions_router
from survey_server.routes.responses import router as responses_router
from survey_server.routes.sessions import router as sessions_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(sessions_router, prefix=API_PREFIX)
    app.include_router(responses_router, prefix=API_PREFIX)
    app.include_router(participants_router, prefix=API_PREFIX)
    app.include_router(questions_router, prefix=API_PREFIX)
