import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging
from app.core.exceptions import register_exception_handlers
from app.middleware import CorrelationIdMiddleware
from app.services.session_service import SessionRegistry

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Route imports
from app.api.health import router as health_router
from app.api.v1 import sessions as v1_sessions
from app.api.v1 import analyses as v1_analyses
from app.api.v1 import reports as v1_reports
from app.api.v1 import chat as v1_chat


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)

    # Session histories live here for the lifetime of the process
    app.state.sessions = SessionRegistry()

    # Middleware: correlation id
    app.add_middleware(CorrelationIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api", tags=["health"])

    # v1 API routes
    app.include_router(v1_sessions.router, prefix="/api/v1", tags=["sessions"])
    app.include_router(v1_analyses.router, prefix="/api/v1", tags=["analyses"])
    app.include_router(v1_reports.router, prefix="/api/v1", tags=["reports"])
    app.include_router(v1_chat.router, prefix="/api/v1", tags=["assistant"])

    # Exception handlers
    register_exception_handlers(app)

    @app.on_event("startup")
    async def on_startup():
        logger.info("Starting app", extra={"app": settings.APP_NAME})

    @app.on_event("shutdown")
    async def on_shutdown():
        logger.info("Shutting down", extra={"open_sessions": len(app.state.sessions)})

    return app


app = create_app()
