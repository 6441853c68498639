"""FastAPI application entry point."""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mutual_aid import models  # noqa: F401  (registers tables on Base.metadata)
from mutual_aid.config import Settings
from mutual_aid.database import Base, build_engine, build_session_factory
from mutual_aid.errors import install_exception_handlers
from mutual_aid.logging_config import setup_logging
from mutual_aid.routers import requests, users

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app around one ``Settings`` instance and one engine."""
    settings = settings or Settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)

    engine = build_engine(settings)

    app = FastAPI(
        title="Mutual Aid",
        description="Help-request marketplace: users post requests, one volunteer accepts each.",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_exception_handlers(app)

    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(requests.router, prefix="/api/requests", tags=["Requests"])

    @app.on_event("startup")
    def on_startup():
        """Create database tables on startup (for SQLite dev mode)."""
        if settings.DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        logger.info("Mutual Aid API started (database: %s)", engine.url.render_as_string(hide_password=True))

    @app.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
