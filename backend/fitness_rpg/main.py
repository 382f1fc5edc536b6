"""Fitness RPG - FastAPI Application Entry Point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from fitness_rpg import __version__
from fitness_rpg.config import Settings, get_settings
from fitness_rpg.database import Database
from fitness_rpg.exceptions import FitnessRPGError, LimitExceededError
from fitness_rpg.logging_config import setup_logging
from fitness_rpg.routers import ranks_router, users_router, workouts_router
from fitness_rpg.services.locks import user_locks

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Build the API around an explicitly managed database handle."""
    settings = settings or get_settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        setup_logging(settings.log_level, settings.log_dir)
        database.open()
        database.create_all()
        logger.info("%s started", settings.app_name)
        yield
        database.close()
        logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Workout tracking with EXP, levels and ranks",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.user_locks = user_locks

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            settings.frontend_url,
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            logger.info(
                "%s %s %s in %dms",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - start) * 1000,
            )
        return response

    # Error mapping
    @app.exception_handler(FitnessRPGError)
    async def service_error_handler(request: Request, exc: FitnessRPGError):
        content = {"detail": exc.message, "error": exc.error_type}
        if isinstance(exc, LimitExceededError):
            content["limit"] = exc.limit
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "loc": list(error.get("loc", ())),
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "error": "validation_error", "errors": errors},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error": "persistence_error"},
        )

    # Include routers
    app.include_router(users_router, prefix="/api")
    app.include_router(workouts_router, prefix="/api")
    app.include_router(ranks_router, prefix="/api")

    @app.get("/")
    def root():
        """Root endpoint with API info."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "database": database.is_open}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("fitness_rpg.main:app", host="0.0.0.0", port=8000, reload=True)
