"""Journal Memories API - Main Application Module.

This module initializes the FastAPI application with configuration,
middleware, routing and lifecycle management. The lifespan handler owns the
database engine and the text-generation client; request dependencies read
them from ``app.state``.
"""

import logging
import sys
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

# Add the project root to Python path if running directly
if __name__ == "__main__":
    project_root = Path(__file__).parent.parent
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging import setup_logging
from app.database import build_engine, build_session_factory, create_tables
from app.domains.journal.summarizer import GeminiCompletionClient
from app.exceptions.ai import AIConfigurationError
from models.base import utcnow


logger = logging.getLogger(__name__)


def build_completion_client():
    """Gemini client for the process, or None when AI is not configured."""
    if not settings.has_ai_enabled:
        logger.warning("GEMINI_API_KEY not set; chat and summaries are disabled")
        return None
    try:
        return GeminiCompletionClient(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            max_output_tokens=settings.summary_max_tokens,
            temperature=settings.summary_temperature,
            timeout=settings.ai_request_timeout,
        )
    except AIConfigurationError as e:
        logger.error(f"AI service unavailable: {e.message}")
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle events."""
    setup_logging(settings)
    logger.info(f"Starting {settings.app_name} ({settings.environment.value})")

    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.completion_client = build_completion_client()

    # Production: Use Alembic migrations (alembic upgrade head)
    if settings.is_development:
        logger.info("Development mode: creating database tables")
        await create_tables(app.state.engine)
    else:
        logger.info("Use 'alembic upgrade head' to manage the database schema")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await app.state.engine.dispose()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Companion chat that turns conversations into journal memories",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routers(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def setup_exception_handlers(app: FastAPI):
    """Configure global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Handle custom exceptions that have structured detail
        if isinstance(exc.detail, dict) and "message" in exc.detail:
            message = exc.detail["message"]
            error_code = exc.detail.get("error_code", "HTTP_ERROR")
            details = exc.detail.get("details")
        else:
            message = str(exc.detail) if exc.detail else "An error occurred"
            error_code = "HTTP_ERROR"
            details = None

        if exc.status_code >= 500:
            logger.error(
                f"{request.method} {request.url.path} failed: {message}",
                extra={"request_id": getattr(request.state, "request_id", None), "error_code": error_code},
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "message": message,
                "error_code": error_code,
                "details": details,
                "timestamp": utcnow().isoformat(),
                "request_id": getattr(request.state, "request_id", None),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            error_dict = {
                "loc": error.get("loc", []),
                "msg": str(error.get("msg", "Validation error")),
                "type": error.get("type", "value_error"),
            }
            if "input" in error:
                error_dict["input"] = str(error["input"])
            errors.append(error_dict)

        return JSONResponse(
            status_code=422,
            content={
                "status": "error",
                "message": "Validation error",
                "details": errors,
                "timestamp": utcnow().isoformat(),
                "request_id": getattr(request.state, "request_id", None),
            },
        )


def setup_routers(app: FastAPI):
    """Configure application routers."""
    from app.domains.chat.controller import router as chat_router
    from app.domains.journal.controller import router as conversation_router
    from app.domains.journal.controller import summary_router
    from app.domains.memory.controller import router as memory_router
    from app.domains.message.controller import router as message_router
    from app.domains.user.controller import router as user_router

    @app.get("/health")
    async def health_check(request: Request):
        """Report database and AI service status."""
        db_status = "healthy"
        engine = getattr(request.app.state, "engine", None)
        try:
            if engine is None:
                raise RuntimeError("Database engine not initialized")
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database health check failed: {str(e)}")
            db_status = "unhealthy"

        ai_status = "healthy" if getattr(request.app.state, "completion_client", None) else "not_configured"

        body = {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": settings.version,
            "environment": settings.environment.value,
            "timestamp": utcnow().isoformat(),
            "services": {
                "database": db_status,
                "ai_service": ai_status,
            },
        }
        return JSONResponse(status_code=200 if db_status == "healthy" else 503, content=body)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": "Companion chat and journal memories",
            "docs_url": "/docs" if settings.is_development else None,
        }

    app.include_router(user_router)
    app.include_router(message_router)
    app.include_router(chat_router)
    app.include_router(summary_router)
    app.include_router(conversation_router)
    app.include_router(memory_router)


# Create the application instance
app = create_app()


def main():
    """Entry point for running the application directly."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
