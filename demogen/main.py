import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from alembic.config import Config
from alembic import command
from demogen import __version__
from demogen.api.routes import router as api_router
from demogen.core.config import Settings, settings as default_settings
from demogen.core.engine import PipelineOrchestrator
from demogen.core.errors import DemoGenError, RateLimitError
from demogen.core.logging import configure_logging
from demogen.core.ratelimit import rate_limiter
from demogen.db.session import make_engine
from demogen.schemas.demos import utcnow

log = logging.getLogger(__name__)


def wait_for_database(database_url: str, max_retries: int = 30, retry_delay: float = 1.0) -> None:
    """Wait for the database behind the SQL demo store to accept connections."""
    engine = make_engine(database_url)
    try:
        for attempt in range(max_retries):
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                log.info("Database connection successful")
                return
            except Exception as e:
                if attempt < max_retries - 1:
                    log.warning("Database not ready, retrying in %s seconds (attempt %d/%d): %s",
                                retry_delay, attempt + 1, max_retries, e)
                    time.sleep(retry_delay)
                else:
                    log.error("Database connection failed after %d attempts", max_retries)
                    raise
    finally:
        engine.dispose()


def run_migrations() -> None:
    """Run Alembic migrations to head."""
    log.info("Running database migrations...")
    command.upgrade(Config("alembic.ini"), "head")
    log.info("Database migrations completed successfully")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or f"req_{uuid.uuid4().hex[:12]}"


def create_app(settings: Optional[Settings] = None, orchestrator: Optional[PipelineOrchestrator] = None) -> FastAPI:
    settings = settings or default_settings
    orchestrator = orchestrator or PipelineOrchestrator.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Starting API server...")
        if settings.store_backend == "sql":
            try:
                wait_for_database(settings.database_url)
                run_migrations()
            except Exception as e:
                log.error("API startup failed: %s", e, exc_info=True)
                raise
        log.info("API server startup complete")
        yield
        log.info("Shutting down API server...")
        await orchestrator.wait_idle()

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.settings = settings
    rate_limiter.init_app(app, settings)

    def error_body(exc: DemoGenError, request: Request, error: Optional[str] = None) -> dict:
        message = exc.message
        if settings.app_env == "production" and exc.status_code >= 500:
            message = "An unexpected error occurred"
        return {
            "error": error or message,
            "code": exc.code,
            "message": message,
            "timestamp": utcnow().isoformat(),
            "requestId": _request_id(request),
        }

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = f"{loc}: {first.get('msg', 'Validation error')}" if loc else first.get("msg", "Validation error")
        log.warning("Invalid request on %s: %s", request.url.path, detail)
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid input",
                "code": "VALIDATION_ERROR",
                "message": detail,
                "timestamp": utcnow().isoformat(),
                "requestId": _request_id(request),
            },
        )

    @app.exception_handler(DemoGenError)
    async def demogen_error_handler(request: Request, exc: DemoGenError):
        if exc.status_code == 400:
            return JSONResponse(status_code=400, content=error_body(exc, request, error="Invalid input"))
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, request))

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        retry_after = rate_limiter.retry_after(request, exc)
        log.warning("Rate limit %s exceeded on %s", exc.detail, request.url.path)
        error = RateLimitError("Too many requests, please try again later.", retry_after)
        return JSONResponse(
            status_code=error.status_code,
            content=error_body(error, request),
            headers={"Retry-After": str(retry_after)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content=error_body(DemoGenError(str(exc) or "Internal error"), request))

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:12]}"
        response = await call_next(request)
        response.headers["X-Request-Id"] = request.state.request_id
        return response

    app.include_router(api_router, prefix=settings.api_base_path)
    return app


configure_logging(default_settings.log_level)
app = create_app()
