"""Main FastAPI application."""
from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.api.deps import get_db
from app.core.config import settings
from app.core.errors import PollError, describe_error
from app.core.rate_limit import limiter
from app.core.logging_config import setup_logging, get_logger
from app.core.cache import global_cache
from app.middleware import LoggingMiddleware
from app.schemas import ErrorDetail, ErrorResponse

# Initialize structured logging
setup_logging(level=settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)

if settings.ENVIRONMENT == "production":
    settings.validate_production_config()

logger.info(
    "application_starting",
    app_title=settings.APP_TITLE,
    app_version=settings.APP_VERSION,
    environment=settings.ENVIRONMENT,
)

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION
)

# Add rate limiter to app state
app.state.limiter = limiter

# Must be added before other middleware for proper request tracking
app.add_middleware(LoggingMiddleware)


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    """Add X-API-Version header to all responses for version tracking."""
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # Session cookie
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


# status code -> (code, title) for errors raised as HTTPException
HTTP_ERRORS = {
    401: ("not_authenticated", "Not Authenticated"),
    403: ("forbidden", "Not Allowed"),
    404: ("not_found", "Not Found"),
    405: ("method_not_allowed", "Method Not Allowed"),
    429: ("rate_limited", "Too Many Requests"),
}


def _error_response(status_code: int, code: str, title: str, message: str, headers=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, title=title, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    """First schema error as "field: reason", the way service validation reads."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{field}: {first['msg']}" if field else first["msg"]


@app.exception_handler(PollError)
async def poll_error_handler(request: Request, exc: PollError) -> JSONResponse:
    """Domain errors carry their own status code and member-facing message."""
    logger.info("poll_request_rejected", code=exc.code, reason=str(exc))
    message = describe_error(exc)
    return _error_response(exc.status_code, exc.code, message.title, message.description)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema rejections look the same as service-side validation errors."""
    message = _validation_message(exc)
    logger.info("request_validation_failed", reason=message)
    return _error_response(400, "validation_error", "Validation Error", message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("rate_limit_exceeded", limit=str(exc.detail))
    code, title = HTTP_ERRORS[429]
    response = _error_response(429, code, title, f"Rate limit exceeded: {exc.detail}. Please slow down.")
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Authentication and routing errors, wrapped in the same envelope."""
    code, title = HTTP_ERRORS.get(exc.status_code, ("http_error", "Error"))
    return _error_response(exc.status_code, code, title, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store errors are reported without leaking SQL; nothing is retried here."""
    message = describe_error(exc)
    if isinstance(exc, IntegrityError):
        logger.warning("database_constraint_violation", error=str(exc.orig))
        return _error_response(409, "conflict", message.title, message.description)

    logger.error("database_error", error=str(exc), exception_type=type(exc).__name__)
    return _error_response(503, "database_unavailable", message.title, message.description)



app.include_router(api_router)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
        - status: "healthy" or "unhealthy"
        - cache: Poll cache statistics (size, hits, misses, hit rate)
        - database: Database connection status
        - environment: Current environment setting

    Returns 503 if database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "cache": global_cache.get_stats(),
        "database": {"status": "connected"},
    }

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        health_status["status"] = "unhealthy"
        health_status["database"]["status"] = f"error: {str(e)}"
        logger.error("health_check_failed", error=str(e))
        return JSONResponse(status_code=503, content=health_status)

    return health_status
