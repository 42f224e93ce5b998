import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import LibraryError
from .observability import setup_logging
from .settings import get_settings
from .routers import forms as forms_router
from .routers import items as items_router
from .routers import reminders as reminders_router

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "forms", "description": "Check-in and check-out form submission triggers."},
    {"name": "reminders", "description": "Daily due-date reminder trigger."},
    {"name": "items", "description": "Read-only view of the inventory and new-row initialization."},
]

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)

app = FastAPI(
    title="Sheet Music Library",
    description="Tracks checked-out sheet music and emails due-date reminders to holders.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(),
        },
    )


@app.exception_handler(LibraryError)
async def library_exception_handler(request: Request, exc: LibraryError) -> JSONResponse:
    """
    Return the error envelope for fatal library errors (e.g. missing Items sheet).
    """
    logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {
        "message": "Healthy",
        "backend": _settings.persistence_backend,
        "mail_backend": _settings.mail_backend,
        "time_zone": _settings.time_zone,
    }


app.include_router(forms_router.router)
app.include_router(reminders_router.router)
app.include_router(items_router.router)
