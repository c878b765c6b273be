"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from examguard.api.dependencies import get_session_store
from examguard.api.routers import api_router
from examguard.config.settings import Settings, get_settings
from examguard.infrastructure.llm.factory import close_shared_client
from examguard.infrastructure.logging.logger import setup_logging
from examguard.services.verification.exceptions import (
    SessionNotFoundError,
    SessionStateError,
    VerificationError,
    VerificationUnavailableError,
)

settings = get_settings()

setup_logging(
    level=settings.log_level,
    json_output=not settings.debug,
    silence_noisy_loggers=True,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[VerificationError], int] = {
    SessionNotFoundError: 404,
    SessionStateError: 409,
    VerificationUnavailableError: 503,
}


def _validate_startup_config(settings: Settings) -> None:
    """Validate required configuration at startup."""
    if not settings.anthropic_api_key:
        logger.warning(
            "No AI API key configured (anthropic_api_key); verification will resolve "
            "through the %s policy",
            settings.failure_policy.value,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown lifecycle."""
    logger.info("Starting %s", settings.app_name)
    _validate_startup_config(settings)
    yield
    logger.info("Shutting down %s", settings.app_name)
    try:
        await get_session_store().close_all()
        logger.info("Live sessions closed")
    except Exception as e:
        logger.error("Error closing live sessions: %s", e, exc_info=True)
    try:
        await close_shared_client()
        logger.info("Shared model client closed")
    except Exception as e:
        logger.error("Error closing shared model client: %s", e, exc_info=True)


async def verification_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    if status_code == 500:
        logger.error("Unhandled verification error on %s: %s", request.url.path, exc, exc_info=True)
    details = exc.details if isinstance(exc, VerificationError) else {}
    message = exc.message if isinstance(exc, VerificationError) else str(exc)
    return JSONResponse(status_code=status_code, content={"detail": message, "details": details})


app = FastAPI(
    title=settings.app_name,
    description="Identity verification and violation tracking for live AI exams",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_exception_handler(VerificationError, verification_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

app.include_router(api_router, prefix="/api")
