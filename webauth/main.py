import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from webauth.domain.errors import (
    ConflictRetryExhausted,
    EmailDeliveryFailed,
    LeaseNotAcquired,
    RegistrationFailed,
    StorageUnavailable,
)
from webauth.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter
from webauth.infrastructure.http.client import (
    close_http_client,
    open_http_client,
    get_http_client,
)
from webauth.infrastructure.redis_cache.pool import get_redis, close_redis
from webauth.infrastructure.registration.http_registration_client import (
    HttpRegistrationClient,
)
from webauth.logging import setup_logging
from webauth.presentation.api import api
from webauth.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await open_http_client(settings.http_timeout_seconds)

    get_redis()

    # Adapters share the HTTP client; closing them leaves it open
    email_adapter = HttpSmtpEmailAdapter(
        base_url=settings.smtp_base_url,
        client=get_http_client(),
    )
    registration_client = HttpRegistrationClient(
        base_url=settings.registration_base_url,
        client=get_http_client(),
    )
    app.state.email_adapter = email_adapter  # expose to dependencies
    app.state.registration_client = registration_client

    try:
        yield
    finally:
        # shutdown
        await email_adapter.aclose()
        await registration_client.aclose()
        await close_http_client()
        await close_redis()


async def _storage_unavailable(request: Request, exc: StorageUnavailable):
    logger.error("storage unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=503, content={"detail": "storage temporarily unavailable"}
    )


async def _conflict(request: Request, exc: Exception):
    logger.warning("concurrent update", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=409, content={"detail": "concurrent update, please retry"}
    )


async def _upstream_failed(request: Request, exc: Exception):
    logger.error("upstream service failed", extra={"path": request.url.path, "error": str(exc)})
    detail = (
        "email could not be sent, please request a new code"
        if isinstance(exc, EmailDeliveryFailed)
        else "registration service unavailable"
    )
    return JSONResponse(status_code=502, content={"detail": detail})


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Signup Verification API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.add_exception_handler(StorageUnavailable, _storage_unavailable)
    app.add_exception_handler(ConflictRetryExhausted, _conflict)
    app.add_exception_handler(LeaseNotAcquired, _conflict)
    app.add_exception_handler(RegistrationFailed, _upstream_failed)
    app.add_exception_handler(EmailDeliveryFailed, _upstream_failed)
    app.include_router(api)
    return app


app = create_app()
