from fastapi import Request

from webauth.application.verification_codes import VerificationCodeService
from webauth.domain.entities import VerificationCode
from webauth.domain.ports.email_port import EmailPort
from webauth.domain.ports.accounts import RegistrationPort
from webauth.infrastructure.redis_cache.lease import RedisLease
from webauth.infrastructure.redis_cache.pool import get_redis
from webauth.infrastructure.redis_cache.table_storage import RedisTableStorage
from webauth.settings import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_verification_codes(request: Request) -> VerificationCodeService:
    settings = get_settings()
    redis = get_redis()
    store = RedisTableStorage(
        redis,
        VerificationCode,
        key_prefix=settings.table_key_prefix,
        page_size=settings.scan_page_size,
        max_retries=settings.merge_max_retries,
    )
    lease = None
    if settings.add_code_lease_enabled:
        lease = RedisLease(
            redis,
            ttl_seconds=settings.lease_ttl_seconds,
            wait_seconds=settings.lease_wait_seconds,
        )
    # This is set in webauth.main lifespan()
    return VerificationCodeService(
        store, request.app.state.registration_client, lease=lease
    )


def get_email_port(request: Request) -> EmailPort:
    # This is set in webauth.main lifespan()
    return request.app.state.email_adapter


def get_registration(request: Request) -> RegistrationPort:
    return request.app.state.registration_client
