from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"
    public_base_url: str = "http://localhost:8000"

    # Infra
    redis_url: str = "redis://redis:6379/0"
    smtp_base_url: str = "http://smtp-mock:8025"
    registration_base_url: str = "http://registration:5000"
    http_timeout_seconds: float = 10.0

    # Table storage
    table_key_prefix: str = "tbl:"
    scan_page_size: int = 100
    merge_max_retries: int = 10

    # Verification policies
    resend_limit: int = 2
    add_code_lease_enabled: bool = False
    lease_ttl_seconds: int = 10
    lease_wait_seconds: float = 2.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
