# filedrop/core/config.py
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

NINETY_DAYS = 2592000 * 3


class Settings(BaseSettings):
    database_url: str = "sqlite:///./filedrop.db"

    # signs session tokens and salts magic-link token hashes
    secret_key: str
    base_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    session_max_age: int = NINETY_DAYS
    session_cookie_name: str = "session_token"
    cookie_secure: bool = False

    # magic-link email
    email_token_max_age: int = 86400
    email_server_host: Optional[str] = None
    email_server_port: int = 587
    email_server_user: Optional[str] = None
    email_server_password: Optional[str] = None
    email_server_use_tls: bool = False
    email_from: str = "noreply@localhost"

    # GitHub OAuth
    github_id: Optional[str] = None
    github_secret: Optional[str] = None

    # object storage for uploaded files
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = None
    aws_s3_bucket_name: Optional[str] = None

    # Tell pydantic-settings to load from .env at project root
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore any extra stuff in .env
    )

    @property
    def normalized_base_url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def email_enabled(self) -> bool:
        return bool(self.email_server_host)

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_id and self.github_secret)

    @property
    def storage_enabled(self) -> bool:
        return bool(self.aws_s3_bucket_name)


@lru_cache
def get_settings() -> Settings:
    return Settings()
