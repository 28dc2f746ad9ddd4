"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Redis - cache-aside reads, sessions, rate limiting
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")

    # JWT - access and refresh tokens MUST be signed with different secrets
    jwt_access_secret: str = Field(default="", validation_alias="JWT_ACCESS_SECRET")
    jwt_refresh_secret: str = Field(default="", validation_alias="JWT_REFRESH_SECRET")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=15, ge=1, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    refresh_token_expire_days: int = Field(
        default=7, ge=1, validation_alias="REFRESH_TOKEN_EXPIRE_DAYS",
    )

    # Login policy - some deployments let unverified accounts sign in
    require_email_verification: bool = Field(
        default=True, validation_alias="REQUIRE_EMAIL_VERIFICATION",
    )
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, validation_alias="BCRYPT_ROUNDS")

    # Links
    max_links_per_user: int = Field(default=20, ge=1, validation_alias="MAX_LINKS_PER_USER")

    # Auth cookies
    cookie_secure: bool = Field(default=True, validation_alias="COOKIE_SECURE")
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", validation_alias="COOKIE_SAMESITE",
    )
    cookie_domain: str | None = Field(default=None, validation_alias="COOKIE_DOMAIN")

    # URLs - verification links point at the frontend
    frontend_url: str = Field(default="http://localhost:5173", validation_alias="FRONTEND_URL")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # Outbound email - empty host means emails are only logged
    smtp_host: str = Field(default="", validation_alias="SMTP_HOST")
    smtp_port: int = Field(default=587, validation_alias="SMTP_PORT")
    smtp_username: str = Field(default="", validation_alias="SMTP_USERNAME")
    smtp_password: str = Field(default="", validation_alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, validation_alias="SMTP_USE_TLS")
    email_from: str = Field(default="no-reply@linkbio.local", validation_alias="EMAIL_FROM")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def validate_jwt_secrets(self) -> "Settings":
        """
        Refuse to start with missing or shared JWT secrets.

        Access and refresh tokens are verified against their own secret, so a
        shared secret would let a refresh token pass as an access token.
        """
        if not self.jwt_access_secret or not self.jwt_refresh_secret:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must both be set.")
        if self.jwt_access_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be different.")
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Allowed origins from the comma-separated CORS_ORIGINS value."""
        origins = (part.strip() for part in self.cors_origins_str.split(","))
        return [origin for origin in origins if origin]

    @property
    def access_token_ttl_seconds(self) -> int:
        """Access token lifetime in seconds (also the cookie max-age)."""
        return self.access_token_expire_minutes * 60

    @property
    def refresh_token_ttl_seconds(self) -> int:
        """Refresh token lifetime in seconds (also the cookie max-age)."""
        return self.refresh_token_expire_days * 86400


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
