# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the academy
backend. Settings are loaded from environment variables with sensible
defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from academy.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class DatabaseSettings(BaseSettings):
    """PostgreSQL configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        name: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "academy"
    password: SecretStr = SecretStr("academy_password")
    host: str = "localhost"
    port: int = 5432
    name: str = "academy"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"


class SMTPSettings(BaseSettings):
    """Outbound email configuration.

    Missing host, user or password puts the email channel in test mode:
    messages are logged as skipped and never sent.

    Attributes:
        host: SMTP server host.
        port: SMTP server port.
        user: SMTP login.
        password: SMTP password (read from SMTP_PASS).
        from_email: Sender address.
        from_name: Sender display name.
        use_tls: Whether to negotiate STARTTLS.
        timeout: Connection timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        extra="ignore",
    )

    host: str | None = None
    port: int = 587
    user: str | None = None
    password: SecretStr | None = Field(
        default=None,
        validation_alias="SMTP_PASS",
    )
    from_email: str = "noreply@fineartacademy.com"
    from_name: str = "Fine Art Academy"
    use_tls: bool = True
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        """Check whether enough is set to open an SMTP session."""
        return bool(self.host and self.user and self.password)


class FirebaseSettings(BaseSettings):
    """Firebase Cloud Messaging configuration.

    Credentials come from FIREBASE_SERVICE_ACCOUNT_JSON (inline JSON) or
    GOOGLE_APPLICATION_CREDENTIALS (path to a service account file).

    Attributes:
        service_account_json: Inline service account JSON.
        credentials_path: Path to a service account file.
        project_id: Optional project id override.
        android_channel: Android notification channel id.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        extra="ignore",
    )

    service_account_json: SecretStr | None = None
    credentials_path: str | None = Field(
        default=None,
        validation_alias="GOOGLE_APPLICATION_CREDENTIALS",
    )
    project_id: str | None = None
    android_channel: str = "academy_notifications"
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        """Check whether any credential source is set."""
        return bool(self.service_account_json or self.credentials_path)


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Attributes:
        secret_key: Secret key for signing tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Access token expiration time.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting for the public form endpoints.

    Attributes:
        enabled: Whether rate limiting is enforced.
        form_limit: slowapi limit string for register/contact/demo forms.
        login_limit: slowapi limit string for login attempts.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    form_limit: str = "10/minute"
    login_limit: str = "20/minute"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class NotificationSettings(BaseSettings):
    """Notification fan-out queue configuration.

    Attributes:
        queue_size: Maximum number of pending events before new ones are dropped.
        workers: Number of delivery worker tasks.
        drain_timeout: Seconds to wait for the queue to drain on shutdown.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        extra="ignore",
    )

    queue_size: int = 1000
    workers: int = 2
    drain_timeout: float = 10.0


class SchemaSettings(BaseSettings):
    """Schema evolution configuration.

    Attributes:
        user_code_prefix: Prefix for generated user codes.
        invoice_prefix: Prefix for generated invoice numbers.
        run_on_startup: Whether the evolver runs during application startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEMA_",
        extra="ignore",
    )

    user_code_prefix: str = "ACD"
    invoice_prefix: str = "INV"
    run_on_startup: bool = True


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        app_name: Display name used in email branding and push titles.
        admin_email: Address promoted to Admin when it registers.
        db: Database settings.
        smtp: Email settings.
        firebase: Push settings.
        jwt: JWT authentication settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        notifications: Fan-out queue settings.
        schema_: Schema evolution settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    app_name: str = "Fine Art Academy"
    admin_email: str = "admin@fineartacademy.com"

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    schema_: SchemaSettings = Field(default_factory=SchemaSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.jwt.secret_key.get_secret_value() == DEFAULT_JWT_SECRET:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing.
    """
    get_settings.cache_clear()
