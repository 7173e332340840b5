"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (approval links in emails)
    FRONTEND_URL: str = "http://localhost:3000"

    # Scheduled endpoints (cron jobs), sent as "Authorization: Bearer <secret>"
    CRON_SECRET: str = ""

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Archive lifecycle
    ARCHIVE_GRACE_PERIOD_DAYS: int = 7  # Archived records are hard-deleted after this

    # Delete request approval workflow
    DELETE_REQUEST_EXPIRY_HOURS: int = 12
    DELETE_REQUEST_MAX_RETRIES: int = 10
    DELETE_REQUEST_ESCALATION_ENABLED: bool = False
    DELETE_REQUEST_ESCALATION_EMAIL: str = ""
    DELETE_REQUEST_ESCALATION_AFTER_RETRIES: int = 3

    # Reviewer mailbox for delete/transfer approvals
    PAYROLL_EMAIL: str = "payroll@example.com"

    # Email delivery (Resend). Without an API key emails are logged, not sent.
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "noreply@example.com"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def escalation_configured(self) -> bool:
        """Escalation needs both the flag and a recipient."""
        return self.DELETE_REQUEST_ESCALATION_ENABLED and bool(self.DELETE_REQUEST_ESCALATION_EMAIL)


settings = Settings()
