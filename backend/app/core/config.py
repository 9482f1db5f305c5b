from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Academy Billing"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DOMAIN: str = "example.com"
    APP_BASE_URL: str = "http://localhost:3000"
    APP_DATABASE_DSN: str = "sqlite:////tmp/database.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Payment processor
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_pro: str = ""
    stripe_price_premium: str = ""

    # SMTP (empty host means sends are logged and skipped)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "no-reply@example.com"
    SMTP_FROM_NAME: str = "Academy Billing"
    SUPPORT_EMAIL: str = "support@example.com"

    # Email delivery
    EMAIL_MAX_ATTEMPTS: int = 3

    # Reminders
    PAYMENT_REMINDER_DAYS_OVERDUE: int = 7

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Rate limiting
    RATE_LIMIT_GENERATION_PER_MINUTE: int = 30
    RATE_LIMIT_PUBLIC_PER_MINUTE: int = 120

    @property
    def version(self) -> str:
        return self.APP_VERSION


settings = Settings()
