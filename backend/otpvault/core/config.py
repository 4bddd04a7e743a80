from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "otpvault"
    app_env: str = "development"

    database_url: str = "sqlite:///./otpvault.sqlite"
    blob_root: str = "./blobs"

    # JWT
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60

    # OTP
    OTP_TTL_MINUTES: int = 10
    OTP_INVALIDATE_PREVIOUS: bool = False
    OTP_RETENTION_HOURS: int = 24
    OTP_DELIVERY: str = "log"  # "log" | "smtp"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    SMTP_FROM: str = "no-reply@otpvault.local"

    # Files
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    ORPHAN_GRACE_MINUTES: int = 60
    CLEANUP_INTERVAL_SECONDS: int = 3600

    # Auth hardening
    AUTH_MAX_ATTEMPTS: int = 5
    ARGON2_TIME_COST: int = 2
    ARGON2_MEMORY_COST: int = 102400  # KiB (~100 MB)
    ARGON2_PARALLELISM: int = 8

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
