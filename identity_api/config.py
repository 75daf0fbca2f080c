from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Used only when SECRET_KEY is not configured. Refused outright in production.
FALLBACK_SECRET_KEY = "fallback_secret_key"


class Settings(BaseSettings):
    # ── App ───────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000"

    # ── Database ──────────────────────────────────────────────
    database_hostname: str = "localhost"
    database_port: str = "5432"
    database_password: str = ""
    database_name: str = "identity"
    database_username: str = "postgres"
    # Full URL wins over the parts above when set (e.g. sqlite:// in tests)
    database_url_override: str = ""

    # ── Signing / sessions ────────────────────────────────────
    secret_key: str = FALLBACK_SECRET_KEY
    session_algorithm: str = "HS256"
    session_expire_minutes: int = 60 * 24 * 30
    session_cookie_name: str = "session"

    # ── Credentials & OTP policy ──────────────────────────────
    bcrypt_rounds: int = 7
    otp_ttl_minutes: int = 10
    password_min_length: int = 8
    password_max_length: int = 14
    # Comma-separated; empty string allows any domain
    allowed_email_domains: str = "gmail.com"
    default_avatar_base: str = "https://robohash.org/"

    # ── Mail (SendGrid) ───────────────────────────────────────
    sendgrid_api_key: str = ""
    mail_from: str
    mail_from_name: str = "Tropical Coders"
    mail_timeout_seconds: float = 10.0

    # ── Object storage (S3 / R2 / MinIO) ──────────────────────
    s3_bucket: str = ""
    s3_region: str = "us-east-1"
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_endpoint: str = ""
    s3_public_base_url: str = ""
    storage_folder: str = "communities"

    @property
    def cors_origins_list(self) -> list[str]:
        """Split comma-separated origins into a list, stripping whitespace."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def allowed_email_domains_list(self) -> list[str]:
        return [d.strip().lower() for d in self.allowed_email_domains.split(",") if d.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def uses_fallback_secret(self) -> bool:
        return self.secret_key == FALLBACK_SECRET_KEY

    @property
    def storage_configured(self) -> bool:
        return bool(self.s3_bucket and self.s3_access_key and self.s3_secret_key and self.s3_public_base_url)

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.database_username}:{self.database_password}"
            f"@{self.database_hostname}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def refuse_fallback_secret_in_production(self) -> "Settings":
        if self.is_production and self.uses_fallback_secret:
            raise ValueError("SECRET_KEY must be set when ENVIRONMENT=production")
        return self

    class Config:
        env_file = ".env"
        # Case-insensitive so SECRET_KEY and secret_key both work
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings loader: reads .env once and reuses it.
    Use this everywhere instead of instantiating Settings() directly.
    """
    return Settings()


# Module-level singleton for convenience imports
settings = get_settings()
