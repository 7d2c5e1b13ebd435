# humanid/app/core/config.py
"""
Application configuration using pydantic-settings.

Security considerations:
- SECRET_KEY keys every HMAC we derive (app secrets, user hashes) and signs
  console tokens; the default is refused in production
- CORS_ORIGINS parsed from comma-separated env var, never defaults to "*"
- Database URLs normalized for async drivers automatically
- The SMS provider runs in test mode until both Nexmo credentials are set
"""
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "ThisIsADefaultSecretPhrase"


class Settings(BaseSettings):
    """
    Strictly typed, immutable application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)

    Instances are frozen; components receive them through FastAPI
    dependencies or their constructors instead of reading a module global.
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "humanID"
    PROJECT_VERSION: str = "1.0.0"
    BASE_PATH: str = ""

    # ─────────────────────────────────────────────────────────────
    # Environment mode
    # ─────────────────────────────────────────────────────────────
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────
    # Security: HMAC + JWT
    # One process secret keys every derived credential
    # ─────────────────────────────────────────────────────────────
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    # None → console tokens carry no exp claim
    ACCESS_TOKEN_EXPIRE_MINUTES: Optional[int] = None

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info: ValidationInfo) -> str:
        """Ensure the secret key is changed in production."""
        if info.data.get("ENVIRONMENT") == "production" and v == DEFAULT_SECRET_KEY:
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    # ─────────────────────────────────────────────────────────────
    # Database Configuration
    # Priority: DATABASE_URL env var → SQLite fallback for local dev
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./humanid.db"
    DATABASE_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: Optional[str]) -> str:
        """
        Normalize database URLs for async SQLAlchemy compatibility.

        Conversions:
        - postgres://     → postgresql+asyncpg://
        - postgresql://   → postgresql+asyncpg://
        - sqlite:///      → sqlite+aiosqlite:///
        """
        if v is None:
            return "sqlite+aiosqlite:///./humanid.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # Empty string → empty list (NOT "*")
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        """Parse CORS_ORIGINS string into a list of allowed origins."""
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    # ─────────────────────────────────────────────────────────────
    # Phone verification
    # VERIFICATION_FLOW:
    #   sms    → we generate the code and send it through Nexmo SMS
    #   verify → Nexmo Verify generates and checks the code
    # ─────────────────────────────────────────────────────────────
    VERIFICATION_FLOW: Literal["sms", "verify"] = "sms"
    VERIFICATION_CODE_LENGTH: int = 4
    OTP_EXPIRY_SECONDS: int = 60

    NEXMO_API_URL: str = "https://api.nexmo.com"
    NEXMO_REST_URL: str = "https://rest.nexmo.com"
    NEXMO_API_KEY: Optional[str] = None
    NEXMO_API_SECRET: Optional[str] = None
    NEXMO_FROM: str = "humanID"
    NEXMO_BRAND: str = "humanID"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # ─────────────────────────────────────────────────────────────
    # Seed data (init_db.py)
    # ─────────────────────────────────────────────────────────────
    FIRST_ADMIN_EMAIL: str = "admin@local.host"
    FIRST_ADMIN_PASSWORD: str = "admin123"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.DATABASE_URL.lower()

    @property
    def provider_configured(self) -> bool:
        """True when live Nexmo credentials are present."""
        return bool(self.NEXMO_API_KEY and self.NEXMO_API_SECRET)


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Also used as a FastAPI dependency so tests can swap it through
    ``app.dependency_overrides``.
    """
    return Settings()
