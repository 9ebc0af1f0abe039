"""Application configuration management"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

# Repository root (one level above the package)
_BASE_DIR = Path(__file__).resolve().parent.parent

_HMAC_ALGORITHMS = {"HS256", "HS384", "HS512"}


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    APP_NAME: str = "Dashboard API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    WORKERS: int = 4
    TRUSTED_PROXIES: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Database
    DATABASE_URL: str = "sqlite:///./dashboard.db"
    DATABASE_POOL_SIZE: int = 30
    DATABASE_MAX_OVERFLOW: int = 20

    # Tokens
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    REFRESH_TOKEN_EXPIRE_DAYS: int = 365
    REVOKE_REFRESH_TOKENS_ON_LOGOUT: bool = False

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Rate limiting
    RATE_LIMIT_REQUESTS_PER_MINUTE: int = 60
    RATE_LIMIT_PATHS: Annotated[List[str], NoDecode] = ["/api/v1/auth/login"]
    RATE_LIMIT_CLEANUP_INTERVAL_SECONDS: int = 300
    RATE_LIMIT_INACTIVE_SECONDS: int = 1200

    # Maintenance worker
    RUN_MAINTENANCE_WORKER: bool = True
    REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS: int = 3600

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    # Default admin account
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = ""

    # Database initialization discipline
    DB_INIT_MODE: str = "migrate"  # migrate | create_all | off
    DB_REQUIRE_HEAD: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator("CORS_ORIGINS", "RATE_LIMIT_PATHS", "TRUSTED_PROXIES", mode="before")
    @classmethod
    def _parse_list(cls, value: Any) -> Any:
        """
        Accept JSON array or comma-separated values from env.

        Examples:
            RATE_LIMIT_PATHS=["/api/v1/auth/login","/api/v1/user/auth/login"]
            RATE_LIMIT_PATHS=/api/v1/auth/login,/api/v1/auth/device
        """
        if not isinstance(value, str):
            return value

        raw = value.strip()
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None

        if isinstance(parsed, str):
            return [parsed]
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]

        return [item.strip() for item in raw.split(",") if item.strip()]

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def _normalize_algorithm(cls, value: str) -> str:
        return value.strip().upper()

    def get_log_file(self) -> str:
        p = self.LOG_FILE
        if not p or p.startswith(".."):
            return str(_BASE_DIR / "logs" / "app.log")
        return p

    def get_database_url(self) -> str:
        return self.DATABASE_URL

    def validate_security_settings(self) -> None:
        """
        Validate signing configuration. The process must not start without it.

        Raises:
            ValueError: If the signing secret is missing, the algorithm is not
                a symmetric HMAC algorithm, or production uses a weak secret.
        """
        if not self.JWT_SECRET:
            raise ValueError("JWT_SECRET environment variable is required")

        if self.JWT_ALGORITHM not in _HMAC_ALGORITHMS:
            raise ValueError(
                f"Unsupported JWT_ALGORITHM {self.JWT_ALGORITHM!r}; use one of {sorted(_HMAC_ALGORITHMS)}"
            )

        if self.ENVIRONMENT.lower() != "production":
            return

        insecure_secret_markers = {
            "change-me",
            "dev-secret-key-change-in-production",
        }
        if self.JWT_SECRET in insecure_secret_markers or len(self.JWT_SECRET) < 32:
            raise ValueError(
                "Insecure JWT_SECRET for production. Use a strong key (e.g. `openssl rand -hex 32`)."
            )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
