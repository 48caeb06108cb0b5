"""Configuration management."""
import os
from functools import lru_cache

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    def __init__(self, **overrides):
        # Database
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./bookstore.db")
        self.DB_ECHO = _flag("DB_ECHO")

        # Auth
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_ISSUER = os.getenv("JWT_ISSUER", "bookstore-api")
        self.JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "bookstore-users")
        self.ACCESS_TOKEN_TTL = int(os.getenv("ACCESS_TOKEN_TTL", str(24 * 60 * 60)))
        self.REFRESH_TOKEN_TTL = int(os.getenv("REFRESH_TOKEN_TTL", str(7 * 24 * 60 * 60)))

        # API
        self.API_VERSION = os.getenv("API_VERSION", "v1")
        self.FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.SEED_DATA = _flag("SEED_DATA")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown config option: {key}")
            setattr(self, key, value)

    @property
    def API_PREFIX(self) -> str:
        return f"/api/{self.API_VERSION}"


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config()
