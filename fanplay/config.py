"""Configuration management for API keys and settings."""

import os
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# config.py is in fanplay/, .env is in project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path, override=True)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration from environment variables."""

    # Engine provider ("gemini" is the only one with evidence search)
    PROVIDER: str = os.getenv("FANPLAY_PROVIDER", "gemini").strip().lower()

    # Gemini settings
    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")

    # One engine call per user action, bounded by this timeout
    ENGINE_TIMEOUT_SECONDS: float = float(os.getenv("FANPLAY_ENGINE_TIMEOUT_SECONDS", "90"))
    EVIDENCE_SEARCH: bool = _env_flag("FANPLAY_EVIDENCE_SEARCH", "true")

    # In-memory HTTP sessions: oldest dropped past the cap or after the idle TTL
    MAX_SESSIONS: int = int(os.getenv("FANPLAY_MAX_SESSIONS", "1000"))
    SESSION_TTL_SECONDS: float = float(os.getenv("FANPLAY_SESSION_TTL_SECONDS", "3600"))

    # Server settings
    LOG_LEVEL: str = os.getenv("FANPLAY_LOG_LEVEL", "INFO").upper()
    HOST: str = os.getenv("FANPLAY_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("FANPLAY_PORT", "8010"))

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of missing required settings."""
        missing = []

        if cls.PROVIDER == "gemini" and not cls.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY (required when FANPLAY_PROVIDER=gemini)")

        if cls.ENGINE_TIMEOUT_SECONDS <= 0:
            missing.append("FANPLAY_ENGINE_TIMEOUT_SECONDS (must be positive)")

        return missing
