"""Configuration management from environment variables."""

import os
import logging
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load .env file from project root BEFORE reading environment variables
# Try multiple locations: project root, app directory, current working directory
env_paths = [
    Path(__file__).parent.parent / ".env",  # Project root (preferred)
    Path(__file__).parent / ".env",  # app/ directory (fallback)
    Path.cwd() / ".env",  # Current working directory (fallback)
]

for env_path in env_paths:
    if env_path.exists():
        try:
            load_dotenv(env_path, override=False)
            break
        except (PermissionError, IOError):
            # If we can't read the file, continue to next location
            continue

logger = logging.getLogger(__name__)

DEMO_CLIENT_ID = "demo-client-id"
DEV_SESSION_SECRET = "development-secret-change-in-production"

DEMO_ALLOWED_EMAILS = [
    "demo@example.com",
    "user1@example.com",
    "user2@example.com",
    "test@example.com",
]
DEMO_ADMIN_EMAILS = ["admin@example.com"]


def parse_email_list(value: str) -> List[str]:
    """Split a comma-separated email list, dropping blanks and duplicates."""
    emails: List[str] = []
    for raw in value.split(","):
        email = raw.strip().lower()
        if email and email not in emails:
            emails.append(email)
    return emails


class Config:
    """Application configuration from environment variables."""

    # Server config
    PORT: int = int(os.getenv("PORT", "8080"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").upper()
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # OAuth2 provider config
    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    REDIRECT_URL: str = os.getenv("REDIRECT_URL", "http://localhost:8080/auth/callback")

    # Session config
    SESSION_SECRET: str = os.getenv("SESSION_SECRET", "")
    SECURE_COOKIES: bool = os.getenv("SECURE_COOKIES", "false").lower() == "true"
    SESSION_MAX_AGE_SECONDS: int = 24 * 60 * 60

    # Allowlist seeds
    ALLOWED_EMAILS: str = os.getenv("ALLOWED_EMAILS", "")
    ADMIN_EMAILS: str = os.getenv("ADMIN_EMAILS", "")

    # Storage: empty means in-memory
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT.lower() in ("production", "prod")

    @classmethod
    def is_demo_mode(cls) -> bool:
        """Demo mode is on when no real Google credentials are configured."""
        if not cls.GOOGLE_CLIENT_ID or not cls.GOOGLE_CLIENT_SECRET:
            return True
        return cls.GOOGLE_CLIENT_ID == DEMO_CLIENT_ID

    @classmethod
    def get_session_secret(cls) -> str:
        return cls.SESSION_SECRET or DEV_SESSION_SECRET

    @classmethod
    def use_secure_cookies(cls) -> bool:
        return cls.SECURE_COOKIES or cls.is_production()

    @classmethod
    def get_allowed_emails(cls) -> List[str]:
        """Get the static allowlist seed (admins always included)."""
        allowed = parse_email_list(cls.ALLOWED_EMAILS)
        admins = parse_email_list(cls.ADMIN_EMAILS)
        if not allowed and not admins:
            allowed = list(DEMO_ALLOWED_EMAILS)
            admins = list(DEMO_ADMIN_EMAILS)
        for email in admins:
            if email not in allowed:
                allowed.append(email)
        return allowed

    @classmethod
    def get_admin_emails(cls) -> List[str]:
        """Get the static admin list seed."""
        if not cls.ALLOWED_EMAILS.strip() and not cls.ADMIN_EMAILS.strip():
            return list(DEMO_ADMIN_EMAILS)
        return parse_email_list(cls.ADMIN_EMAILS)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and fail fast on invalid settings."""
        if cls.is_production() and cls.get_session_secret() == DEV_SESSION_SECRET:
            raise RuntimeError(
                "SESSION_SECRET must be set when ENVIRONMENT is production"
            )

    @classmethod
    def log_status(cls) -> None:
        """Log the configuration summary without secret values."""
        logger.info(f"Environment: {cls.ENVIRONMENT}")
        if cls.is_demo_mode():
            logger.info("OAuth mode: demo (Google OAuth not configured), demo login at /auth/demo-login")
        else:
            logger.info("OAuth mode: production (Google OAuth enabled), demo login disabled")
        if cls.SESSION_SECRET:
            logger.info(f"Session secret: configured (length: {len(cls.SESSION_SECRET)} characters)")
        else:
            logger.warning("SESSION_SECRET not set, using development secret")
        logger.info(f"Allowed emails: {'configured' if cls.ALLOWED_EMAILS else 'using defaults'}")
        logger.info(f"Admin emails: {'configured' if cls.ADMIN_EMAILS else 'using defaults'}")
        logger.info(f"Storage: {'database' if cls.DATABASE_URL else 'in-memory'}")


# Global config instance
config = Config()
