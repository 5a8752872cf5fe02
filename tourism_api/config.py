"""
Somalia Tourism API - Configuration
Database, JWT, CORS and SMTP settings from the environment.
"""
import os
import secrets
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/somali_tourism"
DEFAULT_DB_NAME = "somali_tourism"
DEFAULT_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


@dataclass
class Settings:
    mongodb_uri: str = DEFAULT_MONGODB_URI
    database_name: Optional[str] = None
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expiry_days: int = 7
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    port: int = 5000
    environment: str = "development"
    bcrypt_rounds: int = 10
    log_level: str = "INFO"

    # SMTP notifications; sending is skipped while smtp_host is empty
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = ""
    admin_email: str = ""

    def __post_init__(self):
        if not self.jwt_secret:
            logger.warning("JWT_SECRET is not set; using a random key, tokens will not survive a restart")
            self.jwt_secret = secrets.token_hex(32)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = list(DEFAULT_ORIGINS)
        frontend = os.getenv("FRONTEND_URL")
        if frontend:
            origins[0] = frontend
        for origin in (os.getenv("ALLOWED_ORIGINS") or "").split(","):
            origin = origin.strip()
            if origin and origin not in origins:
                origins.append(origin)
        smtp_user = os.getenv("SMTP_USER") or os.getenv("EMAIL_USER", "")
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI", DEFAULT_MONGODB_URI),
            database_name=os.getenv("MONGODB_DB") or None,
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_expiry_days=int(os.getenv("JWT_EXPIRY_DAYS", "7")),
            allowed_origins=origins,
            port=int(os.getenv("PORT", "5000")),
            environment=os.getenv("APP_ENV", "development"),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            smtp_host=os.getenv("SMTP_HOST", ""),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=smtp_user,
            smtp_password=os.getenv("SMTP_PASSWORD") or os.getenv("EMAIL_PASS", ""),
            email_from=os.getenv("EMAIL_FROM", smtp_user),
            admin_email=os.getenv("ADMIN_EMAIL", smtp_user),
        )
