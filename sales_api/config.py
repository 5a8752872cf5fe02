"""
Sales API - Configuration
Environment variables for the database, JWT signing, CORS and the runner.
"""
import os
import secrets
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/sales_db"
DEFAULT_DB_NAME = "sales_db"
DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [o.strip() for o in raw.split(",") if o.strip()]


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

    def __post_init__(self):
        if not self.jwt_secret:
            logger.warning("JWT_SECRET is not set; using a random key, tokens will not survive a restart")
            self.jwt_secret = secrets.token_hex(32)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = list(DEFAULT_ORIGINS)
        for origin in _split_origins(os.getenv("FRONTEND_URL")) + _split_origins(os.getenv("ALLOWED_ORIGINS")):
            if origin not in origins:
                origins.append(origin)
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
        )
