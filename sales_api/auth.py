"""
Sales API - Authentication
Password hashing, JWT tokens and the admin guard used by protected routes.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt as pyjwt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from sales_api.config import Settings
from sales_api.database import ADMINS, get_db
from sales_api.errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

UNAUTHENTICATED = "Please authenticate"

# ============================================================
# PASSWORD HASHING
# ============================================================

def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # stored value is not a bcrypt hash
        return False

# ============================================================
# JWT
# ============================================================

def create_access_token(admin: dict, settings: Settings, expires_in: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(admin["_id"]),
        "username": admin["username"],
        "role": admin.get("role", "admin"),
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else timedelta(days=settings.jwt_expiry_days)),
    }
    return pyjwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    try:
        return pyjwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError(UNAUTHENTICATED, "Token expired")
    except pyjwt.InvalidTokenError:
        raise AuthenticationError(UNAUTHENTICATED, "Invalid token")

# ============================================================
# GUARD
# ============================================================

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Dependency: require an active admin behind a valid bearer token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(UNAUTHENTICATED, "Missing bearer token")
    payload = decode_access_token(credentials.credentials, settings)
    try:
        admin_id = ObjectId(payload.get("id"))
    except (InvalidId, TypeError):
        raise AuthenticationError(UNAUTHENTICATED, "Invalid token")
    admin = db[ADMINS].find_one({"_id": admin_id}, {"password": 0})
    if not admin or not admin.get("isActive", True):
        logger.info("Rejected token for missing or inactive admin %s", admin_id)
        raise AuthenticationError(UNAUTHENTICATED, "Admin not found or inactive")
    return admin


def require_role(*roles: str):
    """Dependency factory: require one of the given admin roles."""
    def checker(admin: dict = Depends(get_current_admin)) -> dict:
        if admin.get("role") not in roles:
            raise AuthorizationError("Access denied", f"Requires role: {', '.join(roles)}")
        return admin
    return checker
