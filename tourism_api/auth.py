"""
Somalia Tourism API - Authentication & roles
JWT tokens, password hashing, the user guard and the admin check,
plus the /api/auth routes.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt as pyjwt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from tourism_api.config import Settings
from tourism_api.database import USERS, get_db, serialize_document, utcnow
from tourism_api.errors import AuthenticationError, AuthorizationError, DuplicateKeyError
from tourism_api.schemas import UserLogin, UserRegister

logger = logging.getLogger(__name__)

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
        return False

# ============================================================
# JWT
# ============================================================

def create_token(user: dict, settings: Settings, expires_in: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(user["_id"]),
        "role": user.get("role", "user"),
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else timedelta(days=settings.jwt_expiry_days)),
    }
    return pyjwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return pyjwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except pyjwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

# ============================================================
# REQUEST HELPERS
# ============================================================

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Dependency: require an authenticated, active user."""
    if credentials is None:
        raise AuthenticationError("Authentication required")
    payload = decode_token(credentials.credentials, settings)
    try:
        user_id = ObjectId(payload.get("userId"))
    except (InvalidId, TypeError):
        raise AuthenticationError("Invalid token")
    user = db[USERS].find_one({"_id": user_id}, {"password": 0})
    if not user or not user.get("isActive", True):
        raise AuthenticationError("User not found or inactive")
    return user


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        raise AuthorizationError("Access denied")
    return user


def user_view(user: dict) -> dict:
    return serialize_document({k: v for k, v in user.items() if k != "verificationToken"})

# ============================================================
# ROUTES
# ============================================================

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(payload: UserRegister, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    if db[USERS].find_one({"email": payload.email}):
        raise DuplicateKeyError("Email is already registered")
    user = {
        "name": payload.name,
        "email": payload.email,
        "password": hash_password(payload.password, settings.bcrypt_rounds),
        "phone": payload.phone,
        "country": payload.country,
        "role": "user",
        "walletBalance": 0,
        "isVerified": False,
        "isActive": True,
        "createdAt": utcnow(),
    }
    try:
        user["_id"] = db[USERS].insert_one(user).inserted_id
    except MongoDuplicateKeyError:
        raise DuplicateKeyError("Email is already registered")
    logger.info("Registered user %s", user["email"])
    return {"success": True, "message": "User registered", "data": {"user": user_view(user), "token": create_token(user, settings)}}


@router.post("/login")
def login(payload: UserLogin, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = db[USERS].find_one({"email": payload.email})
    if not user or not user.get("isActive", True) or not verify_password(payload.password, user.get("password")):
        raise AuthenticationError("Invalid email or password")
    return {"success": True, "message": "Logged in", "data": {"user": user_view(user), "token": create_token(user, settings)}}


@router.get("/profile")
def profile(user: dict = Depends(get_current_user)):
    return {"success": True, "data": user_view(user)}
