"""
Request schemas for the Sales Management API

Each record schema maps to a MongoDB collection (see ``sales_api.crud.RESOURCES``).
Field names follow the stored documents, so ``magaca`` is the name, ``lacagta``
the amount and ``lacagta_uhartay`` the outstanding customer credit.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints, field_validator

EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$")


def _check_password(value: str) -> str:
    if len(value.encode()) > 72:
        raise ValueError("Password must be at most 72 bytes")
    return value


Password = Annotated[str, AfterValidator(_check_password)]
# passwords are hashed exactly as typed; only these fields are trimmed
Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]


# ----- Admin -----

class AdminRegister(BaseModel):
    """Payload for creating an admin account"""
    model_config = ConfigDict(populate_by_name=True)

    username: Trimmed = Field(..., min_length=3, description="Unique username")
    email: Trimmed = Field(..., description="Unique email address")
    password: Password = Field(..., min_length=6, description="Plain password, hashed before storage")
    full_name: Trimmed = Field(..., alias="fullName", min_length=1, description="Full name")
    role: Literal["admin", "superadmin"] = Field("admin", description="Role: admin or superadmin")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email")
        return value

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, value):
        return value or "admin"


class AdminLogin(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: Password = Field(..., alias="newPassword", min_length=6)


# ----- Records -----

class RecordBase(BaseModel):
    """Fields shared by every sales record"""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    magaca: str = Field(..., min_length=1, description="Customer or item name")
    time: Optional[str] = Field(None, description="Time of day, e.g. 10:30")
    date: datetime = Field(..., description="Record date")
    description: Optional[str] = Field(None, description="Free-text note")

    @field_validator("time", "description", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        if isinstance(value, str) and len(value.strip()) == 10:
            return datetime.fromisoformat(value.strip())
        return value

    @field_validator("date")
    @classmethod
    def naive_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class GeneralSalesIn(RecordBase):
    lacagta: float = Field(..., ge=0, description="Amount")


class DailyBreakdownIn(RecordBase):
    lacagta: float = Field(..., ge=0, description="Amount")


class CustomerCreditIn(RecordBase):
    lacagta_uhartay: float = Field(..., ge=0, description="Outstanding credit amount")


class OutOfStockIn(RecordBase):
    nooca: Literal["bur", "sokor", "shampoo", "other"] = Field(..., description="Item category")
    qaangaadh: str = Field("Dhamaaday", description="Stock status")
