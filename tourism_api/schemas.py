"""
Database Schemas for the Somalia Tourism API

Each model validates the request body for one MongoDB collection.
Stored field names keep the camelCase used by the front end.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints, field_validator

EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$")


def _email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email")
    return value


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _object_id(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError("Invalid id")
    return value


def _password(value: str) -> str:
    if len(value.encode()) > 72:
        raise ValueError("Password must be at most 72 bytes")
    return value


Email = Annotated[str, AfterValidator(_email)]
Timestamp = Annotated[datetime, AfterValidator(_naive_utc)]
Password = Annotated[str, AfterValidator(_password)]
Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]
ObjectIdStr = Annotated[str, AfterValidator(_object_id)]


class Document(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump()


class Credentials(BaseModel):
    """Account payloads: the password is kept exactly as typed."""
    model_config = ConfigDict(extra="ignore")


# ----- Users -----

class UserRegister(Credentials):
    """Travellers signing up from the site"""
    name: Trimmed = Field(..., min_length=1)
    email: Email
    password: Password = Field(..., min_length=6)
    phone: Optional[Trimmed] = None
    country: Optional[Trimmed] = None


class UserLogin(Credentials):
    email: Email
    password: str = Field(..., min_length=1)


# ----- Catalogue -----

class DestinationIn(Document):
    name: str = Field(..., min_length=1, description="Destination name")
    region: Optional[str] = None
    description: Optional[str] = None
    highlights: List[str] = Field(default_factory=list)
    bestTime: Optional[str] = Field(None, description="Best time to visit")
    climate: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    price: Optional[float] = Field(None, ge=0)
    imageUrl: Optional[str] = None
    activities: List[str] = Field(default_factory=list)


class ActivityIn(Document):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration: Optional[str] = Field(None, description="Free text, e.g. 3 hours")
    price: Optional[float] = Field(None, ge=0)
    destinationId: Optional[ObjectIdStr] = None

    def to_document(self) -> dict:
        doc = self.model_dump()
        if doc["destinationId"]:
            doc["destinationId"] = ObjectId(doc["destinationId"])
        return doc


class GuideIn(Document):
    name: str = Field(..., min_length=1)
    bio: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    phone: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)


class ReviewIn(Document):
    destinationId: ObjectIdStr
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


# ----- Bookings -----

class BookingIn(Document):
    destination: str = Field(..., min_length=1)
    travelers: int = Field(1, ge=1)
    travelDate: Optional[Timestamp] = None
    duration: int = Field(1, ge=1, description="Trip length in days")
    totalPrice: float = Field(0, ge=0)
    specialRequirements: str = ""

    @field_validator("travelers", "duration", mode="before")
    @classmethod
    def at_least_one(cls, value):
        return value or 1

    @field_validator("totalPrice", mode="before")
    @classmethod
    def price_or_zero(cls, value):
        return value or 0

    @field_validator("travelDate", "specialRequirements", mode="before")
    @classmethod
    def blank(cls, value, info):
        if value in (None, ""):
            return "" if info.field_name == "specialRequirements" else None
        if info.field_name == "travelDate" and isinstance(value, str) and len(value.strip()) == 10:
            # plain YYYY-MM-DD from the date picker
            return datetime.fromisoformat(value.strip())
        return value


class PublicBookingIn(BookingIn):
    guestName: str = Field(..., min_length=1)
    guestEmail: Email
    guestPhone: Optional[str] = None


class BookingStatusIn(Document):
    status: Literal["pending", "confirmed", "cancelled", "completed"]


# ----- Contact -----

class ContactIn(Document):
    name: str = Field(..., min_length=1)
    email: Email
    subject: str = "No subject"
    message: str = Field(..., min_length=1)

    @field_validator("subject", mode="before")
    @classmethod
    def default_subject(cls, value):
        return value or "No subject"


class NewsletterIn(Document):
    email: Email
