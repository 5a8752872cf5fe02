"""
Somalia Tourism API - Routes
Destinations, bookings, contact/newsletter, reviews and the admin dashboard.
"""
import html
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError, PyMongoError

from tourism_api.auth import get_current_user, get_settings, require_admin
from tourism_api.config import Settings
from tourism_api.database import (
    BOOKINGS,
    CONTACT_MESSAGES,
    DESTINATIONS,
    NEWSLETTER_SUBSCRIBERS,
    REVIEWS,
    USERS,
    get_db,
    parse_object_id,
    serialize_document,
    utcnow,
)
from tourism_api.errors import DuplicateKeyError, NotFoundError, UnhandledError, ValidationError
from tourism_api.notifications import send_email
from tourism_api.resources import ACTIVITY, DESTINATION, GUIDE, create_resource_router
from tourism_api.schemas import (
    BookingIn,
    BookingStatusIn,
    ContactIn,
    NewsletterIn,
    PublicBookingIn,
    ReviewIn,
)
from tourism_api.search import build_search_filter

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("createdAt", -1)]


def _server_error(context: str, e: PyMongoError):
    logger.error("%s: %s", context, e)
    return UnhandledError("Server error", str(e))


# ============================================================
# DESTINATIONS
# ============================================================

destinations = APIRouter(prefix="/api/destinations", tags=["Destination"])


@destinations.get("/popular")
def popular_destinations(db: Database = Depends(get_db)):
    try:
        items = list(db[DESTINATIONS].find().sort("rating", -1).limit(6))
    except PyMongoError as e:
        raise _server_error("Popular destinations", e)
    return {"success": True, "count": len(items), "data": serialize_document(items)}


@destinations.get("/search")
def search_destinations(q: Optional[str] = None, db: Database = Depends(get_db)):
    if not q or not q.strip():
        raise ValidationError("Query required")
    try:
        items = list(db[DESTINATIONS].find(build_search_filter("destination", q)))
    except PyMongoError as e:
        raise _server_error("Search destinations", e)
    return {"success": True, "count": len(items), "data": serialize_document(items)}


create_resource_router(DESTINATION, destinations)
activities = create_resource_router(ACTIVITY)
guides = create_resource_router(GUIDE)


# ============================================================
# BOOKINGS
# ============================================================

bookings = APIRouter(prefix="/api/bookings", tags=["Booking"])


@bookings.post("/public", status_code=201)
def create_public_booking(
    payload: PublicBookingIn,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    booking = dict(payload.model_dump(), userId=None, status="pending", createdAt=utcnow())
    try:
        booking["_id"] = db[BOOKINGS].insert_one(booking).inserted_id
    except PyMongoError as e:
        raise _server_error("Public booking", e)
    send_email(
        settings,
        booking["guestEmail"],
        "Booking Received - Somalia Tourism",
        f"<p>Hi {html.escape(booking['guestName'])},</p><p>Thank you for your booking request for "
        f"{html.escape(booking['destination'])}. We will contact you shortly to confirm details.</p>",
    )
    return {"success": True, "message": "Booking submitted", "data": serialize_document(booking)}


@bookings.post("", status_code=201)
def create_booking(
    payload: BookingIn,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: dict = Depends(get_current_user),
):
    booking = dict(payload.model_dump(), userId=user["_id"], status="pending", createdAt=utcnow())
    try:
        booking["_id"] = db[BOOKINGS].insert_one(booking).inserted_id
    except PyMongoError as e:
        raise _server_error("Create booking", e)
    send_email(
        settings,
        user.get("email"),
        "Booking Confirmation",
        f"<p>Your booking for {html.escape(booking['destination'])} was created.</p>",
    )
    return {"success": True, "message": "Booking created", "data": serialize_document(booking)}


@bookings.get("")
def my_bookings(db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    try:
        items = list(db[BOOKINGS].find({"userId": user["_id"]}).sort(NEWEST_FIRST))
    except PyMongoError as e:
        raise _server_error("Get bookings", e)
    return {"success": True, "count": len(items), "data": serialize_document(items)}


def _populate_users(db: Database, items: list) -> list:
    ids = {b["userId"] for b in items if b.get("userId")}
    users = {}
    if ids:
        users = {u["_id"]: u for u in db[USERS].find({"_id": {"$in": list(ids)}}, {"name": 1, "email": 1})}
    for b in items:
        if b.get("userId"):
            b["userId"] = users.get(b["userId"])
    return items


@bookings.get("/admin/all")
def all_bookings(db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    try:
        items = _populate_users(db, list(db[BOOKINGS].find().sort(NEWEST_FIRST)))
    except PyMongoError as e:
        raise _server_error("Admin bookings", e)
    return {"success": True, "count": len(items), "data": serialize_document(items)}


@bookings.put("/{booking_id}/status")
def update_booking_status(
    booking_id: str,
    payload: BookingStatusIn,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(require_admin),
):
    oid = parse_object_id(booking_id, "booking id")
    try:
        booking = db[BOOKINGS].find_one_and_update(
            {"_id": oid}, {"$set": {"status": payload.status}}, return_document=ReturnDocument.AFTER
        )
    except PyMongoError as e:
        raise _server_error("Update booking status", e)
    if not booking:
        raise NotFoundError("Booking not found")
    booking = _populate_users(db, [booking])[0]
    owner = booking.get("userId") or {}
    send_email(
        settings,
        owner.get("email") or booking.get("guestEmail"),
        f"Booking Status: {payload.status}",
        f"<p>Your booking status changed to {html.escape(payload.status)}.</p>",
    )
    return {"success": True, "message": "Booking status updated", "data": serialize_document(booking)}


# ============================================================
# CONTACT & NEWSLETTER
# ============================================================

contact = APIRouter(prefix="/api/contact", tags=["Contact"])


@contact.post("", status_code=201)
def submit_contact(payload: ContactIn, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    message = dict(payload.model_dump(), read=False, createdAt=utcnow())
    try:
        db[CONTACT_MESSAGES].insert_one(message)
    except PyMongoError as e:
        raise _server_error("Contact submit", e)
    send_email(
        settings,
        settings.admin_email,
        f"New contact: {payload.subject}",
        f"<p>From: {html.escape(payload.name)} ({html.escape(payload.email)})</p>"
        f"<p>{html.escape(payload.message)}</p>",
    )
    return {"success": True, "message": "Message sent"}


@contact.post("/newsletter/subscribe", status_code=201)
def subscribe(payload: NewsletterIn, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    subscribers = db[NEWSLETTER_SUBSCRIBERS]
    if subscribers.find_one({"email": payload.email}):
        raise DuplicateKeyError("Already subscribed")
    try:
        subscribers.insert_one({"email": payload.email, "subscribedAt": utcnow()})
    except MongoDuplicateKeyError:
        raise DuplicateKeyError("Already subscribed")
    except PyMongoError as e:
        raise _server_error("Newsletter subscribe", e)
    send_email(settings, payload.email, "Subscribed", "<p>Thanks for subscribing</p>")
    return {"success": True, "message": "Subscribed"}


# ============================================================
# REVIEWS
# ============================================================

reviews = APIRouter(prefix="/api/reviews", tags=["Review"])


@reviews.get("")
def list_reviews(destinationId: Optional[str] = None, db: Database = Depends(get_db)):
    query = {}
    if destinationId:
        query["destinationId"] = parse_object_id(destinationId, "destination id")
    try:
        items = list(db[REVIEWS].find(query).sort(NEWEST_FIRST))
    except PyMongoError as e:
        raise _server_error("List reviews", e)
    return {"success": True, "count": len(items), "data": serialize_document(items)}


@reviews.post("", status_code=201)
def create_review(payload: ReviewIn, db: Database = Depends(get_db), user: dict = Depends(get_current_user)):
    destination_id = parse_object_id(payload.destinationId, "destination id")
    if not db[DESTINATIONS].find_one({"_id": destination_id}, {"_id": 1}):
        raise NotFoundError("Destination not found")
    review = {
        "userId": user["_id"],
        "destinationId": destination_id,
        "rating": payload.rating,
        "comment": payload.comment,
        "createdAt": utcnow(),
    }
    try:
        review["_id"] = db[REVIEWS].insert_one(review).inserted_id
    except PyMongoError as e:
        raise _server_error("Create review", e)
    return {"success": True, "message": "Review added", "data": serialize_document(review)}


# ============================================================
# ADMIN
# ============================================================

admin = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@admin.get("/messages")
def list_messages(db: Database = Depends(get_db)):
    try:
        items = list(db[CONTACT_MESSAGES].find().sort(NEWEST_FIRST))
    except PyMongoError as e:
        raise _server_error("Admin messages", e)
    return {"success": True, "count": len(items), "data": serialize_document(items)}


@admin.put("/messages/{message_id}/read")
def mark_message_read(message_id: str, db: Database = Depends(get_db)):
    oid = parse_object_id(message_id, "message id")
    try:
        msg = db[CONTACT_MESSAGES].find_one_and_update(
            {"_id": oid}, {"$set": {"read": True}}, return_document=ReturnDocument.AFTER
        )
    except PyMongoError as e:
        raise _server_error("Mark message read", e)
    if not msg:
        raise NotFoundError("Message not found")
    return {"success": True, "message": "Marked as read", "data": serialize_document(msg)}


def collect_stats(db: Database) -> dict:
    queries = {
        "totalUsers": (USERS, {}),
        "totalBookings": (BOOKINGS, {}),
        "pendingBookings": (BOOKINGS, {"status": "pending"}),
        "confirmedBookings": (BOOKINGS, {"status": "confirmed"}),
        "totalMessages": (CONTACT_MESSAGES, {}),
        "unreadMessages": (CONTACT_MESSAGES, {"read": False}),
        "newsletterSubscribers": (NEWSLETTER_SUBSCRIBERS, {}),
    }
    with ThreadPoolExecutor(max_workers=len(queries)) as pool:
        futures = {
            name: pool.submit(db[collection].count_documents, query)
            for name, (collection, query) in queries.items()
        }
        return {name: f.result() for name, f in futures.items()}


@admin.get("/stats")
def admin_stats(db: Database = Depends(get_db)):
    try:
        data = collect_stats(db)
    except PyMongoError as e:
        raise _server_error("Admin stats", e)
    return {"success": True, "data": data}


@admin.get("/users")
def list_users(db: Database = Depends(get_db)):
    try:
        users = list(db[USERS].find({}, {"password": 0, "verificationToken": 0}).sort(NEWEST_FIRST))
    except PyMongoError as e:
        raise _server_error("Admin users", e)
    return {"success": True, "count": len(users), "data": serialize_document(users)}


ROUTERS = (destinations, activities, guides, bookings, contact, reviews, admin)
