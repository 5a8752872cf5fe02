"""
Somalia Tourism API - Database layer
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database

from tourism_api.config import DEFAULT_DB_NAME, Settings
from tourism_api.errors import ValidationError

logger = logging.getLogger(__name__)

# Collection names match the ones the existing deployment already uses.
USERS = "users"
BOOKINGS = "bookings"
DESTINATIONS = "destinations"
CONTACT_MESSAGES = "contactmessages"
NEWSLETTER_SUBSCRIBERS = "newslettersubscribers"
ACTIVITIES = "activities"
GUIDES = "guides"
REVIEWS = "reviews"

Sort = Sequence[Tuple[str, int]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def connect(settings: Settings) -> MongoClient:
    logger.info("Connecting to MongoDB")
    return MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=5000)


def database_for(client: MongoClient, settings: Settings) -> Database:
    if settings.database_name:
        return client[settings.database_name]
    return client.get_default_database(default=DEFAULT_DB_NAME)


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index("email", unique=True)
    db[NEWSLETTER_SUBSCRIBERS].create_index("email", unique=True)


def get_db(request: Request) -> Database:
    return request.app.state.db


def parse_object_id(value: Any, label: str = "id") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label}", str(value))


def serialize_document(value: Any) -> Any:
    """ObjectIds to strings, recursively; never expose password hashes."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [serialize_document(v) for v in value]
    if isinstance(value, dict):
        return {k: serialize_document(v) for k, v in value.items() if k not in ("password", "__v")}
    return value


class Repository(Protocol):
    def find(self, query: Dict[str, Any], sort: Optional[Sort] = None, limit: int = 0) -> List[dict]: ...

    def find_by_id(self, item_id: ObjectId) -> Optional[dict]: ...

    def create(self, document: Dict[str, Any]) -> dict: ...

    def update(self, item_id: ObjectId, fields: Dict[str, Any]) -> Optional[dict]: ...

    def delete(self, item_id: ObjectId) -> Optional[dict]: ...


class MongoRepository:
    def __init__(self, db: Database, collection_name: str):
        self.collection = db[collection_name]

    def find(self, query, sort=None, limit=0):
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(list(sort))
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def find_by_id(self, item_id):
        return self.collection.find_one({"_id": item_id})

    def create(self, document):
        doc = dict(document)
        doc.setdefault("createdAt", utcnow())
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        return doc

    def update(self, item_id, fields):
        return self.collection.find_one_and_update(
            {"_id": item_id}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )

    def delete(self, item_id):
        return self.collection.find_one_and_delete({"_id": item_id})
