"""
Somalia Tourism API - Catalogue resources

``create_resource_router`` exposes public reads and admin-only writes for one
catalogue collection (destinations, activities, guides).
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Type

from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import PyMongoError

from tourism_api.auth import require_admin
from tourism_api.database import (
    ACTIVITIES,
    DESTINATIONS,
    GUIDES,
    MongoRepository,
    Repository,
    get_db,
    parse_object_id,
    serialize_document,
    utcnow,
)
from tourism_api.errors import NotFoundError, UnhandledError
from tourism_api.schemas import ActivityIn, DestinationIn, Document, GuideIn
from tourism_api.search import build_search_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resource:
    kind: str
    path: str
    collection: str
    schema: Type[Document]
    label: str
    sort: Sequence[Tuple[str, int]] = (("name", 1),)


DESTINATION = Resource("destination", "/api/destinations", DESTINATIONS, DestinationIn, "Destination")
ACTIVITY = Resource("activity", "/api/activities", ACTIVITIES, ActivityIn, "Activity")
GUIDE = Resource("guide", "/api/guides", GUIDES, GuideIn, "Guide")


def _guard(message: str, call: Callable, *args):
    try:
        return call(*args)
    except PyMongoError as e:
        logger.exception(message)
        raise UnhandledError("Server error", str(e))


def create_resource_router(resource: Resource, router: Optional[APIRouter] = None) -> APIRouter:
    """Add list/get/create/update/delete for ``resource`` to ``router``.

    Routes already on ``router`` (e.g. ``/popular``) keep precedence over ``/{item_id}``.
    """
    if router is None:
        router = APIRouter(prefix=resource.path, tags=[resource.label])
    schema = resource.schema
    not_found = f"{resource.label} not found"

    def get_repository(db: Database = Depends(get_db)) -> Repository:
        return MongoRepository(db, resource.collection)

    @router.get("")
    def list_items(q: Optional[str] = None, repo: Repository = Depends(get_repository)):
        items = _guard(f"List {resource.kind}", repo.find, build_search_filter(resource.kind, q), resource.sort)
        return {"success": True, "count": len(items), "data": serialize_document(items)}

    @router.get("/{item_id}")
    def get_item(item_id: str, repo: Repository = Depends(get_repository)):
        item = _guard(f"Get {resource.kind}", repo.find_by_id, parse_object_id(item_id))
        if not item:
            raise NotFoundError(not_found)
        return {"success": True, "data": serialize_document(item)}

    @router.post("", status_code=201)
    def create_item(payload: schema, repo: Repository = Depends(get_repository), admin: dict = Depends(require_admin)):
        document = dict(payload.to_document(), createdBy=admin["_id"], updatedBy=admin["_id"])
        created = _guard(f"Create {resource.kind}", repo.create, document)
        logger.info("%s %s created by %s", resource.label, created["_id"], admin.get("email"))
        return {"success": True, "message": f"{resource.label} created", "data": serialize_document(created)}

    @router.put("/{item_id}")
    def update_item(
        item_id: str,
        payload: schema,
        repo: Repository = Depends(get_repository),
        admin: dict = Depends(require_admin),
    ):
        fields = dict(payload.to_document(), updatedBy=admin["_id"], updatedAt=utcnow())
        updated = _guard(f"Update {resource.kind}", repo.update, parse_object_id(item_id), fields)
        if not updated:
            raise NotFoundError(not_found)
        return {"success": True, "message": f"{resource.label} updated", "data": serialize_document(updated)}

    @router.delete("/{item_id}")
    def delete_item(item_id: str, repo: Repository = Depends(get_repository), admin: dict = Depends(require_admin)):
        deleted = _guard(f"Delete {resource.kind}", repo.delete, parse_object_id(item_id))
        if not deleted:
            raise NotFoundError(not_found)
        logger.info("%s %s deleted by %s", resource.label, item_id, admin.get("email"))
        return {"success": True, "message": f"{resource.label} deleted"}

    return router
