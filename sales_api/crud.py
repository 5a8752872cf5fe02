"""
Sales API - CRUD router factory

``create_crud_router`` builds the five record endpoints (list with search,
get, create, update, delete) for one ``Resource``. Every endpoint sits behind
the admin guard and stamps ``createdBy`` / ``updatedBy`` with the caller.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Type

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError, PyMongoError

from sales_api.auth import get_current_admin
from sales_api.database import ADMINS, MongoRepository, Repository, get_db, parse_object_id, serialize_document
from sales_api.errors import DuplicateKeyError, NotFoundError, UnhandledError
from sales_api.schemas import CustomerCreditIn, DailyBreakdownIn, GeneralSalesIn, OutOfStockIn, RecordBase
from sales_api.search import build_search_filter

logger = logging.getLogger(__name__)

LIST_SORT = [("date", -1), ("createdAt", -1)]
ADMIN_SUMMARY = {"username": 1, "fullName": 1}


@dataclass(frozen=True)
class Resource:
    kind: str
    path: str
    collection: str
    schema: Type[RecordBase]
    label: str


RESOURCES = (
    Resource("generalSales", "/api/general-sales", "generalsales", GeneralSalesIn, "General Sales"),
    Resource("dailyBreakdown", "/api/daily-breakdown", "dailybreakdowns", DailyBreakdownIn, "Daily Breakdown"),
    Resource("customerCredit", "/api/customer-credit", "customercredits", CustomerCreditIn, "Customer Credit"),
    Resource("outOfStock", "/api/out-of-stock", "outofstocks", OutOfStockIn, "Out of Stock"),
)


# ----- Helpers -----

def populate_admins(db: Database, items: List[dict]) -> List[dict]:
    """Replace createdBy/updatedBy ids with {_id, username, fullName}."""
    ids = {item.get(key) for item in items for key in ("createdBy", "updatedBy")}
    ids.discard(None)
    admins: Dict[ObjectId, dict] = {}
    if ids:
        admins = {a["_id"]: a for a in db[ADMINS].find({"_id": {"$in": list(ids)}}, ADMIN_SUMMARY)}
    populated = []
    for item in items:
        item = dict(item)
        for key in ("createdBy", "updatedBy"):
            if key in item:
                item[key] = admins.get(item[key])
        populated.append(serialize_document(item))
    return populated


def _store_call(message: str, call: Callable, *args):
    try:
        return call(*args)
    except MongoDuplicateKeyError as exc:
        raise DuplicateKeyError("Duplicate value for a unique field", str(exc))
    except PyMongoError as exc:
        logger.exception(message)
        raise UnhandledError(message, str(exc))


# ----- Factory -----

def create_crud_router(
    resource: Resource,
    repository_factory: Callable[[Database, str], Repository] = MongoRepository,
) -> APIRouter:
    router = APIRouter(prefix=resource.path, tags=[resource.label])
    schema = resource.schema

    def get_repository(db: Database = Depends(get_db)) -> Repository:
        return repository_factory(db, resource.collection)

    @router.get("")
    def list_items(
        search: Optional[str] = None,
        repo: Repository = Depends(get_repository),
        db: Database = Depends(get_db),
        _: dict = Depends(get_current_admin),
    ):
        query = build_search_filter(resource.kind, search)
        items = _store_call("Error fetching items", repo.find, query, LIST_SORT)
        data = _store_call("Error fetching items", populate_admins, db, items)
        return {"success": True, "count": len(data), "data": data}

    @router.get("/{item_id}")
    def get_item(
        item_id: str,
        repo: Repository = Depends(get_repository),
        db: Database = Depends(get_db),
        _: dict = Depends(get_current_admin),
    ):
        oid = parse_object_id(item_id)
        item = _store_call("Error fetching item", repo.find_by_id, oid)
        if not item:
            raise NotFoundError("Item not found")
        return {"success": True, "data": populate_admins(db, [item])[0]}

    @router.post("", status_code=201)
    def create_item(
        payload: schema,
        repo: Repository = Depends(get_repository),
        db: Database = Depends(get_db),
        admin: dict = Depends(get_current_admin),
    ):
        document = payload.model_dump()
        document["createdBy"] = admin["_id"]
        document["updatedBy"] = admin["_id"]
        created = _store_call("Error creating item", repo.create, document)
        logger.info("%s %s created by %s", resource.label, created["_id"], admin.get("username"))
        return {
            "success": True,
            "message": "Item created successfully",
            "data": populate_admins(db, [created])[0],
        }

    @router.put("/{item_id}")
    def update_item(
        item_id: str,
        payload: schema,
        repo: Repository = Depends(get_repository),
        db: Database = Depends(get_db),
        admin: dict = Depends(get_current_admin),
    ):
        oid = parse_object_id(item_id)
        fields = payload.model_dump()
        fields["updatedBy"] = admin["_id"]
        updated = _store_call("Error updating item", repo.update, oid, fields)
        if not updated:
            raise NotFoundError("Item not found")
        return {
            "success": True,
            "message": "Item updated successfully",
            "data": populate_admins(db, [updated])[0],
        }

    @router.delete("/{item_id}")
    def delete_item(
        item_id: str,
        repo: Repository = Depends(get_repository),
        db: Database = Depends(get_db),
        admin: dict = Depends(get_current_admin),
    ):
        oid = parse_object_id(item_id)
        deleted = _store_call("Error deleting item", repo.delete, oid)
        if not deleted:
            raise NotFoundError("Item not found")
        logger.info("%s %s deleted by %s", resource.label, item_id, admin.get("username"))
        return {"success": True, "message": "Item deleted successfully", "data": serialize_document(deleted)}

    return router


def include_resources(app, resources: Iterable[Resource] = RESOURCES) -> None:
    for resource in resources:
        app.include_router(create_crud_router(resource))
