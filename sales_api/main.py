import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError, PyMongoError

from sales_api.auth import (
    create_access_token,
    get_current_admin,
    hash_password,
    require_role,
    verify_password,
)
from sales_api.config import Settings
from sales_api.crud import RESOURCES, include_resources
from sales_api.database import (
    ADMINS,
    connect,
    database_for,
    ensure_indexes,
    get_db,
    parse_object_id,
    serialize_document,
    utcnow,
)
from sales_api.errors import (
    AuthenticationError,
    DuplicateKeyError,
    NotFoundError,
    UnhandledError,
    ValidationError,
    install_error_handlers,
)
from sales_api.schemas import AdminLogin, AdminRegister, PasswordChange
from sales_api.stats import collect_stats

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def mongo_status(client: Optional[MongoClient]) -> str:
    if client is None:
        return "disconnected"
    try:
        client.admin.command("ping")
        return "connected"
    except Exception as e:
        logger.warning("MongoDB ping failed: %s", e)
        return "disconnected"


def admin_view(admin: dict, token: Optional[str] = None) -> dict:
    data = {
        "id": str(admin["_id"]),
        "username": admin["username"],
        "email": admin["email"],
        "fullName": admin.get("fullName"),
        "role": admin.get("role", "admin"),
        "lastLogin": admin.get("lastLogin"),
        "createdAt": admin.get("createdAt"),
    }
    if token:
        data["token"] = token
    return data


class AdminStatus(BaseModel):
    is_active: bool = Field(..., alias="isActive")


# ----- Routes -----

def register_routes(app: FastAPI) -> None:

    @app.get("/")
    def read_root(request: Request):
        settings: Settings = request.app.state.settings
        return {
            "success": True,
            "message": "Sales Management API",
            "version": VERSION,
            "environment": settings.environment,
            "timestamp": utcnow().isoformat() + "Z",
            "mongodb": mongo_status(request.app.state.client),
            "endpoints": {
                "health": "/health",
                "auth": {
                    "register": "/api/admin/register",
                    "login": "/api/admin/login",
                    "profile": "/api/admin/profile",
                    "changePassword": "/api/admin/change-password",
                    "logout": "/api/admin/logout",
                },
                "data": {"stats": "/api/stats", **{r.kind: r.path for r in RESOURCES}},
            },
        }

    @app.get("/health")
    def health(request: Request):
        settings: Settings = request.app.state.settings
        return {
            "success": True,
            "status": "OK",
            "timestamp": utcnow().isoformat() + "Z",
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "environment": settings.environment,
            "mongodb": {"status": mongo_status(request.app.state.client)},
            "message": "Server is running properly",
        }

    # ----- Admin auth -----

    @app.post("/api/admin/register", status_code=201)
    def register_admin(payload: AdminRegister, request: Request, db: Database = Depends(get_db)):
        settings: Settings = request.app.state.settings
        admins = db[ADMINS]
        if admins.find_one({"$or": [{"email": payload.email}, {"username": payload.username}]}):
            raise DuplicateKeyError("Username or email is already in use")
        doc = {
            "username": payload.username,
            "email": payload.email,
            "password": hash_password(payload.password, settings.bcrypt_rounds),
            "fullName": payload.full_name,
            "role": payload.role,
            "isActive": True,
            "lastLogin": None,
            "createdAt": utcnow(),
        }
        try:
            doc["_id"] = admins.insert_one(doc).inserted_id
        except MongoDuplicateKeyError:
            raise DuplicateKeyError("Username or email is already in use")
        except PyMongoError as e:
            raise UnhandledError("Error registering admin", str(e))
        logger.info("Registered admin %s (%s)", doc["username"], doc["role"])
        token = create_access_token(doc, settings)
        return {"success": True, "message": "Admin successfully registered", "data": admin_view(doc, token)}

    @app.post("/api/admin/login")
    def login_admin(payload: AdminLogin, request: Request, db: Database = Depends(get_db)):
        settings: Settings = request.app.state.settings
        handle = payload.username.strip()
        admin = db[ADMINS].find_one({"$or": [{"username": handle}, {"email": handle.lower()}]})
        if not admin:
            raise AuthenticationError("Invalid username or password")
        if not admin.get("isActive", True):
            raise AuthenticationError("Account has been deactivated")
        if not verify_password(payload.password, admin.get("password")):
            logger.info("Failed login for %s", handle)
            raise AuthenticationError("Invalid username or password")
        admin["lastLogin"] = utcnow()
        db[ADMINS].update_one({"_id": admin["_id"]}, {"$set": {"lastLogin": admin["lastLogin"]}})
        token = create_access_token(admin, settings)
        return {"success": True, "message": "Successfully logged in", "data": admin_view(admin, token)}

    @app.get("/api/admin/profile")
    def get_profile(admin: dict = Depends(get_current_admin)):
        return {"success": True, "data": admin_view(admin)}

    @app.put("/api/admin/change-password")
    def change_password(
        payload: PasswordChange,
        request: Request,
        db: Database = Depends(get_db),
        admin: dict = Depends(get_current_admin),
    ):
        settings: Settings = request.app.state.settings
        stored = db[ADMINS].find_one({"_id": admin["_id"]}, {"password": 1})
        if not stored or not verify_password(payload.current_password, stored.get("password")):
            raise AuthenticationError("Current password is incorrect")
        db[ADMINS].update_one(
            {"_id": admin["_id"]},
            {"$set": {"password": hash_password(payload.new_password, settings.bcrypt_rounds)}},
        )
        return {"success": True, "message": "Password successfully updated"}

    @app.post("/api/admin/logout")
    def logout(_: dict = Depends(get_current_admin)):
        # tokens are stateless; the client discards its copy
        return {"success": True, "message": "Successfully logged out"}

    # ----- Admin management -----

    @app.get("/api/admin/admins")
    def list_admins(db: Database = Depends(get_db), _: dict = Depends(require_role("superadmin"))):
        admins = [serialize_document(a) for a in db[ADMINS].find({}, {"password": 0}).sort("createdAt", -1)]
        return {"success": True, "count": len(admins), "data": admins}

    @app.put("/api/admin/admins/{admin_id}/status")
    def set_admin_status(
        admin_id: str,
        payload: AdminStatus,
        db: Database = Depends(get_db),
        actor: dict = Depends(require_role("superadmin")),
    ):
        oid = parse_object_id(admin_id)
        if oid == actor["_id"] and not payload.is_active:
            raise ValidationError("You cannot deactivate your own account")
        res = db[ADMINS].update_one({"_id": oid}, {"$set": {"isActive": payload.is_active}})
        if res.matched_count == 0:
            raise NotFoundError("Admin not found")
        logger.info("Admin %s set isActive=%s by %s", admin_id, payload.is_active, actor.get("username"))
        return {"success": True, "message": "Admin status updated"}

    # ----- Stats -----

    @app.get("/api/stats")
    def get_stats(db: Database = Depends(get_db), admin: dict = Depends(get_current_admin)):
        try:
            data = collect_stats(db)
        except PyMongoError as e:
            raise UnhandledError("Error fetching stats", str(e))
        data["admin"] = {"id": str(admin["_id"]), "name": admin.get("fullName"), "role": admin.get("role")}
        return {"success": True, "data": data}

    include_resources(app)


# ----- App -----

def create_app(settings: Optional[Settings] = None, client: Optional[MongoClient] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mongo = client if client is not None else connect(settings)
        app.state.client = mongo
        app.state.db = database_for(mongo, settings)
        try:
            ensure_indexes(app.state.db)
        except PyMongoError as e:
            logger.error("Could not ensure indexes: %s", e)
        logger.info("Sales API started (%s)", settings.environment)
        try:
            yield
        finally:
            mongo.close()
            app.state.client = None
            logger.info("Sales API stopped, MongoDB connection closed")

    app = FastAPI(title="Sales Management API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.client = None
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app, settings)
    register_routes(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
