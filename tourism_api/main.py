import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from tourism_api import auth
from tourism_api.config import Settings
from tourism_api.database import connect, database_for, ensure_indexes, utcnow
from tourism_api.errors import install_error_handlers
from tourism_api.routes import ROUTERS

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None, client: Optional[MongoClient] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mongo = client if client is not None else connect(settings)
        app.state.db = database_for(mongo, settings)
        try:
            ensure_indexes(app.state.db)
            logger.info("Connected to MongoDB")
        except PyMongoError as e:
            logger.error("MongoDB connection error: %s", e)
        try:
            yield
        finally:
            mongo.close()
            logger.info("MongoDB connection closed")

    app = FastAPI(title="Somalia Tourism API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app, settings)

    # ----- Misc -----

    @app.get("/")
    def read_root():
        return {"success": True, "message": "Somalia Tourism API", "version": VERSION}

    @app.get("/api/health")
    def health():
        return {"success": True, "status": "healthy", "timestamp": utcnow().isoformat() + "Z"}

    app.include_router(auth.router)
    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
