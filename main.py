import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from pymongo.errors import PyMongoError

import database
from authoring import router as authoring_router
from delivery import router as delivery_router
from errors import register_error_handlers
from resources import router as resources_router
from settings import get_settings
from students import router as students_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is None:
        settings = get_settings()
        database.connect(settings.MONGO_URI, settings.DATABASE_NAME)
    yield
    if database.client is not None:
        database.client.close()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Academy Portal API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)

    app.include_router(students_router)
    app.include_router(authoring_router)
    app.include_router(delivery_router)
    app.include_router(resources_router)

    @app.get("/api/test")
    def test_database():
        response = {
            "backend": "running",
            "database": "not available",
            "collections": [],
        }
        try:
            if database.ping():
                response["database"] = "connected"
                response["collections"] = database.db.list_collection_names()[:10]
        except Exception as e:
            response["database"] = f"error: {str(e)[:50]}"
        return response

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    frontend_dir = os.path.abspath(settings.FRONTEND_DIR)

    # Registered last so every API route wins over the SPA fallback.
    @app.get("/{path:path}", include_in_schema=False)
    def serve_frontend(path: str):
        candidate = os.path.abspath(os.path.join(frontend_dir, path))
        if path and candidate.startswith(frontend_dir + os.sep) and os.path.isfile(candidate):
            return FileResponse(candidate)
        index = os.path.join(frontend_dir, "index.html")
        if not os.path.isfile(index):
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(index)

    return app


def run():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = get_settings()
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]) for err in e.errors())
        logger.error("Invalid configuration (%s); refusing to start", missing)
        sys.exit(1)
    try:
        database.connect(settings.MONGO_URI, settings.DATABASE_NAME)
    except PyMongoError as e:
        logger.error("MongoDB connection failed: %s", e)
        sys.exit(1)

    import uvicorn
    logger.info("Server running on port %s", settings.PORT)
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
