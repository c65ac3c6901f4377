"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from fileshare.config import Settings, settings
from fileshare.database import Database
from fileshare.middleware import MULTIPART_OVERHEAD_BYTES, RequestSizeLimitMiddleware
from fileshare.routes.files import router as files_router
from fileshare.services.file_storage import FileStorageService

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the API around explicitly constructed store handles."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the metadata store and blob directory, close them on shutdown."""
        database = Database(app_settings.DATABASE_URL)
        await database.create_tables()
        app.state.db = database
        app.state.storage = FileStorageService(app_settings.FILE_STORAGE_PATH)
        logger.info("Blob store at %s", app.state.storage.base_path)

        yield

        await database.dispose()

    app = FastAPI(
        title="File Sharing API",
        version="1.0.0",
        description="Upload, list, download, update and delete shared files.",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # CORS
    origins = [o.strip() for o in app_settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=app_settings.MAX_UPLOAD_BYTES + MULTIPART_OVERHEAD_BYTES,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report malformed ids and bodies as plain client errors."""
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Hello, File Sharing!"

    @app.get("/health")
    async def health_check(request: Request):
        """Verify database connectivity and blob directory access."""
        storage_status = "ok" if request.app.state.storage.is_writable() else "unavailable"
        try:
            await request.app.state.db.ping()
            return {"status": "ok", "database": "connected", "storage": storage_status}
        except (SQLAlchemyError, OSError) as e:
            return {"status": "error", "database": str(e), "storage": storage_status}

    app.include_router(files_router)
    return app


app = create_app()
