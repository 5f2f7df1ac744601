import logging
import os
from contextlib import asynccontextmanager

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from photoshare.admin import setup_admin
from photoshare.api.auth import router as auth_router
from photoshare.api.discover import router as discover_router
from photoshare.api.interaction import router as interaction_router
from photoshare.api.photo import get_photo_repository
from photoshare.api.photo import router as photo_router
from photoshare.api.user import router as user_router
from photoshare.dependencies import get_s3_client
from photoshare.metrics import setup_metrics
from photoshare.repositories.photo_repository import PhotoRepository
from photoshare.s3_service import AsyncS3Client

from .logging_config import configure_logging

# uvicorn imports this module when starting the app, so this also reaches its loggers
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the S3 client on startup and close it on shutdown."""
    logger.info("Starting up application...")
    try:
        app.state.s3_client = AsyncS3Client()
        logger.info("S3 client initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize S3 client: {e}")
        raise

    yield

    logger.info("Shutting down application...")
    try:
        await app.state.s3_client.close()
        logger.info("S3 client closed successfully")
    except Exception as e:
        logger.error(f"Error during S3 client shutdown: {e}")


app = FastAPI(title="PhotoShare", redoc_url=None, redirect_slashes=False, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail}, headers=getattr(exc, "headers", None))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"success": False, "message": "Backend unavailable"})


@app.exception_handler(BotoCoreError)
@app.exception_handler(ClientError)
async def storage_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"success": False, "message": "Backend unavailable"})


app.include_router(auth_router)
app.include_router(photo_router)
app.include_router(interaction_router)
app.include_router(discover_router)
app.include_router(user_router)

setup_metrics(app)
setup_admin(app)


@app.get("/")
def read_root():
    return {"success": True, "message": "PhotoShare API"}


@app.get("/health")
async def health(
    repo: PhotoRepository = Depends(get_photo_repository),
    s3_client: AsyncS3Client = Depends(get_s3_client),
):
    try:
        repo.ping()
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        database = "unavailable"
    storage = "ok" if await s3_client.check_health() else "unavailable"

    healthy = database == "ok" and storage == "ok"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"success": healthy, "database": database, "storage": storage},
    )
