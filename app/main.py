import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.config import BUCKET_NAME, REGION, SERVER_PORT, SERVICE_NAME, Settings, load_config
from app.errors import StartupError
from app.logging_config import configure_logging
from app.routers import upload
from app.schemas.upload import HealthResponse
from app.services.file_types import ALLOWED_EXTENSIONS
from app.services.s3_service import S3Service
import structlog

logger = structlog.get_logger()


def bootstrap_storage(settings: Settings) -> S3Service:
    """Connect to object storage and make sure the bucket exists."""
    s3_service = S3Service.connect(settings, bucket_name=BUCKET_NAME, region=REGION)
    s3_service.ensure_bucket(REGION)
    logger.info("Bucket is ready", bucket=BUCKET_NAME)
    return s3_service


def create_app(s3_service: Optional[S3Service] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        s3_service: Storage adapter shared by all requests; when omitted it is
            created from ``settings`` during startup
        settings: Configuration used when no adapter is supplied

    Returns:
        The configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.s3_service is None:
            config = settings or load_config()
            configure_logging(config.log_level)
            try:
                app.state.s3_service = bootstrap_storage(config)
            except StartupError as e:
                logger.error("Failed to prepare object storage", error=e.message)
                raise
        yield

    app = FastAPI(
        title="S3 Uploader",
        description="Gateway that stores uploaded files in S3-compatible object storage",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.s3_service = s3_service

    # Include routers
    app.include_router(upload.router)
    app.add_exception_handler(StarletteHTTPException, upload.method_not_allowed_handler)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Liveness check; storage reachability is not verified."""
        return {
            "status": "ok",
            "service": SERVICE_NAME
        }

    return app


app = create_app()


def main():
    """Run the uploader with uvicorn."""
    import uvicorn

    settings = load_config()
    configure_logging(settings.log_level)

    try:
        s3_service = bootstrap_storage(settings)
    except StartupError as e:
        logger.error("Failed to prepare object storage", error=e.message)
        sys.exit(1)

    logger.info(
        "HTTP server starting",
        port=SERVER_PORT,
        upload_url=f"http://localhost:{SERVER_PORT}/upload",
        supported_types=list(ALLOWED_EXTENSIONS)
    )
    uvicorn.run(create_app(s3_service=s3_service), host="0.0.0.0", port=SERVER_PORT)


if __name__ == "__main__":
    main()
