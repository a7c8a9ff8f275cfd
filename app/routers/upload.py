from fastapi import APIRouter, Depends, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.errors import UploaderError
from app.schemas.upload import UploadResult
from app.services.s3_service import S3Service
from app.services.upload_pipeline import ONLY_POST_MESSAGE, UploadPipeline
import structlog

logger = structlog.get_logger()
router = APIRouter(prefix="/upload", tags=["upload"])

# Methods outside this list are answered by method_not_allowed_handler
UPLOAD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_s3_service(request: Request) -> S3Service:
    return request.app.state.s3_service


@router.api_route("", methods=UPLOAD_METHODS, response_model=UploadResult)
async def upload_file(request: Request, s3_service: S3Service = Depends(get_s3_service)):
    """
    Store a single multipart file field named ``file`` in the bucket.

    The object key is the submitted filename and the content type comes from
    the filename extension.
    """
    try:
        result = await UploadPipeline(s3_service).handle(request)
    except UploaderError as e:
        logger.warning(
            "Upload rejected",
            error=e.message,
            status_code=e.status_code,
            method=request.method
        )
        result = UploadResult(success=False, message=e.message)
        return JSONResponse(
            status_code=e.status_code,
            content=result.model_dump(exclude_none=True)
        )

    return JSONResponse(status_code=200, content=result.model_dump(exclude_none=True))


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Render routing-level 405s on the upload endpoint with the UploadResult schema."""
    if exc.status_code != 405 or request.url.path.rstrip("/") != router.prefix:
        return await http_exception_handler(request, exc)

    logger.warning("Upload rejected", error=ONLY_POST_MESSAGE, status_code=405, method=request.method)
    result = UploadResult(success=False, message=ONLY_POST_MESSAGE)
    return JSONResponse(
        status_code=405,
        content=result.model_dump(exclude_none=True),
        headers=exc.headers
    )
