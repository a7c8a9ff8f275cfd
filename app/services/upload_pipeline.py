from typing import AsyncGenerator

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from app.errors import (
    MalformedRequestError,
    MethodNotAllowedError,
    MissingFileError,
)
from app.schemas.upload import UploadResult
from app.services.file_types import extension_of, validate_file_type
from app.services.s3_service import S3Service

logger = structlog.get_logger()

MAX_UPLOAD_SIZE = 32 << 20
FILE_FIELD = "file"
ONLY_POST_MESSAGE = "Only POST requests are allowed"


class UploadPipeline:
    """
    Single-pass handling of one upload request.

    The pipeline keeps no state between requests; the only shared piece is
    the storage adapter, which is safe to use concurrently.
    """

    def __init__(self, s3_service: S3Service):
        self.s3_service = s3_service

    async def handle(self, request: Request) -> UploadResult:
        if request.method != "POST":
            raise MethodNotAllowedError(ONLY_POST_MESSAGE)

        form = await self._read_form(request)
        try:
            upload = form.get(FILE_FIELD)
            if not isinstance(upload, UploadFile):
                raise MissingFileError(f"Failed to get file: no '{FILE_FIELD}' file field in form")
            return await self._store(upload)
        finally:
            await form.close()

    async def _read_form(self, request: Request) -> FormData:
        content_type = request.headers.get("content-type", "")
        if content_type.split(";")[0].strip().lower() != "multipart/form-data":
            raise MalformedRequestError(
                "Failed to parse form: request Content-Type isn't multipart/form-data"
            )

        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                declared_size = int(declared)
            except ValueError:
                raise MalformedRequestError("Failed to parse form: invalid Content-Length")
            if declared_size > MAX_UPLOAD_SIZE:
                raise MalformedRequestError(
                    f"Failed to parse form: request body exceeds {MAX_UPLOAD_SIZE} bytes"
                )

        parser = MultiPartParser(request.headers, _limited_stream(request, MAX_UPLOAD_SIZE))
        try:
            return await parser.parse()
        except (MultiPartException, KeyError, ValueError) as e:
            raise MalformedRequestError(f"Failed to parse form: {e}") from e

    async def _store(self, upload: UploadFile) -> UploadResult:
        filename = upload.filename or ""
        content_type = validate_file_type(extension_of(filename))

        object_key = filename
        file_size = upload.size
        upload.file.seek(0)

        await run_in_threadpool(
            self.s3_service.put_object,
            object_key,
            upload.file,
            file_size,
            content_type,
        )

        logger.info(
            "Uploaded file",
            filename=filename,
            content_type=content_type,
            size=file_size
        )

        return UploadResult(
            success=True,
            message="File uploaded to object storage",
            fileName=filename,
            fileSize=file_size,
            fileType=content_type,
            objectKey=object_key,
        )


async def _limited_stream(request: Request, limit: int) -> AsyncGenerator[bytes, None]:
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise MalformedRequestError(
                f"Failed to parse form: request body exceeds {limit} bytes"
            )
        yield chunk
