from typing import Optional

from pydantic import BaseModel


class UploadResult(BaseModel):
    success: bool
    message: str
    fileName: Optional[str] = None
    fileSize: Optional[int] = None
    fileType: Optional[str] = None
    objectKey: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
