from pydantic import BaseModel
from typing import Optional


class UploadMeta(BaseModel):
    filename: Optional[str]
    mimetype: Optional[str]
    size: int


class UploadResponse(BaseModel):
    ok: bool = True
    meta: UploadMeta


class HealthResponse(BaseModel):
    ok: bool = True
    service: str
    time: str  # ISO-8601, UTC


class ErrorResponse(BaseModel):
    error: str
