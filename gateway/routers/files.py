import logging

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from ..config import Settings
from ..deps import get_settings
from ..errors import InvalidInput, PayloadTooLarge
from ..models import ErrorResponse, UploadMeta, UploadResponse

router = APIRouter(prefix="/api", tags=["files"])
logger = logging.getLogger(__name__)

# room for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD = 64 * 1024

UPLOAD_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {"file": {"type": "string", "format": "binary"}},
                }
            }
        },
    }
}


@router.post("/upload", response_model=UploadResponse, openapi_extra=UPLOAD_BODY,
             responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}})
async def upload_file(request: Request, cfg: Settings = Depends(get_settings)):
    """Accept a single reference file and echo its metadata. Contents are not stored."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > cfg.max_upload_bytes + MULTIPART_OVERHEAD:
        raise PayloadTooLarge("File too large")

    async with request.form(max_files=1) as form:
        file = form.get("file")
        # a plain text field named "file" is not an upload
        if not isinstance(file, UploadFile):
            raise InvalidInput("No file uploaded")
        content = await file.read()

    if len(content) > cfg.max_upload_bytes:
        raise PayloadTooLarge("File too large")
    meta = UploadMeta(filename=file.filename, mimetype=file.content_type, size=len(content))
    logger.info("upload received filename=%s size=%d", meta.filename, meta.size)
    return UploadResponse(meta=meta)
