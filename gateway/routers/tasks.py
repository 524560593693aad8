from typing import Any

import orjson
from fastapi import APIRouter, Depends, Request

from ..config import Settings
from ..deps import get_generic_agent, get_repo, get_settings, get_sheets_agent
from ..errors import InvalidInput, NotFound, PayloadTooLarge
from ..models import ErrorResponse
from ..services.agents import GenericAgent, SheetsAgent
from ..storage.repo import Repo
from ..storage.schema import TaskRecord

router = APIRouter(prefix="/api", tags=["tasks"])

ERRORS = {400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


async def read_body(request: Request, limit: int) -> bytes:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge("Request body too large")
    chunks, size = [], 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise PayloadTooLarge("Request body too large")
        chunks.append(chunk)
    return b"".join(chunks)


async def read_json(request: Request, limit: int) -> Any:
    """JSON body as parsed data.

    Bodies that are not ``application/json``, and empty ones, read as {} so
    that prompt validation reports them.
    """
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type != "application/json":
        return {}
    body = await read_body(request, limit)
    if not body.strip():
        return {}
    try:
        return orjson.loads(body)
    except orjson.JSONDecodeError:
        raise InvalidInput("Invalid JSON body") from None


@router.post("/agent/generic", response_model=TaskRecord, response_model_exclude_none=True, responses=ERRORS)
async def generic_agent(request: Request, agent: GenericAgent = Depends(get_generic_agent),
                        cfg: Settings = Depends(get_settings)):
    payload = await read_json(request, cfg.max_json_bytes)
    return await agent.run(payload)


@router.post("/agent/sheets", response_model=TaskRecord, response_model_exclude_none=True, responses=ERRORS)
async def sheets_agent(request: Request, agent: SheetsAgent = Depends(get_sheets_agent),
                       cfg: Settings = Depends(get_settings)):
    payload = await read_json(request, cfg.max_json_bytes)
    return await agent.run(payload)


@router.get("/tasks/{task_id}", response_model=TaskRecord, response_model_exclude_none=True,
            responses={404: {"model": ErrorResponse}})
async def get_task(task_id: str, repo: Repo = Depends(get_repo)):
    rec = repo.get(task_id)
    if not rec:
        raise NotFound()
    return rec
