from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..config import Settings
from ..deps import get_settings
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(cfg: Settings = Depends(get_settings)):
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return HealthResponse(service=cfg.service_name, time=now)
