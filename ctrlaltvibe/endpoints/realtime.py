from fastapi import APIRouter

from ctrlaltvibe.core.config import settings
from ctrlaltvibe.schemas.realtime import RealtimeConfig
from ctrlaltvibe.schemas.response import APIResponse

router = APIRouter()

@router.get("/config", response_model=APIResponse[RealtimeConfig])
async def get_realtime_config():
    """Where to open the notification socket, and how often to poll when it is unavailable."""
    return APIResponse(
        message="Realtime configuration",
        data=RealtimeConfig(
            websocket_path=settings.WEBSOCKET_PATH,
            poll_interval_seconds=settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
        ),
    )
