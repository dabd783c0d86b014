"""Messages exchanged over the notification WebSocket."""
from pydantic import BaseModel
from typing import Any, Dict

from ctrlaltvibe.core.constants import WS_AUTH_SUCCESS, WS_AUTH_ERROR, WS_PONG, WS_NOTIFICATION, WS_ERROR

def auth_success(user_id: int) -> Dict[str, Any]:
    return {"type": WS_AUTH_SUCCESS, "userId": user_id}

def auth_error(message: str = "Invalid user ID") -> Dict[str, Any]:
    return {"type": WS_AUTH_ERROR, "message": message}

def pong(time_iso: str) -> Dict[str, Any]:
    return {"type": WS_PONG, "time": time_iso}

def error(message: str = "Invalid message format") -> Dict[str, Any]:
    return {"type": WS_ERROR, "message": message}

def notification(data: Any) -> Dict[str, Any]:
    return {"type": WS_NOTIFICATION, "data": data}

class RealtimeConfig(BaseModel):
    websocket_path: str
    poll_interval_seconds: int
