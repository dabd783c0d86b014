from datetime import datetime, timezone
from typing import Any
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ctrlaltvibe.core.config import settings
from ctrlaltvibe.core.constants import WS_AUTH, WS_PING
from ctrlaltvibe.realtime.registry import ConnectionRegistry
from ctrlaltvibe.schemas import realtime as messages

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_user_id(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    return None


async def handle_message(registry: ConnectionRegistry, websocket: WebSocket, raw: str) -> None:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        await registry.send(websocket, messages.error())
        return

    if not isinstance(data, dict):
        await registry.send(websocket, messages.error())
        return

    message_type = data.get("type")

    if message_type == WS_AUTH:
        user_id = _parse_user_id(data.get("userId"))
        if user_id is None:
            logger.warning(f"Realtime auth rejected: invalid user id {data.get('userId')!r}")
            await registry.send(websocket, messages.auth_error())
            return
        registry.authenticate(websocket, user_id)
        await registry.send(websocket, messages.auth_success(user_id))

    elif message_type == WS_PING:
        await registry.send(websocket, messages.pong(datetime.now(timezone.utc).isoformat()))

    # Unknown types are ignored so clients can add message kinds first.


@router.websocket(settings.WEBSOCKET_PATH)
async def notifications_socket(websocket: WebSocket):
    registry: ConnectionRegistry = websocket.app.state.connection_registry

    await websocket.accept()
    registry.register_connection(websocket)
    logger.info("Client connected to realtime channel")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                try:
                    raw = message["bytes"].decode("utf-8")
                except UnicodeDecodeError:
                    raw = None
            if raw is None:
                await registry.send(websocket, messages.error())
                continue

            await handle_message(registry, websocket, raw)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Realtime connection error: {e}", exc_info=True)
    finally:
        registration = registry.get_registration(websocket)
        user_id = registration.user_id if registration else None
        registry.deregister(websocket)
        logger.info(f"Client disconnected from realtime channel (User: {user_id})")
