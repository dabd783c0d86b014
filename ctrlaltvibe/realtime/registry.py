"""Process-local registry of live notification connections.

One user may hold several connections at once (tabs, devices); every push
fans out to all of that user's authenticated connections. The registry is
purely in-memory: nothing here survives a restart and nothing needs to, the
durable notification records are the source of truth and clients reconcile
through the REST endpoints.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from fastapi.encoders import jsonable_encoder

from ctrlaltvibe.core.constants import ConnectionStateEnum
from ctrlaltvibe.schemas import realtime as messages

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything we can push text frames to; a Starlette ``WebSocket`` in production."""

    async def send_text(self, data: str) -> None: ...


class NotificationDelivery(ABC):
    @abstractmethod
    async def deliver(self, user_id: int, event: Any) -> int:
        """Push ``event`` to every live connection of ``user_id``; returns the number reached."""


@dataclass
class ConnectionRegistration:
    handle: Connection
    user_id: Optional[int] = None
    state: ConnectionStateEnum = ConnectionStateEnum.OPEN
    connected_at: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == ConnectionStateEnum.AUTHENTICATED


class ConnectionRegistry(NotificationDelivery):
    # Starlette WebSockets are Mappings and therefore unhashable, so connections
    # are keyed by object identity. A registration holds its handle, which keeps
    # the id stable for as long as it is registered.

    def __init__(self):
        self._registrations: Dict[int, ConnectionRegistration] = {}
        self._by_user: Dict[int, Dict[int, Connection]] = {}

    def register_connection(self, handle: Connection) -> ConnectionRegistration:
        registration = ConnectionRegistration(handle=handle, connected_at=datetime.utcnow())
        self._registrations[id(handle)] = registration
        return registration

    def authenticate(self, handle: Connection, user_id: int) -> ConnectionRegistration:
        registration = self._registrations.get(id(handle))
        if registration is None:
            registration = self.register_connection(handle)

        if registration.user_id is not None and registration.user_id != user_id:
            self._unindex(handle, registration.user_id)

        registration.user_id = user_id
        registration.state = ConnectionStateEnum.AUTHENTICATED
        self._by_user.setdefault(user_id, {})[id(handle)] = handle
        logger.info(f"Realtime connection authenticated for user {user_id} ({len(self._by_user[user_id])} active)")
        return registration

    def deregister(self, handle: Connection) -> None:
        registration = self._registrations.pop(id(handle), None)
        if registration is None:
            return
        registration.state = ConnectionStateEnum.CLOSED
        if registration.user_id is not None:
            self._unindex(handle, registration.user_id)
            logger.info(f"Removed realtime connection for user {registration.user_id}")

    def get_registration(self, handle: Connection) -> Optional[ConnectionRegistration]:
        return self._registrations.get(id(handle))

    def connections_for(self, user_id: int) -> List[Connection]:
        return list(self._by_user.get(user_id, {}).values())

    def is_connected(self, user_id: int) -> bool:
        return bool(self._by_user.get(user_id))

    @property
    def connection_count(self) -> int:
        return len(self._registrations)

    @property
    def user_count(self) -> int:
        return len(self._by_user)

    async def send(self, handle: Connection, message: Dict[str, Any]) -> bool:
        """Send one protocol message to one connection. Never raises."""
        try:
            payload = json.dumps(jsonable_encoder(message))
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize realtime message {message.get('type')}: {e}")
            return False
        return await self._send_text(handle, payload)

    async def deliver(self, user_id: int, event: Any) -> int:
        handles = self.connections_for(user_id)
        if not handles:
            logger.debug(f"User {user_id} has no live realtime connection, skipping push")
            return 0

        try:
            payload = json.dumps(jsonable_encoder(messages.notification(event)))
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize notification for user {user_id}: {e}")
            return 0

        delivered = 0
        for handle in handles:
            if await self._send_text(handle, payload):
                delivered += 1

        logger.info(f"Real-time notification sent to user {user_id} on {delivered}/{len(handles)} connection(s)")
        return delivered

    def close_all(self) -> None:
        for registration in list(self._registrations.values()):
            self.deregister(registration.handle)
        self._by_user.clear()

    async def _send_text(self, handle: Connection, payload: str) -> bool:
        try:
            await handle.send_text(payload)
            return True
        except Exception as e:
            # A socket that fails mid-send is gone; stop pushing to it.
            logger.warning(f"Realtime send failed, dropping connection: {e}")
            self.deregister(handle)
            return False

    def _unindex(self, handle: Connection, user_id: int) -> None:
        handles = self._by_user.get(user_id)
        if handles is None:
            return
        handles.pop(id(handle), None)
        if not handles:
            del self._by_user[user_id]
