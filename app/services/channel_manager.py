"""Viewer channel registry and message dispatcher.

One ``RemoteChannel`` exists per open ``/ws`` socket. A channel starts in
``connected`` state, becomes ``bound`` once a ``connect`` message created
a session, and ends ``closed``. While bound, two emitter tasks push
simulated telemetry; they are cancelled whenever the channel unbinds.
"""
import asyncio
import json
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from fastapi import WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import INPUT_EVENT_TYPES
from app.core.database import SessionLocal
from app.services import channel_events
from app.services.connection_service import ConnectionService
from app.services.presence_service import PresenceService
from app.services.remote_session_service import RemoteSessionService

logger = logging.getLogger(__name__)


def _parse_connection_id(raw_id: Any) -> Optional[int]:
    """Accept an int or a string of ASCII digits; booleans and floats are not ids."""
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, int):
        return raw_id
    if isinstance(raw_id, str) and raw_id.isascii() and raw_id.isdigit():
        return int(raw_id)
    return None


class ChannelState(str, Enum):
    CONNECTED = "connected"
    BOUND = "bound"
    CLOSED = "closed"


class RemoteChannel:
    def __init__(
        self,
        websocket: WebSocket,
        user_id: int,
        client_ip: str = "unknown",
        user_agent: Optional[str] = None,
    ):
        self.id = uuid.uuid4().hex[:8]
        self.websocket = websocket
        self.user_id = user_id
        self.client_ip = client_ip
        self.user_agent = user_agent
        self.connection_id: Optional[int] = None
        self.session_id: Optional[int] = None
        self.state = ChannelState.CONNECTED
        self._emitters: List[asyncio.Task] = []

    @property
    def is_bound(self) -> bool:
        return self.session_id is not None

    async def send(self, event: Dict[str, Any]) -> None:
        await self.websocket.send_json(event)

    def start_emitters(self, status_interval: float, frame_interval: float) -> None:
        self._emitters = [
            asyncio.create_task(
                self._emit_every(status_interval, channel_events.connection_status_event),
                name=f"channel-{self.id}-status",
            ),
            asyncio.create_task(
                self._emit_every(frame_interval, channel_events.frame_event),
                name=f"channel-{self.id}-frames",
            ),
        ]

    async def stop_emitters(self) -> None:
        tasks, self._emitters = self._emitters, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _emit_every(self, interval: float, factory: Callable[[], Dict[str, Any]]) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                await self.send(factory())
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            # Socket went away between ticks; close handling does the cleanup
            logger.debug("Channel %s emitter stopped: %r", self.id, exc)


class ChannelManager:
    """
    Holds the live viewer channels and maps inbound messages to session
    lifecycle calls. Every handled message gets its own DB session.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory
        self.channels: Dict[str, RemoteChannel] = {}

    @property
    def active_count(self) -> int:
        return len(self.channels)

    async def open(
        self,
        websocket: WebSocket,
        user_id: int,
        client_ip: str = "unknown",
        user_agent: Optional[str] = None,
    ) -> RemoteChannel:
        await websocket.accept()
        channel = RemoteChannel(websocket, user_id, client_ip=client_ip, user_agent=user_agent)
        self.channels[channel.id] = channel
        logger.info("Channel %s opened for user %s", channel.id, user_id)
        await channel.send(channel_events.initial_status_event())
        return channel

    async def handle_message(self, channel: RemoteChannel, raw: Union[str, bytes]) -> None:
        """Dispatch one inbound message; failures become an error event."""
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            message = json.loads(raw)
            if not isinstance(message, dict):
                raise ValueError("Message must be a JSON object")
            msg_type = message.get("type")
            logger.debug("Channel %s received %s", channel.id, msg_type)

            if msg_type == "connect":
                with self.session_factory() as db:
                    await self._connect(channel, message, db)
            elif msg_type == "disconnect":
                with self.session_factory() as db:
                    await self._disconnect(channel, db)
            elif msg_type in INPUT_EVENT_TYPES:
                # Input is acknowledged only; there is no remote display to forward to
                await channel.send(channel_events.ack_event(msg_type, message.get("id")))
            else:
                logger.warning("Channel %s sent unknown message type: %s", channel.id, msg_type)
                await channel.send(channel_events.error_event(f"Unknown message type: {msg_type}"))
        except WebSocketDisconnect:
            raise
        except Exception:
            logger.exception("Error processing message on channel %s", channel.id)
            await channel.send(channel_events.error_event("Error processing message"))

    async def _connect(self, channel: RemoteChannel, message: dict, db: Session) -> None:
        raw_id = message.get("connectionId")
        if raw_id is None or raw_id == "":
            await channel.send(channel_events.error_event("Missing connectionId"))
            return

        connection_id = _parse_connection_id(raw_id)
        connection = ConnectionService.get_connection(db, connection_id) if connection_id is not None else None
        if not connection or connection.user_id != channel.user_id:
            await channel.send(channel_events.error_event("Connection not found"))
            return

        if channel.is_bound:
            await self._unbind(channel, db)

        remote_session = RemoteSessionService.create_session(
            db,
            user_id=channel.user_id,
            connection_id=connection.id,
            protocol=settings.WS_PROTOCOL_TAG,
            client_info={
                "ip": channel.client_ip,
                "userAgent": channel.user_agent or settings.WS_CLIENT_USER_AGENT,
            },
        )

        channel.connection_id = connection.id
        channel.session_id = remote_session.id
        channel.state = ChannelState.BOUND
        await PresenceService.set_online(channel.user_id, remote_session.id)
        logger.info(
            "Channel %s bound to session %s (connection %s)",
            channel.id, remote_session.id, connection.id,
        )

        await channel.send(channel_events.connected_event(connection.id, remote_session.id))
        channel.start_emitters(
            status_interval=settings.STATUS_INTERVAL_SECONDS,
            frame_interval=1 / settings.FRAME_RATE,
        )

    async def _disconnect(self, channel: RemoteChannel, db: Session) -> None:
        if channel.is_bound:
            await self._unbind(channel, db)
        await channel.send(channel_events.disconnected_event())
        channel.state = ChannelState.CLOSED
        await channel.websocket.close()

    async def _unbind(self, channel: RemoteChannel, db: Session) -> None:
        await channel.stop_emitters()
        session_id = channel.session_id
        channel.session_id = None
        channel.connection_id = None
        if channel.state == ChannelState.BOUND:
            channel.state = ChannelState.CONNECTED
        RemoteSessionService.terminate_session(db, session_id)
        await PresenceService.set_offline(channel.user_id)
        logger.info("Channel %s released session %s", channel.id, session_id)

    async def close(self, channel: RemoteChannel) -> None:
        """Socket is gone: stop emitters, end any bound session, forget the channel."""
        channel.state = ChannelState.CLOSED
        try:
            await channel.stop_emitters()
            if channel.is_bound:
                with self.session_factory() as db:
                    await self._unbind(channel, db)
        except SQLAlchemyError:
            logger.exception("Failed to terminate session for closed channel %s", channel.id)
        finally:
            self.channels.pop(channel.id, None)
            logger.info("Channel %s closed", channel.id)

    async def close_all(self) -> None:
        for channel in list(self.channels.values()):
            await self.close(channel)


channel_manager = ChannelManager()
