"""Viewer channel: one WebSocket per open remote desktop panel."""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from app.core.config import settings
from app.core.database import SessionLocal
from app.dependencies.auth import get_current_user_from_token
from app.services.channel_manager import ChannelState, channel_manager
from app.utils.helpers import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(tags=["remote-ws"])


@router.websocket("/ws")
async def remote_desktop_websocket(
    websocket: WebSocket,
    token: Optional[str] = Query(None, description="JWT access token"),
):
    # Authenticate with the query token or the login cookie
    raw_token = token or websocket.cookies.get(settings.AUTH_COOKIE_NAME)
    try:
        with SessionLocal() as db:
            current_user = get_current_user_from_token(raw_token, db)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    channel = await channel_manager.open(
        websocket,
        user_id=current_user["user_id"],
        client_ip=get_client_ip(websocket),
        user_agent=websocket.headers.get("user-agent"),
    )
    try:
        while channel.state != ChannelState.CLOSED:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", status.WS_1000_NORMAL_CLOSURE))
            # Binary frames carry the same JSON envelope as text frames
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes") or b""
            await channel_manager.handle_message(channel, raw)
    except WebSocketDisconnect:
        logger.info("Channel %s: client went away", channel.id)
    finally:
        await channel_manager.close(channel)
