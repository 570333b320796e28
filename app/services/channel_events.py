"""Server-to-client event payloads for the viewer channel.

Every event is a JSON object with a ``type`` discriminant. Factories keep
the wire shape in one place so the channel code and tests agree on it.
"""
import random
import time
from typing import Any, Optional

from app.core.constants import LINK_QUALITIES


def connected_event(connection_id: int, session_id: int) -> dict[str, Any]:
    return {"type": "connected", "connectionId": connection_id, "sessionId": session_id}


def disconnected_event() -> dict[str, Any]:
    return {"type": "disconnected"}


def initial_status_event() -> dict[str, Any]:
    """Sent once when a channel is accepted, before any session is bound."""
    return {"type": "connectionStatus", "status": "connected", "quality": "Good", "latency": 25}


def connection_status_event(
    quality: Optional[str] = None,
    latency: Optional[int] = None,
) -> dict[str, Any]:
    """Simulated link report; quality and latency are random unless given.

    Latency is drawn uniformly from [10, 60) ms.
    """
    return {
        "type": "connectionStatus",
        "quality": quality if quality is not None else random.choice(LINK_QUALITIES),
        "latency": latency if latency is not None else random.randrange(10, 60),
    }


def frame_event(timestamp: Optional[int] = None) -> dict[str, Any]:
    return {
        "type": "frame",
        "timestamp": timestamp if timestamp is not None else int(time.time() * 1000),
    }


def ack_event(event_type: str, event_id: Any) -> dict[str, Any]:
    return {"type": f"{event_type}Ack", "id": event_id}


def error_event(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}
