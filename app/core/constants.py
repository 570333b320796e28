"""Application constants such as record statuses and OS tags."""
from enum import Enum


class ConnectionStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    AWAY = "away"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    IDLE = "idle"
    TERMINATED = "terminated"


class OperatingSystem(str, Enum):
    WINDOWS = "Windows"
    LINUX = "Linux"
    MACOS = "MacOS"


# Simulated link quality values reported on the viewer channel
LINK_QUALITIES = ("Excellent", "Good", "Fair", "Poor")

# Input events the viewer may send; each is acknowledged with "<type>Ack"
INPUT_EVENT_TYPES = ("keyEvent", "mouseEvent", "touchEvent")
