"""Connection request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.core.config import settings
from app.core.constants import ConnectionStatus, OperatingSystem
from app.schemas.common import CamelModel

OS_PATTERN = "^(" + "|".join(o.value for o in OperatingSystem) + ")$"
STATUS_PATTERN = "^(" + "|".join(s.value for s in ConnectionStatus) + ")$"


class ConnectionCredentials(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None
    certificate: Optional[str] = None
    remember_password: Optional[bool] = None


class ConnectionCredentialsRead(CamelModel):
    """Stored credentials as returned to clients; secrets are write-only."""
    username: Optional[str] = None
    remember_password: Optional[bool] = None


class ConnectionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    host: str = Field(..., min_length=1, max_length=255)
    port: int = Field(settings.DEFAULT_RDP_PORT, ge=1, le=65535)
    os: str = Field("Windows", pattern=OS_PATTERN)
    credentials: Optional[ConnectionCredentials] = None


class ConnectionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    host: Optional[str] = Field(None, min_length=1, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    os: Optional[str] = Field(None, pattern=OS_PATTERN)
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)
    credentials: Optional[ConnectionCredentials] = None


class ConnectionRead(CamelModel):
    id: int
    user_id: int
    name: str
    host: str
    port: Optional[int] = None
    os: Optional[str] = None
    status: Optional[str] = None
    last_accessed: Optional[datetime] = None
    credentials: Optional[ConnectionCredentialsRead] = None
