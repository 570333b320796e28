"""Remote session request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.connection import ConnectionRead


class ClientInfo(CamelModel):
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    resolution: Optional[str] = None


class RemoteSessionCreate(CamelModel):
    connection_id: int
    protocol: Optional[str] = Field(None, max_length=32)
    client_info: Optional[ClientInfo] = None


class SessionUser(CamelModel):
    """Display identity of the session owner."""
    id: int
    username: str
    name: str
    email: str


class RemoteSessionRead(CamelModel):
    id: int
    user_id: int
    connection_id: Optional[int] = None
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[str] = None
    protocol: Optional[str] = None
    client_info: Optional[ClientInfo] = None
    connected_time: Optional[str] = None
    connected_date: Optional[str] = None
    user: Optional[SessionUser] = None
    connection: Optional[ConnectionRead] = None
