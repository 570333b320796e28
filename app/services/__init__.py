"""Service layer package."""

__all__ = [
    "auth_service",
    "user_service",
    "connection_service",
    "remote_session_service",
    "presence_service",
    "channel_events",
    "channel_manager",
]
