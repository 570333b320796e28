"""ORM models."""

__all__ = [
    "user",
    "connection",
    "remote_session",
    "session",
]
