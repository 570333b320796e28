"""Viewer presence in Redis: which users have a channel bound right now."""
from typing import Optional

from app.cache.cache_service import redis_cache


class PresenceService:
    ONLINE_KEY_PREFIX = "presence:user:"
    TTL_SECONDS = 3600  # refreshed on every bind

    @staticmethod
    def _key(user_id: int) -> str:
        return f"{PresenceService.ONLINE_KEY_PREFIX}{user_id}"

    @staticmethod
    async def set_online(user_id: int, session_id: int):
        """Remember the session the user's viewer is bound to."""
        await redis_cache.set(PresenceService._key(user_id), str(session_id), ttl=PresenceService.TTL_SECONDS)

    @staticmethod
    async def set_offline(user_id: int):
        await redis_cache.delete(PresenceService._key(user_id))

    @staticmethod
    async def current_session(user_id: int) -> Optional[int]:
        value = await redis_cache.get(PresenceService._key(user_id))
        return int(value) if value else None
