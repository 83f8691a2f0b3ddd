"""
Configured URL store - the single operator URL shown in the embed
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from redis.exceptions import RedisError

from urlconnect.core.config import settings
from urlconnect.core.redis_client import get_redis, RedisKeys
from urlconnect.services.errors import UrlStoreError

logger = logging.getLogger(__name__)


class UrlStore:
    """Get / set / clear one URL string"""

    async def get_url(self) -> Optional[str]:
        raise NotImplementedError

    async def get_updated_at(self) -> Optional[datetime]:
        raise NotImplementedError

    async def set_url(self, url: str) -> None:
        raise NotImplementedError

    async def clear_url(self) -> None:
        raise NotImplementedError


class MemoryUrlStore(UrlStore):
    """In-process store for local development and tests"""

    def __init__(self, url: Optional[str] = None):
        self._url = url
        self._updated_at: Optional[datetime] = datetime.now(timezone.utc) if url else None

    async def get_url(self) -> Optional[str]:
        return self._url

    async def get_updated_at(self) -> Optional[datetime]:
        return self._updated_at

    async def set_url(self, url: str) -> None:
        self._url = url
        self._updated_at = datetime.now(timezone.utc)

    async def clear_url(self) -> None:
        self._url = None
        self._updated_at = None


class RedisUrlStore(UrlStore):
    """Redis-backed store, shared by every worker"""

    def __init__(self, redis):
        self.redis = redis

    def _require_client(self):
        if self.redis is None:
            raise UrlStoreError("Redis is not connected")
        return self.redis

    async def get_url(self) -> Optional[str]:
        client = self._require_client()
        try:
            return await client.get(RedisKeys.configured_url())
        except RedisError as e:
            logger.error(f"Error fetching URL from Redis: {e}")
            raise UrlStoreError("Failed to fetch URL") from e

    async def get_updated_at(self) -> Optional[datetime]:
        client = self._require_client()
        try:
            raw = await client.get(RedisKeys.configured_url_updated_at())
        except RedisError as e:
            logger.error(f"Error fetching URL timestamp from Redis: {e}")
            raise UrlStoreError("Failed to fetch URL") from e
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed URL timestamp in Redis: {raw!r}")
            return None

    async def set_url(self, url: str) -> None:
        client = self._require_client()
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(RedisKeys.configured_url(), url)
                pipe.set(
                    RedisKeys.configured_url_updated_at(),
                    datetime.now(timezone.utc).isoformat(),
                )
                await pipe.execute()
        except RedisError as e:
            logger.error(f"Error updating URL in Redis: {e}")
            raise UrlStoreError("Failed to update URL") from e

    async def clear_url(self) -> None:
        client = self._require_client()
        try:
            await client.delete(
                RedisKeys.configured_url(),
                RedisKeys.configured_url_updated_at(),
            )
        except RedisError as e:
            logger.error(f"Error clearing URL in Redis: {e}")
            raise UrlStoreError("Failed to clear URL") from e


memory_url_store = MemoryUrlStore()


def get_url_store() -> UrlStore:
    """FastAPI dependency: the store selected by URL_STORE_BACKEND"""
    if settings.URL_STORE_BACKEND == "redis":
        return RedisUrlStore(get_redis())
    return memory_url_store
