"""
Redis key/value handle and its manager.
"""
import json
from datetime import timedelta
from typing import Any, Mapping, Optional, Union

from redis import asyncio as aioredis

from ..core.enums import StoreKind
from ..core.exceptions import (
    KeyNotFoundError,
    OperationFailureError,
    SerializationFailureError,
)
from ..core.models import RedisConnectionConfig
from .base_handle import BaseHandle
from .base_manager import BaseHandleManager

Expiration = Union[int, timedelta, None]


def _expiration_seconds(expiration: Expiration) -> Optional[int]:
    """Whole seconds to pass as EX, or None for no expiry"""
    if expiration is None:
        return None
    seconds = int(expiration.total_seconds()) if isinstance(expiration, timedelta) else int(expiration)
    return seconds if seconds > 0 else None


class RedisHandle(BaseHandle):
    """
    Named Redis connection with JSON-encoded values.

    Values are stored as UTF-8 JSON so any client in any language can read
    them back. The redis-py client pools its own connections and is safe to
    share between concurrent tasks.
    """

    kind = StoreKind.REDIS
    kind_label = "Redis"

    config: Optional[RedisConnectionConfig]

    def _parse_config(self, record: Mapping[str, Any]) -> RedisConnectionConfig:
        return RedisConnectionConfig.from_record(record)

    async def _create_client(self) -> aioredis.Redis:
        host, port = self.config.host_and_port
        options = {
            'host': host,
            'port': port,
            'db': self.config.database_index,
            'decode_responses': False,  # We handle serialization
        }
        if self.config.has_user_name:
            options['username'] = self.config.user_name
        if self.config.has_password:
            options['password'] = self.config.password
        return aioredis.Redis(**options)

    async def _ping_client(self, client: aioredis.Redis) -> None:
        if not await client.ping():
            raise ConnectionError("PING was not acknowledged")

    async def _close_client(self, client: aioredis.Redis) -> None:
        await client.aclose()

    def _serialize(self, key: str, value: Any) -> bytes:
        try:
            return json.dumps(value).encode('utf-8')
        except (TypeError, ValueError) as e:
            message = f"Cannot serialize value for Redis {self.name_id} key {key} ({e})"
            self._logger.error(message)
            raise SerializationFailureError(message, name_id=self.name_id, key=key) from e

    def _deserialize(self, key: str, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (UnicodeDecodeError, ValueError) as e:
            message = f"Cannot unmarshal value of Redis {self.name_id} key {key} ({e})"
            self._logger.error(message)
            raise SerializationFailureError(message, name_id=self.name_id, key=key) from e

    async def _read(self, key: str) -> Optional[bytes]:
        client = self._require_connection('get', key)
        try:
            return await client.get(key)
        except Exception as e:
            message = f"Cannot get from Redis {self.name_id} key {key} ({e})"
            self._logger.error(message)
            raise OperationFailureError(message, name_id=self.name_id, key=key) from e

    async def set(self, key: str, value: Any, expiration: Expiration = None) -> None:
        """
        Store ``value`` as JSON under ``key``.

        Args:
            key: Redis key
            value: Any JSON-serializable value
            expiration: Time to live in seconds or as a timedelta. None, zero
                or anything under one second keeps the key forever
        """
        client = self._require_connection('set', key)
        data = self._serialize(key, value)
        try:
            await client.set(key, data, ex=_expiration_seconds(expiration))
        except Exception as e:
            message = f"Cannot save to Redis {self.name_id} key {key} ({e})"
            self._logger.error(message)
            raise OperationFailureError(message, name_id=self.name_id, key=key) from e

    async def get(self, key: str) -> Any:
        """Return the decoded value of ``key``, or None when the key does not exist"""
        data = await self._read(key)
        if data is None:
            return None
        return self._deserialize(key, data)

    async def must_get(self, key: str) -> Any:
        """Return the decoded value of ``key``; a missing key is an error"""
        data = await self._read(key)
        if data is None:
            message = f"Cannot find key {key} in Redis {self.name_id}"
            self._logger.error(message)
            raise KeyNotFoundError(message, name_id=self.name_id, key=key)
        return self._deserialize(key, data)

    async def delete(self, key: str) -> int:
        """Delete ``key`` and return the number of keys removed"""
        client = self._require_connection('delete', key)
        try:
            return await client.delete(key)
        except Exception as e:
            message = f"Error in deleting key {key} of Redis {self.name_id} ({e})"
            self._logger.error(message)
            raise OperationFailureError(message, name_id=self.name_id, key=key) from e


class RedisManager(BaseHandleManager):
    """Registry of Redis handles, read from the ``redis`` section by default"""

    handle_class = RedisHandle
    default_configuration_name_id = "redis"

    def new_redis(self, name_id: str, is_connect_at_start: bool = False,
                  must_connected: bool = False) -> RedisHandle:
        return self.new_handle(name_id, is_connect_at_start, must_connected)
