# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Redis-backed session collection."""

from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from kvsession.kernel.exceptions import (
    StoreConnectionException,
    StoreException,
    TransientStoreException,
)

_logger = logging.getLogger(__name__)


class RedisSessionCollection:
    """Session collection backed by ``redis.asyncio``.

    One logical bucket lives under the key prefix ``{namespace}:{bucket}:``,
    so several applications (namespaces) and several buckets can share a
    Redis database. The client is created once and held until :meth:`stop`.

    Redis timeouts are reported as :class:`TransientStoreException`; any
    other Redis error, including a refused connection, as
    :class:`StoreException`.
    """

    def __init__(self, client: Any, namespace: str = "default", bucket: str = "sessions") -> None:
        self._client = client
        self._prefix = f"{namespace}:{bucket}:"

    @classmethod
    def from_url(
        cls,
        url: str,
        namespace: str = "default",
        bucket: str = "sessions",
        timeout: float | None = 2.0,
    ) -> RedisSessionCollection:
        """Create a collection with its own client for the Redis at *url*."""
        client = aioredis.from_url(url, socket_timeout=timeout, socket_connect_timeout=timeout)  # type: ignore[no-untyped-call,unused-ignore]
        return cls(client, namespace=namespace, bucket=bucket)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        try:
            raw = await self._client.get(self._key(key))
        except RedisTimeoutError as exc:
            raise TransientStoreException(f"Timed out reading session '{key}'", code="STORE_TIMEOUT") from exc
        except RedisError as exc:
            raise StoreException(f"Failed to read session '{key}': {exc}", code="STORE_READ_FAILED") from exc
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

    async def set(self, key: str, ttl: int, blob: str) -> None:
        try:
            if ttl > 0:
                await self._client.set(self._key(key), blob.encode("utf-8"), ex=ttl)
            else:
                await self._client.set(self._key(key), blob.encode("utf-8"))
        except RedisTimeoutError as exc:
            raise TransientStoreException(f"Timed out writing session '{key}'", code="STORE_TIMEOUT") from exc
        except RedisError as exc:
            raise StoreException(f"Failed to write session '{key}': {exc}", code="STORE_WRITE_FAILED") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisTimeoutError as exc:
            raise TransientStoreException(f"Timed out deleting session '{key}'", code="STORE_TIMEOUT") from exc
        except RedisError as exc:
            raise StoreException(f"Failed to delete session '{key}': {exc}", code="STORE_DELETE_FAILED") from exc

    async def start(self) -> None:
        """Validate connectivity by pinging Redis."""
        try:
            await self._client.ping()
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StoreConnectionException(f"Cannot reach Redis: {exc}", code="STORE_UNREACHABLE") from exc
        _logger.info("Connected session collection '%s'", self._prefix.rstrip(":"))

    async def stop(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()
