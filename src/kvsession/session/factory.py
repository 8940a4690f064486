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
"""Build a session store from configuration."""

from __future__ import annotations

from datetime import timedelta

from kvsession.config.properties.session import RetryProperties, SessionProperties
from kvsession.core.config import Config
from kvsession.kernel.exceptions import ConfigurationException
from kvsession.resilience.retry import RetryPolicy
from kvsession.session.ports.outbound import SessionCollection
from kvsession.session.session import CookieOptions
from kvsession.session.store import BucketSessionStore


def build_collection(props: SessionProperties) -> SessionCollection:
    """Select the collection adapter named by ``kvsession.session.store``."""
    if props.store == "redis":
        from kvsession.session.adapters.redis import RedisSessionCollection

        redis = props.redis
        return RedisSessionCollection.from_url(
            str(redis.get("url", "redis://localhost:6379/0")),
            namespace=str(redis.get("namespace", "default")),
            bucket=str(redis.get("bucket", "sessions")),
            timeout=float(redis.get("timeout", 2.0)),
        )
    if props.store == "memory":
        from kvsession.session.adapters.memory import InMemorySessionCollection

        return InMemorySessionCollection()
    raise ConfigurationException(f"Unknown session store '{props.store}'", code="UNKNOWN_STORE")


def key_pairs_from(props: SessionProperties) -> list[bytes | None]:
    """Flatten the configured key list into alternating hash/block keys."""
    keys: list[bytes | None] = []
    for entry in props.keys:
        hash_key = entry.get("hash_key")
        if not hash_key:
            raise ConfigurationException("Every key entry needs a hash_key", code="MISSING_KEYS")
        block_key = entry.get("block_key")
        keys.append(str(hash_key).encode("utf-8"))
        keys.append(str(block_key).encode("utf-8") if block_key else None)
    return keys


async def create_session_store(config: Config) -> BucketSessionStore:
    """Bind ``kvsession.session`` / ``kvsession.retry``, build and start the store.

    Raises:
        ConfigurationException: Invalid max age, missing keys or unknown store.
        StoreConnectionException: The collection is unreachable.
    """
    props = config.bind(SessionProperties)
    retry = config.bind(RetryProperties)

    collection = build_collection(props)
    try:
        store = BucketSessionStore(
            collection,
            props.path,
            props.max_age,
            *key_pairs_from(props),
            options=CookieOptions(
                domain=props.domain,
                secure=props.secure,
                http_only=props.http_only,
                same_site=props.same_site,
            ),
            retry_policy=RetryPolicy(
                max_attempts=retry.max_attempts,
                base_backoff=timedelta(milliseconds=retry.base_backoff_ms),
            ),
        )
        await store.start()
    except Exception:
        await collection.stop()
        raise
    return store
