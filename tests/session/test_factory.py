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
"""Tests for building a session store from configuration."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.responses import Response

from kvsession.config.properties.session import SessionProperties
from kvsession.core.config import Config
from kvsession.kernel.exceptions import ConfigurationException, StoreConnectionException
from kvsession.session.adapters import redis as redis_adapter
from kvsession.session.adapters.memory import InMemorySessionCollection
from kvsession.session.adapters.redis import RedisSessionCollection
from kvsession.session.factory import build_collection, create_session_store, key_pairs_from

from conftest import make_request, response_cookies


class PingOnlyRedis:
    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable
        self.closed = False

    async def ping(self) -> bool:
        if not self.reachable:
            raise RedisConnectionError("refused")
        return True

    async def aclose(self) -> None:
        self.closed = True


def _config(**session: Any) -> Config:
    section = {"keys": [{"hash_key": "h" * 32, "block_key": "b" * 32}]}
    section.update(session)
    return Config({"kvsession": {"session": section}})


class TestKeyPairs:
    def test_pairs_are_flattened(self):
        props = SessionProperties(keys=[{"hash_key": "new", "block_key": "blk"}, {"hash_key": "old"}])
        assert key_pairs_from(props) == [b"new", b"blk", b"old", None]

    def test_entry_without_hash_key_is_rejected(self):
        props = SessionProperties(keys=[{"block_key": "blk"}])
        with pytest.raises(ConfigurationException) as exc_info:
            key_pairs_from(props)
        assert exc_info.value.code == "MISSING_KEYS"


class TestBuildCollection:
    def test_memory_is_default(self):
        assert isinstance(build_collection(SessionProperties()), InMemorySessionCollection)

    def test_redis_uses_namespace_and_bucket(self):
        props = SessionProperties(store="redis", redis={"url": "redis://localhost:6379/1", "namespace": "shop", "bucket": "carts"})
        collection = build_collection(props)
        assert isinstance(collection, RedisSessionCollection)
        assert collection._prefix == "shop:carts:"

    def test_unknown_store_is_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            build_collection(SessionProperties(store="etcd"))
        assert exc_info.value.code == "UNKNOWN_STORE"


class TestCreateSessionStore:
    async def test_builds_working_memory_store(self):
        store = await create_session_store(_config(max_age=600, path="/app", secure=True))
        assert store.options.path == "/app"
        assert store.options.max_age == 600
        assert store.options.secure is True

        session = await store.new(make_request(), "app")
        session.values["n"] = 1
        response = Response()
        await store.save(make_request(), response, session)
        cookie = response_cookies(response)["app"]
        assert cookie["secure"]

        loaded = await store.new(make_request({"app": cookie.value}), "app")
        assert loaded.values == {"n": 1}
        await store.close()

    async def test_retry_policy_comes_from_config(self):
        config = Config(
            {
                "kvsession": {
                    "session": {"keys": [{"hash_key": "k" * 32}]},
                    "retry": {"max_attempts": 5, "base_backoff_ms": 20},
                }
            }
        )
        store = await create_session_store(config)
        assert store.retry_policy.max_attempts == 5
        assert store.retry_policy.base_backoff == timedelta(milliseconds=20)

    async def test_env_overrides_max_age(self, monkeypatch):
        monkeypatch.setenv("KVSESSION_SESSION_MAX_AGE", "120")
        store = await create_session_store(_config())
        assert store.options.max_age == 120

    async def test_non_positive_max_age_is_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            await create_session_store(_config(max_age=0))
        assert exc_info.value.code == "INVALID_MAX_AGE"

    async def test_missing_keys_are_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            await create_session_store(Config({}))
        assert exc_info.value.code == "MISSING_KEYS"

    async def test_redis_store_checks_connectivity(self, monkeypatch):
        fake = PingOnlyRedis()
        monkeypatch.setattr(redis_adapter.aioredis, "from_url", lambda url, **kwargs: fake)
        store = await create_session_store(_config(store="redis"))
        await store.close()
        assert fake.closed is True

    async def test_unreachable_redis_fails_startup(self, monkeypatch):
        monkeypatch.setattr(redis_adapter.aioredis, "from_url", lambda url, **kwargs: PingOnlyRedis(reachable=False))
        with pytest.raises(StoreConnectionException):
            await create_session_store(_config(store="redis"))

    async def test_unreachable_redis_client_is_closed(self, monkeypatch):
        fake = PingOnlyRedis(reachable=False)
        monkeypatch.setattr(redis_adapter.aioredis, "from_url", lambda url, **kwargs: fake)
        with pytest.raises(StoreConnectionException):
            await create_session_store(_config(store="redis"))
        assert fake.closed is True

    async def test_invalid_settings_close_the_redis_client(self, monkeypatch):
        fake = PingOnlyRedis()
        monkeypatch.setattr(redis_adapter.aioredis, "from_url", lambda url, **kwargs: fake)
        with pytest.raises(ConfigurationException):
            await create_session_store(_config(store="redis", max_age=-5))
        assert fake.closed is True
