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
"""Shared fixtures: keys, collections, stores and request/response helpers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from http.cookies import SimpleCookie

import pytest
from starlette.requests import Request
from starlette.responses import Response

from kvsession.resilience.retry import RetryPolicy
from kvsession.session.adapters.memory import InMemorySessionCollection
from kvsession.session.store import BucketSessionStore

HASH_KEY = b"h" * 32
BLOCK_KEY = b"b" * 32
OLD_HASH_KEY = b"o" * 32


def make_request(cookies: dict[str, str] | None = None) -> Request:
    """Build a bare Starlette request carrying *cookies*."""
    headers = []
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": headers,
    }
    return Request(scope)


def response_cookies(response: Response) -> SimpleCookie:
    """Parse every Set-Cookie header on *response*."""
    jar: SimpleCookie = SimpleCookie()
    for header in response.headers.getlist("set-cookie"):
        jar.load(header)
    return jar


@pytest.fixture
def request_factory() -> Callable[..., Request]:
    return make_request


@pytest.fixture
def parse_cookies() -> Callable[[Response], SimpleCookie]:
    return response_cookies


@pytest.fixture
def collection() -> InMemorySessionCollection:
    return InMemorySessionCollection()


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_backoff=timedelta(0))


@pytest.fixture
def store(collection: InMemorySessionCollection, fast_retry: RetryPolicy) -> BucketSessionStore:
    return BucketSessionStore(collection, "/", 3600, HASH_KEY, BLOCK_KEY, retry_policy=fast_retry)
