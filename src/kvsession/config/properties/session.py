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
"""Session store configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from kvsession.core.config import config_properties


@config_properties(prefix="kvsession.session")
@dataclass
class SessionProperties:
    """Configuration for the session store (kvsession.session.*).

    ``keys`` is an ordered list of ``{"hash_key": ..., "block_key": ...}``
    mappings. The first entry signs new cookies; all entries are tried when
    verifying, so a new key is rolled out by prepending it.
    """

    store: str = "memory"
    cookie_name: str = "KVSESSION"
    path: str = "/"
    max_age: int = 86400 * 30
    domain: str | None = None
    secure: bool = False
    http_only: bool = True
    same_site: str = "lax"
    keys: list = field(default_factory=list)
    redis: dict = field(
        default_factory=lambda: {
            "url": "redis://localhost:6379/0",
            "namespace": "default",
            "bucket": "sessions",
            "timeout": 2.0,
        }
    )


@config_properties(prefix="kvsession.retry")
@dataclass
class RetryProperties:
    """Retry policy for backing collection calls (kvsession.retry.*)."""

    max_attempts: int = 3
    base_backoff_ms: int = 100
