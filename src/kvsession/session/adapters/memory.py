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
"""In-memory session collection with TTL-based expiry."""

from __future__ import annotations

import asyncio
import time


class InMemorySessionCollection:
    """Dict-backed collection with TTL support and asyncio.Lock for safety.

    Suitable for development, testing, and single-process applications.
    A ``ttl`` of zero or less stores the blob without expiry.
    """

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float | None]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        """Return the blob, or ``None`` if missing or expired."""
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            blob, expires_at = entry
            if expires_at is not None and time.monotonic() > expires_at:
                del self._store[key]
                return None

            return blob

    async def set(self, key: str, ttl: int, blob: str) -> None:
        async with self._lock:
            expires_at = time.monotonic() + ttl if ttl > 0 else None
            self._store[key] = (blob, expires_at)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        async with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
