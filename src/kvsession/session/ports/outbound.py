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
"""Backing collection protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from kvsession.kernel.lifecycle import Lifecycle


@runtime_checkable
class SessionCollection(Lifecycle, Protocol):
    """A single bucket of encoded session blobs keyed by session ID.

    All collection backends (in-memory, Redis, etc.) must implement this
    protocol, and hold their connection from :meth:`start` to :meth:`stop`.
    A missing key is reported as ``None``, never as an exception.
    Timeouts raise ``TransientStoreException``; every other failure raises
    ``StoreException``.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, ttl: int, blob: str) -> None: ...

    async def delete(self, key: str) -> None: ...
