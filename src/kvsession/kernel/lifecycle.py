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
"""Lifecycle protocol for adapters that own a connection."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Lifecycle(Protocol):
    """Start/stop pair for anything holding a remote handle.

    The handle is acquired once and held for the owner's lifetime; there is
    no per-operation acquire/release.
    """

    async def start(self) -> None:
        """Validate connectivity.

        Raises:
            StoreConnectionException: If the remote end cannot be reached.
        """
        ...

    async def stop(self) -> None:
        """Release the handle. Call exactly once, at shutdown."""
        ...
