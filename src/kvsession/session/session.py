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
"""Session: per-client state addressed by an opaque ID carried in a cookie."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kvsession.session.store import BucketSessionStore

FLASHES_KEY = "_flash"


@dataclass
class CookieOptions:
    """Attributes written with the session cookie.

    ``max_age`` is also the expiry given to the backing collection on save.
    A negative ``max_age`` tells the client to drop the cookie.
    """

    path: str = "/"
    max_age: int = 86400 * 30
    domain: str | None = None
    secure: bool = False
    http_only: bool = True
    same_site: str | None = "lax"

    def copy(self) -> CookieOptions:
        return dataclasses.replace(self)


class Session:
    """A named session bound to the store that created it.

    Attributes:
        id: Opaque session ID; empty until the first save mints one.
        values: JSON-compatible mapping persisted in the backing collection.
        options: This session's own copy of the cookie options.
        is_new: ``True`` unless the session was loaded from the collection.
    """

    def __init__(
        self,
        store: BucketSessionStore,
        name: str,
        options: CookieOptions | None = None,
    ) -> None:
        self.id = ""
        self.values: dict[str, Any] = {}
        self.options = options if options is not None else CookieOptions()
        self.is_new = True
        self._store = store
        self._name = name

    @property
    def name(self) -> str:
        """The cookie name this session is registered under."""
        return self._name

    @property
    def store(self) -> BucketSessionStore:
        return self._store

    async def save(self, request: Any, response: Any) -> None:
        """Persist the session through its store and set the cookie."""
        await self._store.save(request, response, self)

    def add_flash(self, value: Any, key: str = FLASHES_KEY) -> None:
        """Queue a one-shot message, read back by :meth:`flashes`."""
        self.values.setdefault(key, []).append(value)

    def flashes(self, key: str = FLASHES_KEY) -> list[Any]:
        """Return and clear the flash messages stored under *key*."""
        return list(self.values.pop(key, []))

    def __repr__(self) -> str:
        return f"Session(name={self._name!r}, id={self.id!r}, is_new={self.is_new})"
