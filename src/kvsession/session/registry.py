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
"""SessionRegistry: one session instance per cookie name per request."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kvsession.kernel.exceptions import KVSessionException

if TYPE_CHECKING:
    from kvsession.session.session import Session
    from kvsession.session.store import BucketSessionStore

_logger = logging.getLogger(__name__)

_STATE_ATTR = "kvsession_registry"


class SessionRegistry:
    """Request-scoped cache of resolved sessions.

    Lives on ``request.state``, which is private to one request, so the
    first :meth:`get` for a name loads the session and every later call in
    the same request returns that instance (or re-raises the same advisory
    error, with the same blank session attached).
    """

    def __init__(self, request: Any) -> None:
        self._request = request
        self._sessions: dict[str, tuple[Session, KVSessionException | None]] = {}
        self._saved: set[str] = set()

    @classmethod
    def of(cls, request: Any) -> SessionRegistry:
        """Return the registry for *request*, creating it on first use."""
        registry = getattr(request.state, _STATE_ATTR, None)
        if registry is None:
            registry = cls(request)
            setattr(request.state, _STATE_ATTR, registry)
        return registry

    @classmethod
    def peek(cls, request: Any) -> SessionRegistry | None:
        """Return the registry for *request* without creating one."""
        return getattr(request.state, _STATE_ATTR, None)

    async def get(self, store: BucketSessionStore, name: str) -> Session:
        entry = self._sessions.get(name)
        cached = entry is not None
        if entry is None:
            error: KVSessionException | None = None
            try:
                session = await store.new(self._request, name)
            except KVSessionException as exc:
                if exc.session is None:
                    raise
                session, error = exc.session, exc
            entry = (session, error)
            self._sessions[name] = entry

        session, error = entry
        if error is not None:
            # A cached error is raised again with a fresh traceback.
            raise error.with_traceback(None) if cached else error
        return session

    def discard(self, name: str) -> None:
        """Forget the session registered under *name*."""
        self._sessions.pop(name, None)
        self._saved.discard(name)

    def mark_saved(self, session: Session) -> None:
        """Record that the registered *session* was saved; :meth:`save_all` skips it."""
        entry = self._sessions.get(session.name)
        if entry is not None and entry[0] is session:
            self._saved.add(session.name)

    def __contains__(self, name: str) -> bool:
        return name in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def save_all(self, response: Any) -> None:
        """Save every registered session onto *response*.

        Sessions already saved explicitly during the request are skipped.
        Every other session is attempted; the first failure is raised
        afterwards.
        """
        first_error: KVSessionException | None = None
        for name, (session, _) in list(self._sessions.items()):
            if name in self._saved:
                continue
            try:
                await session.store.save(self._request, response, session)
            except KVSessionException as exc:
                _logger.error("Failed to save session '%s': %s", name, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
