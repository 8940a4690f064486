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
"""SessionMiddleware: saves every session a request resolved."""

from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from kvsession.session.registry import SessionRegistry


class SessionMiddleware:
    """Pure ASGI middleware that persists resolved sessions automatically.

    Handlers call ``await store.get(request, name)`` and mutate the session;
    when the response starts, every session still in the request's
    :class:`SessionRegistry` is saved and its ``Set-Cookie`` header added.
    Sessions removed with ``store.delete`` are no longer registered, and
    sessions a handler already saved with ``store.save`` are skipped, so
    neither is written twice.

    A failed save propagates out of the application, so the server answers
    with a 500 instead of a response that silently lost its session.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope.setdefault("state", {})
        request = Request(scope, receive)

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                registry = SessionRegistry.peek(request)
                if registry is not None and len(registry):
                    collector = Response()
                    await registry.save_all(collector)
                    headers = MutableHeaders(scope=message)
                    for cookie in collector.headers.getlist("set-cookie"):
                        headers.append("set-cookie", cookie)
            await send(message)

        await self.app(scope, receive, _send)
