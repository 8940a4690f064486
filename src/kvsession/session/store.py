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
"""BucketSessionStore: sessions in a key-value bucket, IDs in a signed cookie.

The cookie carries only the signed session ID. The session values live in
the backing collection under that ID, themselves encoded with the same
codec chain, and expire there after ``options.max_age`` seconds.

Usage::

    store = BucketSessionStore(collection, "/", 3600, hash_key, block_key)

    async def endpoint(request):
        session = await store.get(request, "app-session")
        session.values["visits"] = session.values.get("visits", 0) + 1
        response = PlainTextResponse("ok")
        await store.save(request, response, session)
        return response
"""

from __future__ import annotations

import base64
import secrets
from typing import Any

import structlog

from kvsession.kernel.exceptions import (
    ConfigurationException,
    EncodingException,
    InvalidCookieException,
    KVSessionException,
    SessionDecodeException,
)
from kvsession.resilience.retry import RetryExecutor, RetryPolicy
from kvsession.session.codecs import codecs_from_pairs, decode_multi, encode_multi
from kvsession.session.ports.outbound import SessionCollection
from kvsession.session.registry import SessionRegistry
from kvsession.session.session import CookieOptions, Session

logger = structlog.get_logger("kvsession.session")

MAX_COOKIE_LENGTH = 4096


def generate_session_id() -> str:
    """32 random bytes, base32-encoded, padding stripped."""
    return base64.b32encode(secrets.token_bytes(32)).decode("ascii").rstrip("=")


class BucketSessionStore:
    """Correlates signed session cookies with blobs in a backing collection.

    Args:
        collection: The bucket holding encoded session values. Acquired by
            the caller and owned by the store until :meth:`close`.
        path: Cookie path; an empty path means ``"/"``.
        max_age: Cookie and record lifetime in seconds. Must be positive.
        *key_pairs: Alternating hash and block keys. The first pair signs
            new values; every pair is tried when verifying.
        options: Further cookie defaults (domain, secure, ...). ``path``
            and ``max_age`` above take precedence.
        retry_policy: Retry budget for collection calls.

    Raises:
        ConfigurationException: If ``max_age <= 0`` or no keys are given.
    """

    def __init__(
        self,
        collection: SessionCollection,
        path: str,
        max_age: int,
        *key_pairs: bytes | str | None,
        options: CookieOptions | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        if max_age <= 0:
            raise ConfigurationException(f"max_age must be positive, got {max_age}", code="INVALID_MAX_AGE")
        if not key_pairs or not key_pairs[0]:
            raise ConfigurationException("At least one signing key is required", code="MISSING_KEYS")

        defaults = options.copy() if options is not None else CookieOptions()
        defaults.path = path or "/"
        defaults.max_age = max_age

        self._collection = collection
        # Signed values keep the codec default age, independent of the cookie max_age.
        self._codecs = codecs_from_pairs(*key_pairs)
        self._options = defaults
        self._retry = RetryExecutor(retry_policy)
        self._closed = False

    @property
    def options(self) -> CookieOptions:
        """A copy of the default cookie options."""
        return self._options.copy()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry.policy

    # -- lifecycle --------------------------------------------------------

    async def start(self) -> None:
        """Check that the backing collection is reachable."""
        await self._collection.start()

    async def close(self) -> None:
        """Release the backing collection. Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        await self._collection.stop()

    # -- session lifecycle ------------------------------------------------

    async def get(self, request: Any, name: str) -> Session:
        """Return the session for *name*, resolving it at most once per request."""
        return await SessionRegistry.of(request).get(self, name)

    async def new(self, request: Any, name: str) -> Session:
        """Build a session for *name*, loading it when the cookie is valid.

        Without a cookie, or when the cookie's ID has no stored record, the
        result is a blank session with ``is_new`` set.

        Raises:
            InvalidCookieException: The cookie failed verification.
            StoreException: The stored record could not be read or decoded.

            In both cases a blank, usable session is attached to the
            exception as ``exc.session``.
        """
        session = Session(self, name, self._options.copy())
        cookie = request.cookies.get(name)
        if not cookie:
            return session

        try:
            session.id = decode_multi(name, cookie, self._codecs)
            if not isinstance(session.id, str):
                raise InvalidCookieException(f"Cookie '{name}' does not carry a session ID", code="INVALID_COOKIE")
            if await self._load(session):
                session.is_new = False
            else:
                # Vanished record: start over rather than reviving the old ID.
                session.id = ""
        except KVSessionException as exc:
            logger.warning("session.resolve_failed", name=name, error=str(exc), code=exc.code)
            exc.session = Session(self, name, self._options.copy())
            raise
        return session

    async def save(self, request: Any, response: Any, session: Session) -> None:
        """Persist *session* and set its cookie on *response*.

        A session without an ID gets a fresh one first. If the write to the
        collection fails no cookie is set. A negative ``options.max_age``
        deletes the session instead.

        Raises:
            StoreException: The collection write failed.
            EncodingException: The values or the cookie could not be encoded.
        """
        if session.options.max_age < 0:
            await self.delete(request, response, session)
            return
        if not session.id:
            session.id = generate_session_id()
        await self._save(session)

        encoded = encode_multi(session.name, session.id, self._codecs)
        if len(encoded) > MAX_COOKIE_LENGTH:
            raise EncodingException(
                f"Cookie '{session.name}' is {len(encoded)} bytes, over the {MAX_COOKIE_LENGTH} byte limit",
                code="COOKIE_TOO_LONG",
            )
        _set_cookie(response, session.name, encoded, session.options)
        registry = SessionRegistry.peek(request)
        if registry is not None:
            registry.mark_saved(session)
        logger.debug("session.saved", name=session.name)

    async def delete(self, request: Any, response: Any, session: Session) -> None:
        """Remove *session* from the collection and expire its cookie.

        The cookie is expired and ``session.values`` cleared even when the
        collection delete fails; that failure is raised afterwards.

        Raises:
            StoreException: The collection delete failed after retries.
        """
        try:
            if session.id:
                await self._retry.execute(lambda: self._collection.delete(session.id))
        finally:
            options = session.options.copy()
            options.max_age = -1
            _set_cookie(response, session.name, "", options)
            session.values.clear()
            registry = SessionRegistry.peek(request)
            if registry is not None:
                registry.discard(session.name)
        logger.debug("session.deleted", name=session.name)

    # -- collection round trips --------------------------------------------

    async def _save(self, session: Session) -> None:
        blob = encode_multi(session.name, session.values, self._codecs)
        # A browser-session cookie (max_age 0) still gets a bounded record.
        ttl = session.options.max_age or self._options.max_age
        await self._retry.execute(lambda: self._collection.set(session.id, ttl, blob))

    async def _load(self, session: Session) -> bool:
        """Fill ``session.values`` from the collection.

        Returns ``False`` when the record is missing or empty; values are
        left untouched in that case.
        """
        blob = await self._retry.execute(lambda: self._collection.get(session.id))
        if not blob:
            return False
        try:
            values = decode_multi(session.name, blob, self._codecs)
        except InvalidCookieException as exc:
            raise SessionDecodeException(
                f"Stored values for session '{session.name}' could not be decoded",
                code="SESSION_DECODE_FAILED",
            ) from exc
        if not isinstance(values, dict):
            raise SessionDecodeException(
                f"Stored values for session '{session.name}' are not a mapping",
                code="SESSION_DECODE_FAILED",
            )
        session.values = values
        return True


def _set_cookie(response: Any, name: str, value: str, options: CookieOptions) -> None:
    """Write one cookie onto a Starlette-style response.

    ``max_age`` 0 writes a browser-session cookie (no Max-Age attribute).
    """
    response.set_cookie(
        key=name,
        value=value,
        max_age=options.max_age or None,
        expires=options.max_age if options.max_age > 0 else None,
        path=options.path,
        domain=options.domain,
        secure=options.secure,
        httponly=options.http_only,
        samesite=options.same_site,
    )
