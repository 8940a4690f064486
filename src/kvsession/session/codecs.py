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
"""Tamper-evident, optionally encrypted values for cookies and stored blobs.

A :class:`SecureCookieCodec` turns any JSON-compatible value into an HS256
JWT whose claims bind it to a cookie *name* and an expiry. When the codec
has a block key the JSON payload is Fernet-encrypted before signing.

Codecs are used as an ordered chain: :func:`encode_multi` always uses the
first codec, :func:`decode_multi` accepts the first codec that verifies.
Rotating keys means prepending a new pair and dropping the oldest one once
its cookies have expired.
"""

from __future__ import annotations

import base64
import json
import time
from collections.abc import Sequence
from typing import Any

import jwt
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from kvsession.kernel.exceptions import (
    ConfigurationException,
    EncodingException,
    InvalidCookieException,
)

DEFAULT_MAX_AGE = 86400 * 30

_ALGORITHM = "HS256"
_HKDF_INFO = b"kvsession-block-key"


def _now() -> int:
    return int(time.time())


def _as_bytes(key: bytes | str) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else key


def _fernet_for(block_key: bytes) -> Fernet:
    derived = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=_HKDF_INFO).derive(block_key)
    return Fernet(base64.urlsafe_b64encode(derived))


class SecureCookieCodec:
    """Signs (and optionally encrypts) values bound to a name.

    Args:
        hash_key: HMAC key used to sign. 32 or 64 random bytes recommended.
        block_key: Optional key material for encryption. Any length; the
            Fernet key is derived from it with HKDF-SHA256.
        max_age: Seconds a value stays valid after encoding. ``0`` disables
            the expiry check.
    """

    def __init__(
        self,
        hash_key: bytes | str,
        block_key: bytes | str | None = None,
        *,
        max_age: int = DEFAULT_MAX_AGE,
    ) -> None:
        if not hash_key:
            raise ConfigurationException("hash key must not be empty", code="MISSING_KEYS")
        if max_age < 0:
            raise ConfigurationException(f"codec max_age must not be negative, got {max_age}")
        self._hash_key = _as_bytes(hash_key)
        self._fernet = _fernet_for(_as_bytes(block_key)) if block_key else None
        self._max_age = max_age

    @property
    def encrypts(self) -> bool:
        return self._fernet is not None

    @property
    def max_age(self) -> int:
        return self._max_age

    def encode(self, name: str, value: Any) -> str:
        """Serialize, optionally encrypt, and sign *value* under *name*.

        Raises:
            EncodingException: If *value* is not JSON-serializable.
        """
        try:
            payload: Any = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise EncodingException(f"Value for '{name}' is not serializable: {exc}", code="UNSERIALIZABLE") from exc

        if self._fernet is not None:
            payload = self._fernet.encrypt(payload.encode("utf-8")).decode("ascii")

        issued_at = _now()
        claims: dict[str, Any] = {"name": name, "val": payload, "iat": issued_at}
        if self._max_age:
            claims["exp"] = issued_at + self._max_age
        return jwt.encode(claims, self._hash_key, algorithm=_ALGORITHM)

    def decode(self, name: str, value: str) -> Any:
        """Verify *value* and return the original object.

        Raises:
            InvalidCookieException: On a bad signature, expiry, name mismatch,
                failed decryption or malformed payload.
        """
        try:
            claims = jwt.decode(
                value,
                self._hash_key,
                algorithms=[_ALGORITHM],
                options={"require": ["iat"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidCookieException(f"Invalid value for '{name}': {exc}", code="INVALID_COOKIE") from exc

        if claims.get("name") != name:
            raise InvalidCookieException(f"Value was issued for a different name than '{name}'", code="NAME_MISMATCH")
        # The decoding codec's own age limit also applies.
        if self._max_age and claims["iat"] < _now() - self._max_age:
            raise InvalidCookieException(f"Value for '{name}' has expired", code="EXPIRED")

        payload = claims.get("val")
        if not isinstance(payload, str):
            raise InvalidCookieException(f"Value for '{name}' carries no payload", code="INVALID_COOKIE")

        if self._fernet is not None:
            try:
                payload = self._fernet.decrypt(payload.encode("ascii")).decode("utf-8")
            except (InvalidToken, UnicodeError) as exc:
                raise InvalidCookieException(f"Value for '{name}' failed decryption", code="DECRYPTION_FAILED") from exc

        try:
            return json.loads(payload)
        except ValueError as exc:
            raise InvalidCookieException(f"Value for '{name}' is malformed", code="INVALID_COOKIE") from exc


def codecs_from_pairs(*keys: bytes | str | None, max_age: int = DEFAULT_MAX_AGE) -> list[SecureCookieCodec]:
    """Build a codec chain from alternating hash and block keys.

    ``codecs_from_pairs(new_hash, new_block, old_hash, old_block)`` gives a
    two-codec chain. A trailing hash key without a block key, or a ``None``
    block key, yields a signing-only codec.
    """
    return [
        SecureCookieCodec(keys[i], keys[i + 1] if i + 1 < len(keys) else None, max_age=max_age)
        for i in range(0, len(keys), 2)
    ]


def encode_multi(name: str, value: Any, codecs: Sequence[SecureCookieCodec]) -> str:
    """Encode with the primary (first) codec of the chain."""
    if not codecs:
        raise EncodingException("No codecs configured", code="MISSING_KEYS")
    return codecs[0].encode(name, value)


def decode_multi(name: str, value: str, codecs: Sequence[SecureCookieCodec]) -> Any:
    """Decode with the first codec of the chain that verifies *value*.

    Raises:
        InvalidCookieException: If no codec accepts the value. The error of
            each codec is listed in ``context["errors"]``.
    """
    errors: list[str] = []
    for codec in codecs:
        try:
            return codec.decode(name, value)
        except InvalidCookieException as exc:
            errors.append(str(exc))
    raise InvalidCookieException(
        f"No configured key could verify the value for '{name}'",
        code="INVALID_COOKIE",
        context={"errors": errors},
    )
