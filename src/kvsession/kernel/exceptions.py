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
"""Exception hierarchy for kvsession.

All errors raised by the session store inherit from KVSessionException so
callers can handle every failure with a single ``except`` clause, or pick a
category:

- ConfigurationException: invalid construction parameters
- SecurityException: cookie authentication failures
- InfrastructureException: backing collection failures (connect, read, write)
- EncodingException: values or identifiers that cannot be encoded
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class KVSessionException(Exception):
    """Base exception for all kvsession errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "INVALID_MAX_AGE").
        context: Arbitrary key-value pairs for error context and debugging.

    Attributes:
        session: When a read path degrades to a blank session, the usable
            blank session is attached here so the caller can carry on.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}
        self.session: Any = None


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(KVSessionException):
    """Construction parameters are invalid (non-positive max age, no keys...)."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(KVSessionException):
    """Authentication failures."""


class InvalidCookieException(SecurityException):
    """A cookie or stored value failed signature, decryption or expiry checks."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(KVSessionException):
    """Backing collection failures."""


class StoreConnectionException(InfrastructureException):
    """The backing collection could not be reached at startup."""


class StoreException(InfrastructureException):
    """A read, write or delete against the backing collection failed."""


class TransientStoreException(StoreException):
    """The backing collection timed out; the operation is safe to retry."""


class SessionDecodeException(StoreException):
    """A non-empty stored payload could not be decoded into session values."""


# =============================================================================
# Encoding Exceptions
# =============================================================================


class EncodingException(KVSessionException):
    """Session values or the session ID could not be encoded."""
