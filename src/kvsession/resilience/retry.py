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
"""Bounded retry with linear backoff for transient backing-collection failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import TypeVar

from kvsession.kernel.exceptions import ConfigurationException, TransientStoreException

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait in between.

    The wait after failed attempt *n* (1-based) is ``n * base_backoff``, so the
    worst case spends ``base_backoff * max_attempts * (max_attempts - 1) / 2``
    asleep before giving up.

    Args:
        max_attempts: Total attempts, including the first. At least 1.
        base_backoff: Unit of the linear backoff schedule.
    """

    max_attempts: int = 3
    base_backoff: timedelta = timedelta(milliseconds=100)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationException(
                f"max_attempts must be at least 1, got {self.max_attempts}",
                code="INVALID_RETRY_POLICY",
            )
        if self.base_backoff < timedelta(0):
            raise ConfigurationException(
                f"base_backoff must not be negative, got {self.base_backoff}",
                code="INVALID_RETRY_POLICY",
            )

    def backoff(self, attempt: int) -> float:
        """Seconds to sleep after failed attempt number *attempt*."""
        return attempt * self.base_backoff.total_seconds()


class RetryExecutor:
    """Runs one remote operation, retrying only on transient failures.

    Any exception outside ``retry_on`` propagates after a single invocation.
    When every attempt fails transiently, the last transient exception is
    raised; :class:`TransientStoreException` is a ``StoreException``, so the
    caller sees a store error once the budget is spent.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        retry_on: tuple[type[Exception], ...] = (TransientStoreException,),
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._retry_on = retry_on

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Invoke *operation* until it succeeds, fails hard, or the budget runs out."""
        attempt = 1
        while True:
            try:
                return await operation()
            except self._retry_on as exc:
                if attempt >= self._policy.max_attempts:
                    _logger.warning("Giving up after %d transient failures: %s", attempt, exc)
                    raise
                delay = self._policy.backoff(attempt)
                _logger.debug("Transient failure on attempt %d, retrying in %.3fs: %s", attempt, delay, exc)
                await asyncio.sleep(delay)
                attempt += 1
