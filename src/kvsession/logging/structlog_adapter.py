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
"""StructlogAdapter: LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from kvsession.core.config import Config

_FORMATS = ("console", "json")


class StructlogAdapter:
    """Renders structlog events and stdlib ``logging`` records the same way.

    structlog loggers hand their event dicts to a
    :class:`~structlog.stdlib.ProcessorFormatter` on the root handler; plain
    ``logging.getLogger(...)`` records reach the same formatter and pass
    through the shared processors first, so both come out as console lines
    or as JSON.

    Config keys:
        ``kvsession.logging.level.root``: root level (default ``INFO``).
        ``kvsession.logging.level.<logger>``: per-logger levels.
        ``kvsession.logging.format``: ``console`` (default) or ``json``.
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("kvsession.logging.level"))
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = {name: str(level).upper() for name, level in levels.items()}

        fmt = str(config.get("kvsession.logging.format", "console")).lower()
        self._format = fmt if fmt in _FORMATS else "console"

        shared = self._shared_processors()
        structlog.configure(
            processors=[*shared, ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            ProcessorFormatter(
                foreign_pre_chain=shared,
                processors=[ProcessorFormatter.remove_processors_meta, self._renderer()],
            )
        )
        logging.basicConfig(
            handlers=[handler],
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )

        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    @staticmethod
    def _shared_processors() -> list[structlog.types.Processor]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]

    def _renderer(self) -> structlog.types.Processor:
        if self._format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer()
