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
"""Configuration from YAML/TOML files and env vars, bound onto dataclasses."""

from __future__ import annotations

import dataclasses
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__kvsession_config_prefix__"

_ENV_PREFIX = "KVSESSION_"

_MAX_PLACEHOLDER_DEPTH = 10


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="kvsession.retry")
        @dataclass
        class RetryProperties:
            max_attempts: int = 3
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (KVSESSION_SECTION_KEY format)
    2. Configuration dict / file values
    3. Dataclass defaults
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Config file paths that were loaded, in merge order."""
        return list(self._loaded_sources)

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Load a YAML or TOML file plus any ``{stem}-{profile}{suffix}`` overlays.

        A missing base file yields an empty configuration; missing profile
        overlays are skipped. Later profiles override earlier ones.
        """
        base = Path(path)
        instance = cls()
        if not base.exists():
            return instance

        layers = [(base, str(base))]
        for profile in active_profiles or []:
            overlay = base.with_name(f"{base.stem}-{profile}{base.suffix}")
            if overlay.exists():
                layers.append((overlay, f"{overlay} (profile: {profile})"))

        for layer_path, label in layers:
            instance._data = _merge(instance._data, _read(layer_path))
            instance._loaded_sources.append(label)
        return instance

    @staticmethod
    def env_key(key: str) -> str:
        """Map a dot-notation key to its env var: kvsession.retry.max_attempts -> KVSESSION_RETRY_MAX_ATTEMPTS."""
        base = key.removeprefix("kvsession.")
        return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values containing ``${NAME}`` or ``${NAME:default}`` placeholders
        are resolved against the environment, then against other config keys.
        """
        override = os.environ.get(self.env_key(key))
        if override is not None:
            return override

        value = self._lookup(key)
        if value is None:
            return default
        return self._expand_all(value)

    def _expand_all(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._expand(value) if "${" in value else value
        if isinstance(value, dict):
            return {k: self._expand_all(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._expand_all(v) for v in value]
        return value

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _expand(self, value: str, depth: int = 0) -> str:
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Placeholders in '{value}' nest deeper than {_MAX_PLACEHOLDER_DEPTH} levels")

        def substitute(match: re.Match[str]) -> str:
            expression = match.group(1)
            name, has_default, fallback = expression.partition(":")
            if name in os.environ:
                return os.environ[name]
            referenced = self._lookup(name)
            if referenced is not None:
                text = str(referenced)
                return self._expand(text, depth + 1) if "${" in text else text
            if has_default:
                return fallback
            raise ValueError(f"Placeholder '${{{expression}}}' matches no env var or config key")

        return _PLACEHOLDER_RE.sub(substitute, value)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix as a dict."""
        current = self._lookup(prefix)
        return current if isinstance(current, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Bind configuration to a ``@config_properties`` dataclass.

        Each field is read through :meth:`get`, so env vars override file
        values field by field. String values are coerced to ``int``,
        ``float`` and ``bool`` fields.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            value = self.get(f"{prefix}.{field.name}")
            if value is None:
                continue
            expected_type = hints.get(field.name)
            if isinstance(value, str):
                if expected_type is int:
                    value = int(value)
                elif expected_type is float:
                    value = float(value)
                elif expected_type is bool:
                    value = value.lower() in ("true", "1", "yes")
            kwargs[field.name] = value

        return config_cls(**kwargs)


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge *override* onto *base*; nested mappings merge, everything else is replaced."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        result[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return result
