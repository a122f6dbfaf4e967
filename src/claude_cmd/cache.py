"""
TTL cache for JSON-serializable payloads.

Each key maps to one file ``{directory}/{key}.json`` holding::

    {"data": <payload>, "timestamp": <epoch millis>, "version": "1.0"}

The store never raises for cache trouble: unreadable, corrupt or invalid
entries are logged and treated as misses, and failed writes are logged and
dropped so the freshly fetched value is still returned.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, TypeVar

from claude_cmd.constants import (
    CACHE_FORMAT_VERSION,
    DEFAULT_CACHE_TTL_SECONDS,
    MAX_CACHE_KEY_COMPONENT_LENGTH,
)
from claude_cmd.core.exceptions import InvalidCacheKeyError
from claude_cmd.core.files import atomic_write_text
from claude_cmd.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], int]
"""Returns the current time in epoch milliseconds."""

CACHE_FILE_SUFFIX = ".json"

_UNSAFE_KEY_CHARS = re.compile(r"[./\\:\x00]")


def now_ms() -> int:
    return int(time.time() * 1000)


def sanitize_key_component(component: str) -> str:
    """
    Make ``component`` safe to embed in a cache file name.

    Path separators, dots (and therefore ``..``), colons and null bytes become
    ``-``. An empty result is rejected because it would collide with other
    keys, as is anything longer than 255 characters.
    """
    if not isinstance(component, str) or not component:
        raise InvalidCacheKeyError(str(component), "must be a non-empty string")

    sanitized = _UNSAFE_KEY_CHARS.sub("-", component).strip()
    if not sanitized:
        raise InvalidCacheKeyError(component, "empty after sanitization")
    if len(sanitized) > MAX_CACHE_KEY_COMPONENT_LENGTH:
        raise InvalidCacheKeyError(
            component, f"too long (max {MAX_CACHE_KEY_COMPONENT_LENGTH} characters)"
        )
    return sanitized


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    timestamp: int
    format_version: str = CACHE_FORMAT_VERSION

    def age_ms(self, now: int) -> int:
        return now - self.timestamp

    def is_valid(self, now: int, ttl_ms: int) -> bool:
        return self.age_ms(now) < ttl_ms


class CacheStore:
    """File-backed TTL cache keyed by sanitized names."""

    def __init__(
        self,
        directory: Path,
        *,
        ttl_ms: int = DEFAULT_CACHE_TTL_SECONDS * 1000,
        clock: Clock | None = None,
    ) -> None:
        self._directory = directory
        self._ttl_ms = ttl_ms
        self._clock = clock or now_ms

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def build_key(self, *components: str) -> str:
        if not components:
            raise InvalidCacheKeyError("", "at least one key component is required")
        return "-".join(sanitize_key_component(component) for component in components)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{sanitize_key_component(key)}{CACHE_FILE_SUFFIX}"

    async def get(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        validate: Callable[[Any], bool],
        *,
        force_refresh: bool = False,
    ) -> T:
        """
        Return the cached payload for ``key`` or fetch, persist and return a fresh one.

        Args:
            key: Cache key, normally produced by :meth:`build_key`
            fetch: Coroutine factory producing the fresh payload
            validate: Structural check applied to cached payloads before use
            force_refresh: Skip the cache read entirely

        Raises:
            Whatever ``fetch`` raises; cache failures never propagate.
        """
        if not force_refresh:
            entry = self.peek(key, validate)
            if entry is not None:
                now = self._clock()
                age = entry.age_ms(now)
                if entry.is_valid(now, self._ttl_ms):
                    logger.debug("Cache hit", data={"key": key, "age_ms": age, "ttl_ms": self._ttl_ms})
                    return entry.data
                logger.debug("Cache expired", data={"key": key, "age_ms": age, "ttl_ms": self._ttl_ms})

        logger.debug("Fetching fresh data", data={"key": key})
        data = await fetch()
        self.write(key, data)
        return data

    def peek(self, key: str, validate: Callable[[Any], bool] | None = None) -> CacheEntry[Any] | None:
        """Read an entry without judging its age; ``None`` for missing or bad entries."""
        path = self.path_for(key)
        if not path.is_file():
            logger.debug("Cache miss", data={"key": key, "reason": "not found"})
            return None

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Cache entry unreadable", data={"key": key, "error": str(exc)})
            return None

        timestamp = payload.get("timestamp") if isinstance(payload, dict) else None
        if (
            not isinstance(payload, dict)
            or "data" not in payload
            or isinstance(timestamp, bool)
            or not isinstance(timestamp, (int, float))
        ):
            logger.warning("Cache entry corrupted", data={"key": key, "error": "invalid structure"})
            return None

        if validate is not None:
            try:
                valid = bool(validate(payload["data"]))
            except Exception as exc:  # noqa: BLE001
                logger.warning("Cache entry validator failed", data={"key": key, "error": str(exc)})
                valid = False
            if not valid:
                logger.warning("Cache entry corrupted", data={"key": key, "error": "payload rejected"})
                return None

        return CacheEntry(
            data=payload["data"],
            timestamp=int(timestamp),
            format_version=str(payload.get("version", CACHE_FORMAT_VERSION)),
        )

    def write(self, key: str, data: Any) -> bool:
        """Persist ``data`` under ``key``; returns False (after logging) on failure."""
        try:
            path = self.path_for(key)
            text = json.dumps(
                {"data": data, "timestamp": self._clock(), "version": CACHE_FORMAT_VERSION},
                ensure_ascii=False,
                indent=2,
            )
            atomic_write_text(path, text)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Cache write failed", data={"key": key, "error": str(exc)})
            return False
        logger.debug("Cache written", data={"key": key})
        return True

    def clear(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Cache entry could not be removed", data={"key": key, "error": str(exc)})
            return False
        return True

    def clear_all(self) -> int:
        removed = 0
        for key in self.list_keys():
            if self.clear(key):
                removed += 1
        return removed

    def list_keys(self) -> list[str]:
        try:
            entries = sorted(self._directory.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as exc:
            logger.debug("Cache directory unreadable", data={"error": str(exc)})
            return []
        return [
            entry.name[: -len(CACHE_FILE_SUFFIX)]
            for entry in entries
            if entry.is_file() and entry.name.endswith(CACHE_FILE_SUFFIX)
            and not entry.name.startswith(".")
        ]
