"""
Read-only health report for the cache and the two commands roots.

:meth:`StatusService.get_system_status` never fetches anything: cache
details come from the manifest entries already on disk, installation
details from the directory detector and the installation manager.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from claude_cmd.cache import CacheStore, Clock, now_ms
from claude_cmd.core.exceptions import StatusError
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.directories import DirectoryDetector
from claude_cmd.installation import InstallationManager
from claude_cmd.repository.remote import MANIFEST_KEY_PATTERN, is_valid_manifest_payload
from claude_cmd.types import InstallLocation

logger = get_logger(__name__)

HealthState = Literal["healthy", "degraded", "error"]

_WRITE_CHECK_FILENAME = ".write-check"


@dataclass(frozen=True)
class CacheInfo:
    language: str
    path: Path
    exists: bool
    is_expired: bool
    age_ms: int | None = None
    size_bytes: int | None = None
    command_count: int | None = None


@dataclass(frozen=True)
class InstallationInfo:
    kind: InstallLocation
    path: Path
    exists: bool
    writable: bool
    command_count: int


@dataclass(frozen=True)
class SystemHealth:
    cache_accessible: bool
    installation_possible: bool
    status: HealthState
    messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class SystemStatus:
    timestamp: datetime
    cache: tuple[CacheInfo, ...]
    installations: tuple[InstallationInfo, ...]
    health: SystemHealth

    @property
    def valid_cache_count(self) -> int:
        return sum(1 for info in self.cache if info.exists and not info.is_expired)

    @property
    def writable_installation_count(self) -> int:
        return sum(1 for info in self.installations if info.exists and info.writable)

    @property
    def installed_command_count(self) -> int:
        return sum(info.command_count for info in self.installations)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form: paths as strings, the timestamp in ISO 8601."""
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        for entry in payload["cache"] + payload["installations"]:
            entry["path"] = str(entry["path"])
        payload["health"]["messages"] = list(payload["health"]["messages"])
        return payload


class StatusService:
    def __init__(
        self,
        cache: CacheStore,
        directories: DirectoryDetector,
        installer: InstallationManager,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._cache = cache
        self._directories = directories
        self._installer = installer
        self._clock = clock or now_ms

    async def get_system_status(self) -> SystemStatus:
        """
        Gather cache, installation and health information concurrently.

        Raises:
            StatusError: the installation roots could not be inspected
        """
        now = self._clock()
        try:
            cache, installations, cache_accessible = await asyncio.gather(
                asyncio.to_thread(self._cache_status, now),
                self._installation_status(),
                asyncio.to_thread(self._cache_accessible),
            )
        except OSError as exc:
            raise StatusError(f"Failed to collect system status: {exc}", exc) from exc

        health = self._health(cache_accessible, installations)
        logger.debug(
            "Collected system status",
            data={"status": health.status, "cached_languages": len(cache), "messages": list(health.messages)},
        )
        return SystemStatus(
            timestamp=datetime.fromtimestamp(now / 1000, tz=timezone.utc),
            cache=cache,
            installations=installations,
            health=health,
        )

    def _cache_status(self, now: int) -> tuple[CacheInfo, ...]:
        languages = sorted(
            match.group(1)
            for match in (MANIFEST_KEY_PATTERN.match(key) for key in self._cache.list_keys())
            if match
        )
        return tuple(self._cache_info(language, now) for language in languages)

    def _cache_info(self, language: str, now: int) -> CacheInfo:
        key = self._cache.build_key("manifest", language)
        path = self._cache.path_for(key)
        entry = self._cache.peek(key, is_valid_manifest_payload)
        if entry is None:
            return CacheInfo(language=language, path=path, exists=False, is_expired=True)

        try:
            size = path.stat().st_size
        except OSError:
            size = None
        return CacheInfo(
            language=language,
            path=path,
            exists=True,
            is_expired=not entry.is_valid(now, self._cache.ttl_ms),
            age_ms=entry.age_ms(now),
            size_bytes=size,
            command_count=len(entry.data["commands"]),
        )

    async def _installation_status(self) -> tuple[InstallationInfo, ...]:
        summary = await self._installer.get_installation_summary()
        counts = {"personal": summary.personal_count, "project": summary.project_count}
        return tuple(
            InstallationInfo(
                kind=descriptor.kind,
                path=descriptor.path,
                exists=descriptor.exists,
                writable=descriptor.writable,
                command_count=counts[descriptor.kind],
            )
            for descriptor in self._directories.get_directories()
        )

    def _cache_accessible(self) -> bool:
        directory = self._cache.directory
        check = directory / _WRITE_CHECK_FILENAME
        try:
            directory.mkdir(parents=True, exist_ok=True)
            check.write_text("", encoding="utf-8")
            check.unlink()
        except OSError as exc:
            logger.warning("Cache directory not accessible", data={"path": str(directory), "error": str(exc)})
            return False
        return True

    def _health(
        self, cache_accessible: bool, installations: tuple[InstallationInfo, ...]
    ) -> SystemHealth:
        messages: list[str] = []
        if not cache_accessible:
            messages.append(f"Cache directory not accessible: {self._cache.directory}")

        installation_possible = any(info.writable for info in installations)
        if not installation_possible:
            messages.append("No writable installation directories found")

        failures = (not cache_accessible) + (not installation_possible)
        status: HealthState = ("healthy", "degraded", "error")[failures]
        return SystemHealth(
            cache_accessible=cache_accessible,
            installation_possible=installation_possible,
            status=status,
            messages=tuple(messages),
        )
