from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from claude_cmd.cache import CacheStore
from claude_cmd.comparison import ManifestComparator
from claude_cmd.constants import DEFAULT_LANGUAGE
from claude_cmd.core.exceptions import CommandNotFoundError, CommandServiceError
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.namespace import NamespaceParser
from claude_cmd.repository.remote import RemoteRepository
from claude_cmd.types import Command, Manifest, ManifestComparisonResult

logger = get_logger(__name__)

_EMPTY_MANIFEST = Manifest(commands=())


@dataclass(frozen=True)
class CacheUpdateResult:
    language: str
    timestamp: datetime
    command_count: int
    has_changes: bool
    added: int
    removed: int
    modified: int
    comparison: ManifestComparisonResult


class CommandCatalog:
    """Read-side queries over the repository manifest, plus cache refresh."""

    def __init__(
        self,
        remote: RemoteRepository,
        cache: CacheStore,
        comparator: ManifestComparator,
        namespaces: NamespaceParser | None = None,
    ) -> None:
        self._remote = remote
        self._cache = cache
        self._comparator = comparator
        self._namespaces = namespaces or NamespaceParser()

    async def list_commands(
        self, language: str = DEFAULT_LANGUAGE, *, force_refresh: bool = False
    ) -> list[Command]:
        manifest = await self._remote.get_manifest(language, force_refresh=force_refresh)
        return list(manifest.commands)

    async def search_commands(
        self, query: str, language: str = DEFAULT_LANGUAGE, *, force_refresh: bool = False
    ) -> list[Command]:
        """Case-insensitive substring match over names and descriptions."""
        if not isinstance(query, str) or not query.strip():
            raise CommandServiceError("Search query is required", "search_commands", language)
        needle = query.strip().lower()
        commands = await self.list_commands(language, force_refresh=force_refresh)
        return [
            command
            for command in commands
            if needle in command.name.lower() or needle in command.description.lower()
        ]

    async def get_command_info(self, name: str, language: str = DEFAULT_LANGUAGE) -> Command:
        if not isinstance(name, str) or not name.strip():
            raise CommandServiceError("Command name is required", "get_command_info", language)
        manifest = await self._remote.get_manifest(language)
        command = manifest.find(name)
        if command is not None:
            return command

        target = self._namespaces.normalize(name)
        for candidate in manifest.commands:
            if self._namespaces.normalize(candidate.name) == target:
                return candidate
        raise CommandNotFoundError(name, language)

    async def update_cache(self, language: str = DEFAULT_LANGUAGE) -> CacheUpdateResult:
        """
        Re-download the manifest and report what changed since the cached copy.

        The previous manifest is read regardless of its age; when there is none,
        every command counts as added.
        """
        previous = self._remote.peek_manifest(language)
        current = await self._remote.get_manifest(language, force_refresh=True)
        comparison = self._comparator.compare_manifests(previous or _EMPTY_MANIFEST, current)
        summary = comparison.summary
        logger.info(
            "Manifest refreshed",
            data={
                "language": language,
                "commands": len(current.commands),
                "added": summary.added,
                "removed": summary.removed,
                "modified": summary.modified,
            },
        )
        return CacheUpdateResult(
            language=language.strip().lower(),
            timestamp=datetime.now(timezone.utc),
            command_count=len(current.commands),
            has_changes=summary.has_changes,
            added=summary.added,
            removed=summary.removed,
            modified=summary.modified,
            comparison=comparison,
        )

    def clear_cache(self, language: str | None = None) -> int:
        """Drop cached manifests and command bodies; all languages when ``language`` is None."""
        if language is None:
            removed = self._cache.clear_all()
        else:
            manifest_key = self._remote.manifest_key(language.strip().lower())
            command_prefix = self._cache.build_key("command", language.strip().lower()) + "-"
            removed = sum(
                1
                for key in self._cache.list_keys()
                if (key == manifest_key or key.startswith(command_prefix)) and self._cache.clear(key)
            )
        logger.info("Cache cleared", data={"language": language or "all", "entries": removed})
        return removed
