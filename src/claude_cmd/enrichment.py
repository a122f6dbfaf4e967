from __future__ import annotations

import asyncio

from claude_cmd.comparison import ManifestComparator
from claude_cmd.constants import DEFAULT_LANGUAGE
from claude_cmd.core.exceptions import CommandNotFoundError, CommandServiceError
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.namespace import NamespaceParser
from claude_cmd.repository.local import LocalRepository, ScanEntry
from claude_cmd.repository.remote import RemoteRepository
from claude_cmd.types import (
    SOURCE_ORDER,
    Command,
    CommandSource,
    EnrichedCommand,
    InstallationStatus,
)

logger = get_logger(__name__)


class EnrichmentResolver:
    """
    Merges the repository and local views of a command.

    A local copy is authoritative when one exists (personal before project);
    otherwise the repository version is. Names are matched in their
    colon-separated form, so ``frontend/component`` finds ``frontend:component``.
    """

    def __init__(
        self,
        remote: RemoteRepository,
        local: LocalRepository,
        namespaces: NamespaceParser,
        comparator: ManifestComparator,
    ) -> None:
        self._remote = remote
        self._local = local
        self._namespaces = namespaces
        self._comparator = comparator

    async def get_enhanced_command_info(
        self,
        name: str,
        language: str = DEFAULT_LANGUAGE,
        *,
        force_refresh: bool = False,
    ) -> EnrichedCommand:
        if not isinstance(name, str) or not name.strip():
            raise CommandServiceError(
                "Command name is required", "get_enhanced_command_info", language
            )

        target = self._namespaces.normalize(name)
        repository_command, local_entries = await asyncio.gather(
            self._repository_command(target, language, force_refresh),
            self._local_entries(target),
        )

        available: set[CommandSource] = {entry.location for entry in local_entries}
        if repository_command is not None:
            available.add("repository")
        available_in_sources = tuple(source for source in SOURCE_ORDER if source in available)

        effective_entry = local_entries[0] if local_entries else None
        if effective_entry is not None and effective_entry.command is not None:
            base_command: Command = effective_entry.command
            source: CommandSource = effective_entry.location
        elif repository_command is not None:
            base_command = repository_command
            source = "repository"
        else:
            raise CommandNotFoundError(name, language)

        installation_status = None
        if repository_command is not None:
            installation_status = self._installation_status(repository_command, effective_entry)

        logger.debug(
            "Resolved command",
            data={"command": base_command.name, "source": source, "sources": ",".join(available_in_sources)},
        )
        return EnrichedCommand(
            **base_command.model_dump(),
            source=source,
            available_in_sources=available_in_sources,
            installation_status=installation_status,
        )

    def _installation_status(
        self, repository_command: Command, entry: ScanEntry | None
    ) -> InstallationStatus:
        if entry is None or entry.command is None:
            return InstallationStatus(is_installed=False)
        return InstallationStatus(
            is_installed=True,
            install_location=entry.location,
            install_path=str(entry.path),
            has_local_changes=self._comparator.has_local_changes(entry.command, repository_command),
        )

    async def _repository_command(
        self, target: str, language: str, force_refresh: bool
    ) -> Command | None:
        manifest = await self._remote.get_manifest(language, force_refresh=force_refresh)
        exact = manifest.find(target)
        if exact is not None:
            return exact
        for command in manifest.commands:
            if self._namespaces.normalize(command.name) == target:
                return command
        logger.debug("Command not in repository manifest", data={"command": target, "language": language})
        return None

    async def _local_entries(self, target: str) -> list[ScanEntry]:
        entries = await self._local.scan_entries()
        return [
            entry
            for entry in entries
            if entry.command is not None and self._namespaces.normalize(entry.command.name) == target
        ]
