"""
Composition root.

:func:`create_services` builds the whole object graph once from a
:class:`Settings` instance. Nothing below it reads global settings, so tests
construct as many independent graphs as they like.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from claude_cmd.cache import CacheStore, Clock
from claude_cmd.catalog import CommandCatalog
from claude_cmd.comparison import ManifestComparator
from claude_cmd.config import Settings
from claude_cmd.directories import DirectoryDetector
from claude_cmd.enrichment import EnrichmentResolver
from claude_cmd.http_client import HTTPClient, HttpxClient
from claude_cmd.installation import InstallationManager
from claude_cmd.interaction import Confirmer, ConsoleConfirmer
from claude_cmd.language import LanguageDetector
from claude_cmd.namespace import NamespaceParser
from claude_cmd.parser import CommandParser
from claude_cmd.repository.local import LocalRepository
from claude_cmd.repository.remote import RemoteRepository
from claude_cmd.status import StatusService


@dataclass
class CommandServices:
    settings: Settings
    http_client: HTTPClient
    cache: CacheStore
    namespaces: NamespaceParser
    parser: CommandParser
    directories: DirectoryDetector
    remote: RemoteRepository
    local: LocalRepository
    comparator: ManifestComparator
    enrichment: EnrichmentResolver
    installer: InstallationManager
    catalog: CommandCatalog
    languages: LanguageDetector
    status: StatusService

    def resolve_language(self, cli_flag: str | None = None) -> str:
        return self.languages.detect_from_environment(
            cli_flag=cli_flag, config_language=self.settings.language
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "CommandServices":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_services(
    settings: Settings,
    *,
    http_client: HTTPClient | None = None,
    confirmer: Confirmer | None = None,
    home: Path | None = None,
    cwd: Path | None = None,
    clock: Clock | None = None,
    language_detector: LanguageDetector | None = None,
) -> CommandServices:
    client = http_client or HttpxClient(timeout=settings.repository.timeout_seconds)
    cache = CacheStore(settings.cache.path, ttl_ms=settings.cache.ttl_ms, clock=clock)
    namespaces = NamespaceParser()
    parser = CommandParser(namespaces)

    overrides = settings.directories
    directories = DirectoryDetector(
        home=home,
        cwd=cwd,
        personal=Path(overrides.personal).expanduser() if overrides.personal else None,
        project=Path(overrides.project).expanduser() if overrides.project else None,
    )

    remote = RemoteRepository(client, cache, base_url=settings.repository.base_url)
    local = LocalRepository(directories, parser)
    comparator = ManifestComparator()
    installer = InstallationManager(
        remote,
        directories,
        namespaces,
        parser,
        local,
        confirmer or ConsoleConfirmer(),
    )

    return CommandServices(
        settings=settings,
        http_client=client,
        cache=cache,
        namespaces=namespaces,
        parser=parser,
        directories=directories,
        remote=remote,
        local=local,
        comparator=comparator,
        enrichment=EnrichmentResolver(remote, local, namespaces, comparator),
        installer=installer,
        catalog=CommandCatalog(remote, cache, comparator, namespaces),
        languages=language_detector or LanguageDetector(),
        status=StatusService(cache, directories, installer, clock=clock),
    )
