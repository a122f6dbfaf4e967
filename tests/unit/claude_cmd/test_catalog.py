import json

import pytest

from claude_cmd.catalog import CommandCatalog
from claude_cmd.comparison import ManifestComparator
from claude_cmd.core.exceptions import CommandNotFoundError, CommandServiceError
from claude_cmd.namespace import NamespaceParser


@pytest.fixture
def catalog(remote, cache_store) -> CommandCatalog:
    return CommandCatalog(remote, cache_store, ManifestComparator(), NamespaceParser())


@pytest.mark.asyncio
async def test_list_commands(catalog: CommandCatalog) -> None:
    commands = await catalog.list_commands("en")
    assert [command.name for command in commands] == ["debug-help", "frontend:component", "code-review"]

    french = await catalog.list_commands("FR")
    assert [command.name for command in french] == ["aide-debug"]


@pytest.mark.asyncio
async def test_search_matches_name_and_description(catalog: CommandCatalog) -> None:
    assert [command.name for command in await catalog.search_commands("REACT")] == ["frontend:component"]
    assert [command.name for command in await catalog.search_commands("review")] == ["code-review"]
    assert await catalog.search_commands("nothing-like-this") == []


@pytest.mark.asyncio
async def test_search_requires_query(catalog: CommandCatalog) -> None:
    with pytest.raises(CommandServiceError) as exc_info:
        await catalog.search_commands("   ", "fr")
    assert exc_info.value.operation == "search_commands"
    assert exc_info.value.language == "fr"


@pytest.mark.asyncio
async def test_get_command_info(catalog: CommandCatalog) -> None:
    assert (await catalog.get_command_info("frontend:component")).namespace == "frontend"
    assert (await catalog.get_command_info("frontend/component")).name == "frontend:component"
    with pytest.raises(CommandNotFoundError):
        await catalog.get_command_info("ghost")


@pytest.mark.asyncio
async def test_update_cache_without_previous_manifest(catalog: CommandCatalog, serve_repository, urls) -> None:
    result = await catalog.update_cache("en")

    assert result.language == "en"
    assert result.command_count == 3
    assert result.has_changes
    assert (result.added, result.removed, result.modified) == (3, 0, 0)
    assert serve_repository.count(urls.manifest("en")) == 1


@pytest.mark.asyncio
async def test_update_cache_reports_changes(
    catalog: CommandCatalog, serve_repository, urls, sample_manifest
) -> None:
    await catalog.list_commands("en")

    sample_manifest["commands"][0]["description"] = "Sharper debugging help"
    sample_manifest["commands"].pop()
    sample_manifest["commands"].append(
        {"name": "deploy", "description": "Ship it", "file": "deploy.md", "allowed-tools": "Bash"}
    )
    serve_repository.add(urls.manifest("en"), json.dumps(sample_manifest))

    result = await catalog.update_cache("en")

    assert (result.added, result.removed, result.modified) == (1, 1, 1)
    assert [change.name for change in result.comparison.changes] == ["debug-help", "deploy", "code-review"]
    assert serve_repository.count(urls.manifest("en")) == 2


@pytest.mark.asyncio
async def test_update_cache_without_changes(catalog: CommandCatalog) -> None:
    await catalog.list_commands("en")
    result = await catalog.update_cache("en")
    assert not result.has_changes
    assert result.comparison.changes == ()


@pytest.mark.asyncio
async def test_clear_cache_for_one_language(catalog: CommandCatalog, remote, cache_store) -> None:
    await remote.get_command("frontend:component", "en")
    await remote.get_manifest("fr")
    assert cache_store.list_keys() == ["command-en-frontend-component", "manifest-en", "manifest-fr"]

    assert catalog.clear_cache("en") == 2
    assert cache_store.list_keys() == ["manifest-fr"]


@pytest.mark.asyncio
async def test_clear_all(catalog: CommandCatalog, remote, cache_store) -> None:
    await remote.get_manifest("en")
    await remote.get_manifest("fr")
    assert catalog.clear_cache() == 2
    assert cache_store.list_keys() == []
    assert catalog.clear_cache() == 0
