from pathlib import Path

import pytest

from claude_cmd.core.exceptions import CommandNotFoundError
from claude_cmd.repository import Repository
from claude_cmd.repository.local import LocalRepository

HELPER = "---\ndescription: Personal helper\nallowed-tools: Read\n---\nPersonal body\n"
TEAM_HELPER = "---\ndescription: Team helper\nallowed-tools: Read\n---\nTeam body\n"


@pytest.mark.asyncio
async def test_empty_when_no_directories(local: LocalRepository) -> None:
    manifest = await local.get_manifest()
    assert manifest.commands == ()
    assert manifest.version == "1.0.0"


@pytest.mark.asyncio
async def test_personal_wins_over_project(
    local: LocalRepository, personal_root: Path, project_root: Path, command_writer
) -> None:
    command_writer(personal_root, "helper.md", HELPER)
    command_writer(project_root, "helper.md", TEAM_HELPER)
    command_writer(project_root, "team-only.md", "Plain body")

    manifest = await local.get_manifest("en")

    assert [command.name for command in manifest.commands] == ["helper", "team-only"]
    assert manifest.find("helper").description == "Personal helper"
    assert await local.get_command("helper") == HELPER


@pytest.mark.asyncio
async def test_nested_directories_become_namespaces(
    local: LocalRepository, project_root: Path, command_writer
) -> None:
    command_writer(project_root, "frontend/react/hooks.md", "Plain body")

    manifest = await local.get_manifest()
    command = manifest.find("frontend:react:hooks")
    assert command is not None
    assert command.namespace == "frontend:react"
    assert command.file == "frontend/react/hooks.md"


@pytest.mark.asyncio
async def test_malformed_files_are_skipped(
    local: LocalRepository, personal_root: Path, command_writer
) -> None:
    command_writer(personal_root, "good.md", HELPER)
    command_writer(personal_root, "broken.md", "---\ndescription: [oops\n---\nbody")
    command_writer(personal_root, "no-description.md", "---\nallowed-tools: Read\n---\nbody")

    entries = await local.scan_entries()
    skipped = sorted(entry.relative_path for entry in entries if not entry.ok)
    assert skipped == ["broken.md", "no-description.md"]
    assert all(entry.skip_reason for entry in entries if not entry.ok)

    manifest = await local.get_manifest()
    assert [command.name for command in manifest.commands] == ["good"]


@pytest.mark.asyncio
async def test_find_all_reports_every_location(
    local: LocalRepository, personal_root: Path, project_root: Path, command_writer
) -> None:
    command_writer(personal_root, "helper.md", HELPER)
    command_writer(project_root, "helper.md", TEAM_HELPER)

    matches = await local.find_all("helper")
    assert [entry.location for entry in matches] == ["personal", "project"]
    assert (await local.find("helper")).location == "personal"
    assert await local.find("missing") is None


@pytest.mark.asyncio
async def test_get_command_unknown(local: LocalRepository) -> None:
    with pytest.raises(CommandNotFoundError) as exc_info:
        await local.get_command("ghost", "fr")
    assert exc_info.value.language == "fr"


@pytest.mark.asyncio
async def test_local_and_remote_share_the_repository_contract(
    local: LocalRepository, remote, personal_root: Path, command_writer
) -> None:
    command_writer(personal_root, "helper.md", HELPER)
    sources: list[Repository] = [remote, local]

    manifests = [await source.get_manifest("en") for source in sources]

    assert [len(manifest.commands) for manifest in manifests] == [3, 1]
    assert await local.get_command("helper", "en") == HELPER
