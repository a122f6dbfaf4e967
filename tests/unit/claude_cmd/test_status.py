import json
from pathlib import Path

import pytest

from claude_cmd.app import create_services
from claude_cmd.config import Settings


@pytest.fixture
def blocker(tmp_path: Path) -> Path:
    path = tmp_path / "blocker"
    path.write_text("not a directory", encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_fresh_system_is_healthy(services, personal_root: Path, project_root: Path) -> None:
    status = await services.status.get_system_status()

    assert status.cache == ()
    assert [(info.kind, info.path, info.exists, info.command_count) for info in status.installations] == [
        ("personal", personal_root, False, 0),
        ("project", project_root, False, 0),
    ]
    assert status.health.status == "healthy"
    assert status.health.cache_accessible
    assert status.health.installation_possible
    assert status.health.messages == ()
    assert not personal_root.exists()


@pytest.mark.asyncio
async def test_cached_manifests_are_reported_by_language(services, fake_clock) -> None:
    await services.remote.get_manifest("fr")
    await services.remote.get_manifest("en")
    fake_clock.advance(90_000)

    status = await services.status.get_system_status()

    assert [info.language for info in status.cache] == ["en", "fr"]
    english = status.cache[0]
    assert english.exists
    assert not english.is_expired
    assert english.age_ms == 90_000
    assert english.command_count == 3
    assert english.size_bytes == english.path.stat().st_size
    assert status.valid_cache_count == 2

    fake_clock.advance(services.cache.ttl_ms)
    expired = await services.status.get_system_status()
    assert all(info.is_expired for info in expired.cache)
    assert expired.valid_cache_count == 0


@pytest.mark.asyncio
async def test_cached_command_files_are_not_languages(services) -> None:
    await services.remote.get_command("debug-help", "en")

    status = await services.status.get_system_status()

    assert [info.language for info in status.cache] == ["en"]


@pytest.mark.asyncio
async def test_corrupt_manifest_entry_is_listed_as_missing(services) -> None:
    services.cache.directory.mkdir(parents=True)
    services.cache.path_for("manifest-de").write_text("{broken", encoding="utf-8")

    status = await services.status.get_system_status()

    (german,) = status.cache
    assert german.language == "de"
    assert not german.exists
    assert german.command_count is None


@pytest.mark.asyncio
async def test_installed_commands_are_counted(
    services, personal_root: Path, project_root: Path, command_writer
) -> None:
    await services.installer.install_command("frontend:component")
    command_writer(project_root, "scratch.md", "---\ndescription: Scratch\n---\nNotes\n")
    command_writer(project_root, "tools/lint.md", "---\ndescription: Lint\n---\nRun it\n")

    status = await services.status.get_system_status()

    personal, project = status.installations
    assert (personal.exists, personal.writable, personal.command_count) == (True, True, 1)
    assert (project.exists, project.writable, project.command_count) == (True, True, 2)
    assert status.installed_command_count == 3
    assert status.writable_installation_count == 2


@pytest.mark.asyncio
async def test_inaccessible_cache_degrades_health(blocker: Path, home_dir: Path, project_dir: Path) -> None:
    services = create_services(
        Settings(cache={"directory": str(blocker / "cache")}),
        home=home_dir,
        cwd=project_dir,
    )
    async with services:
        status = await services.status.get_system_status()

    assert status.health.status == "degraded"
    assert not status.health.cache_accessible
    assert status.health.installation_possible
    assert status.health.messages == (f"Cache directory not accessible: {blocker / 'cache'}",)


@pytest.mark.asyncio
async def test_nothing_usable_is_an_error(blocker: Path) -> None:
    services = create_services(
        Settings(
            cache={"directory": str(blocker / "cache")},
            directories={"personal": str(blocker / "personal"), "project": str(blocker / "project")},
        )
    )
    async with services:
        status = await services.status.get_system_status()

    assert status.health.status == "error"
    assert not status.health.installation_possible
    assert "No writable installation directories found" in status.health.messages
    assert status.writable_installation_count == 0


@pytest.mark.asyncio
async def test_to_dict_is_json_ready(services, fake_clock) -> None:
    await services.remote.get_manifest("en")

    payload = json.loads(json.dumps((await services.status.get_system_status()).to_dict()))

    assert payload["health"] == {
        "cache_accessible": True,
        "installation_possible": True,
        "status": "healthy",
        "messages": [],
    }
    assert payload["cache"][0]["language"] == "en"
    assert payload["cache"][0]["path"].endswith("manifest-en.json")
    assert [entry["kind"] for entry in payload["installations"]] == ["personal", "project"]
    assert payload["timestamp"].startswith("2023-11-14T")
