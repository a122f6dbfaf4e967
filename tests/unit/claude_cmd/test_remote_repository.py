import json

import pytest

from claude_cmd.core.exceptions import (
    CommandContentError,
    CommandNotFoundError,
    HTTPNetworkError,
    HTTPTimeoutError,
    ManifestError,
)
from claude_cmd.repository.remote import (
    RemoteRepository,
    is_valid_manifest_payload,
    manifest_payload_problem,
)


@pytest.mark.asyncio
async def test_get_manifest_parses_and_normalizes(remote: RemoteRepository) -> None:
    manifest = await remote.get_manifest("en")

    assert manifest.version == "1.2.0"
    assert [command.name for command in manifest.commands] == [
        "debug-help",
        "frontend:component",
        "code-review",
    ]
    assert manifest.commands[0].allowed_tools == ("Read", "Grep")
    component = manifest.find("frontend:component")
    assert component is not None
    assert component.argument_hint == "<component-name>"
    assert component.namespace == "frontend"


@pytest.mark.asyncio
async def test_manifest_is_cached(remote: RemoteRepository, serve_repository, urls) -> None:
    await remote.get_manifest("en")
    await remote.get_manifest("en")
    assert serve_repository.count(urls.manifest("en")) == 1

    await remote.get_manifest("en", force_refresh=True)
    assert serve_repository.count(urls.manifest("en")) == 2


@pytest.mark.asyncio
async def test_manifest_cache_expires(remote: RemoteRepository, serve_repository, urls, fake_clock) -> None:
    await remote.get_manifest("en")
    fake_clock.advance(60 * 60 * 1000 + 1)
    await remote.get_manifest("en")
    assert serve_repository.count(urls.manifest("en")) == 2


@pytest.mark.asyncio
async def test_language_is_normalized(remote: RemoteRepository, serve_repository, urls) -> None:
    await remote.get_manifest(" EN ")
    assert serve_repository.requests == [urls.manifest("en")]


@pytest.mark.asyncio
@pytest.mark.parametrize("language", ["", "english", "e", "e1", "../en", "en-US"])
async def test_invalid_language_is_rejected_before_fetching(
    remote: RemoteRepository, serve_repository, language: str
) -> None:
    with pytest.raises(ManifestError):
        await remote.get_manifest(language)
    assert serve_repository.requests == []


@pytest.mark.asyncio
async def test_transport_failures_become_manifest_errors(remote: RemoteRepository, serve_repository, urls) -> None:
    timeout = HTTPTimeoutError(urls.manifest("de"), 10)
    serve_repository.add(urls.manifest("de"), timeout)

    with pytest.raises(ManifestError) as exc_info:
        await remote.get_manifest("de")

    assert exc_info.value.language == "de"
    assert exc_info.value.cause is timeout

    with pytest.raises(ManifestError):
        await remote.get_manifest("it")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "not json",
        json.dumps([]),
        json.dumps({"version": "1"}),
        json.dumps({"commands": [{"name": "x", "description": "d", "file": "x.md"}]}),
        json.dumps(
            {"commands": [{"name": "x", "description": "d", "file": "x.md", "allowed-tools": ["Read", 3]}]}
        ),
        json.dumps({"commands": [{"name": 1, "description": "d", "file": "x.md", "allowed-tools": "Read"}]}),
    ],
)
async def test_malformed_manifest_is_rejected(
    remote: RemoteRepository, serve_repository, urls, body: str
) -> None:
    serve_repository.add(urls.manifest("es"), body)
    with pytest.raises(ManifestError):
        await remote.get_manifest("es")
    assert remote.peek_manifest("es") is None


def test_manifest_payload_validation(sample_manifest) -> None:
    assert is_valid_manifest_payload(sample_manifest)
    sample_manifest["commands"][0]["allowed-tools"] = {"Read": True}
    assert "allowed-tools" in manifest_payload_problem(sample_manifest)


@pytest.mark.asyncio
async def test_get_command_fetches_content_once(remote: RemoteRepository, serve_repository, urls, sample_content) -> None:
    body = await remote.get_command("frontend:component", "en")
    assert body == sample_content["frontend/component.md"]

    await remote.get_command("frontend:component", "en")
    assert serve_repository.count(urls.content("en", "frontend/component.md")) == 1
    assert remote.command_key("frontend:component", "en") == "command-en-frontend-component"


@pytest.mark.asyncio
async def test_get_command_unknown_name(remote: RemoteRepository) -> None:
    with pytest.raises(CommandNotFoundError) as exc_info:
        await remote.get_command("nope", "en")
    assert exc_info.value.name == "nope"
    assert exc_info.value.language == "en"


@pytest.mark.asyncio
async def test_get_command_transport_failure(remote: RemoteRepository, serve_repository, urls) -> None:
    failure = HTTPNetworkError(urls.content("en", "code-review.md"), "reset")
    serve_repository.add(urls.content("en", "code-review.md"), failure)

    with pytest.raises(CommandContentError) as exc_info:
        await remote.get_command("code-review", "en")
    assert exc_info.value.cause is failure
    assert exc_info.value.name == "code-review"


@pytest.mark.asyncio
async def test_empty_content_is_allowed(remote: RemoteRepository, serve_repository, urls) -> None:
    serve_repository.add(urls.content("en", "debug-help.md"), "")
    assert await remote.get_command("debug-help", "en") == ""


@pytest.mark.asyncio
async def test_available_languages_come_from_cache(remote: RemoteRepository, cache_store) -> None:
    assert remote.get_available_languages() == []

    await remote.get_manifest("en")
    await remote.get_manifest("fr")
    cache_store.write("manifest-zz-extra", {"commands": []})

    languages = remote.get_available_languages()
    assert [(info.code, info.name, info.command_count) for info in languages] == [
        ("en", "English", 3),
        ("fr", "Français", 1),
    ]


@pytest.mark.asyncio
async def test_probe_languages(remote: RemoteRepository) -> None:
    results = await remote.probe_languages(["fr", "de", "FR", "en"])

    by_code = {info.code: info for info in results}
    assert list(by_code) == ["fr", "de", "en"]
    assert by_code["fr"].available and by_code["fr"].command_count == 1
    assert not by_code["de"].available
    assert by_code["en"].available and by_code["en"].command_count == 3


@pytest.mark.asyncio
async def test_probe_reports_english_available_even_when_unreachable(cache_store, fake_http) -> None:
    repository = RemoteRepository(fake_http, cache_store, base_url="https://offline.test")
    results = await repository.probe_languages(["en", "ja"])
    assert [(info.code, info.available) for info in results] == [("en", True), ("ja", False)]
