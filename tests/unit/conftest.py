from __future__ import annotations

import os
from typing import Mapping

import pytest

import claude_cmd.config as config_module
from claude_cmd.core.exceptions import HTTPNetworkError, HTTPStatusError
from claude_cmd.http_client import HTTPResponse

_ISOLATED_ENV_PREFIXES = ("CLAUDE_CMD_",)
_ISOLATED_ENV_NAMES = ("LC_ALL", "LC_MESSAGES", "LANG")


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from the developer's home, config files and language settings.

    ``HOME`` points at a per-test directory so the default personal commands
    root, user config file and cache all live under ``tmp_path``.
    """
    for name in list(os.environ):
        if name.startswith(_ISOLATED_ENV_PREFIXES) or name in _ISOLATED_ENV_NAMES:
            monkeypatch.delenv(name, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))

    original_settings = getattr(config_module, "_settings", None)
    config_module._settings = None
    try:
        yield
    finally:
        config_module._settings = original_settings


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += milliseconds


class FakeHTTPClient:
    """Serves canned bodies by URL and records every request."""

    def __init__(self, responses: Mapping[str, str | Exception] | None = None) -> None:
        self.responses: dict[str, str | Exception] = dict(responses or {})
        self.requests: list[str] = []
        self.closed = False

    def add(self, url: str, body: str | Exception) -> None:
        self.responses[url] = body

    async def get(self, url, *, timeout=None, headers=None) -> HTTPResponse:
        self.requests.append(url)
        if url not in self.responses:
            raise HTTPStatusError(url, 404, "Not Found")
        body = self.responses[url]
        if isinstance(body, Exception):
            raise body
        return HTTPResponse(status=200, status_text="OK", body=body, url=url)

    async def aclose(self) -> None:
        self.closed = True

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_http() -> FakeHTTPClient:
    return FakeHTTPClient()


@pytest.fixture
def network_down() -> HTTPNetworkError:
    return HTTPNetworkError("https://example.invalid", "Connection refused")
