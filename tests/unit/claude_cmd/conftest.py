from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from claude_cmd.app import create_services
from claude_cmd.cache import CacheStore
from claude_cmd.config import Settings
from claude_cmd.directories import DirectoryDetector
from claude_cmd.interaction import StaticConfirmer
from claude_cmd.namespace import NamespaceParser
from claude_cmd.parser import CommandParser
from claude_cmd.repository.local import LocalRepository
from claude_cmd.repository.remote import RemoteRepository

BASE_URL = "https://commands.example.test"

SAMPLE_MANIFEST = {
    "version": "1.2.0",
    "updated": "2025-01-01T00:00:00Z",
    "commands": [
        {
            "name": "debug-help",
            "description": "Help debugging failing tests",
            "file": "debug-help.md",
            "allowed-tools": "Read, Grep",
        },
        {
            "name": "frontend:component",
            "description": "Scaffold a React component",
            "file": "frontend/component.md",
            "allowed-tools": ["Write", "Edit"],
            "argument-hint": "<component-name>",
            "namespace": "frontend",
        },
        {
            "name": "code-review",
            "description": "Review staged changes",
            "file": "code-review.md",
            "allowed-tools": ["Read", "Bash(git diff:*)"],
        },
    ],
}

SAMPLE_CONTENT = {
    "debug-help.md": (
        "---\ndescription: Help debugging failing tests\nallowed-tools: Read, Grep\n---\n\n"
        "Investigate the failure in $ARGUMENTS\n"
    ),
    "frontend/component.md": (
        "---\ndescription: Scaffold a React component\nallowed-tools: [Write, Edit]\n"
        "argument-hint: <component-name>\n---\n\nCreate the component $ARGUMENTS\n"
    ),
    "code-review.md": (
        '---\ndescription: Review staged changes\nallowed-tools: [Read, "Bash(git diff:*)"]\n---\n\n'
        "Review the staged diff.\n"
    ),
}

FRENCH_MANIFEST = {
    "version": "1.0.0",
    "updated": "2025-01-01T00:00:00Z",
    "commands": [
        {
            "name": "aide-debug",
            "description": "Aide au débogage",
            "file": "aide-debug.md",
            "allowed-tools": "Read",
        }
    ],
}


def manifest_url(language: str) -> str:
    return f"{BASE_URL}/commands/{language}/manifest.json"


def content_url(language: str, file: str) -> str:
    return f"{BASE_URL}/commands/{language}/{file}"


def write_command(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def serve_repository(fake_http):
    fake_http.add(manifest_url("en"), json.dumps(SAMPLE_MANIFEST))
    for file, body in SAMPLE_CONTENT.items():
        fake_http.add(content_url("en", file), body)
    fake_http.add(manifest_url("fr"), json.dumps(FRENCH_MANIFEST))
    return fake_http


@pytest.fixture
def home_dir() -> Path:
    return Path(os.environ["HOME"])


@pytest.fixture
def project_dir(tmp_path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def personal_root(home_dir) -> Path:
    return home_dir / ".claude" / "commands"


@pytest.fixture
def project_root(project_dir) -> Path:
    return project_dir / ".claude" / "commands"


@pytest.fixture
def cache_store(tmp_path, fake_clock) -> CacheStore:
    return CacheStore(tmp_path / "cache", ttl_ms=60 * 60 * 1000, clock=fake_clock)


@pytest.fixture
def remote(serve_repository, cache_store) -> RemoteRepository:
    return RemoteRepository(serve_repository, cache_store, base_url=BASE_URL)


@pytest.fixture
def detector(home_dir, project_dir) -> DirectoryDetector:
    return DirectoryDetector(home=home_dir, cwd=project_dir)


@pytest.fixture
def local(detector) -> LocalRepository:
    return LocalRepository(detector, CommandParser(NamespaceParser()))


@pytest.fixture
def confirmer() -> StaticConfirmer:
    return StaticConfirmer(True)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        repository={"base_url": BASE_URL},
        cache={"directory": str(tmp_path / "cache")},
    )


@pytest.fixture
def services(settings, serve_repository, confirmer, home_dir, project_dir, fake_clock):
    return create_services(
        settings,
        http_client=serve_repository,
        confirmer=confirmer,
        home=home_dir,
        cwd=project_dir,
        clock=fake_clock,
    )


class RepositoryURLs:
    base = BASE_URL

    @staticmethod
    def manifest(language: str) -> str:
        return manifest_url(language)

    @staticmethod
    def content(language: str, file: str) -> str:
        return content_url(language, file)


@pytest.fixture
def urls() -> RepositoryURLs:
    return RepositoryURLs()


@pytest.fixture
def sample_manifest() -> dict:
    return json.loads(json.dumps(SAMPLE_MANIFEST))


@pytest.fixture
def sample_content() -> dict[str, str]:
    return dict(SAMPLE_CONTENT)


@pytest.fixture
def command_writer():
    return write_command
