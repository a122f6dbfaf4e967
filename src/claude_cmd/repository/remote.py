"""
Remote command repository.

Manifests and command bodies are downloaded from
``{base_url}/commands/{lang}/...`` and kept in the :class:`CacheStore`. The
cache holds the raw wire payloads; they are turned into models on the way out
so that a cached entry written by an older release is re-validated on read.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Iterable

from pydantic import ValidationError

from claude_cmd.cache import CacheStore
from claude_cmd.constants import DEFAULT_LANGUAGE, DEFAULT_REPOSITORY_URL, KNOWN_LANGUAGES
from claude_cmd.core.exceptions import (
    CommandContentError,
    CommandNotFoundError,
    HTTPError,
    ManifestError,
)
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.http_client import HTTPClient
from claude_cmd.types import LanguageInfo, Manifest

logger = get_logger(__name__)

LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}$")
MANIFEST_KEY_PATTERN = re.compile(r"^manifest-([a-z]{2})$")

_REQUIRED_COMMAND_FIELDS = ("name", "description", "file")


def is_valid_language(language: str) -> bool:
    return isinstance(language, str) and bool(LANGUAGE_PATTERN.match(language))


def language_display_name(code: str) -> str:
    return KNOWN_LANGUAGES.get(code, code.upper())


def manifest_payload_problem(payload: Any) -> str | None:
    """Describe why ``payload`` is not a manifest on the wire, or ``None`` if it is."""
    if not isinstance(payload, dict):
        return "manifest must be a JSON object"
    commands = payload.get("commands")
    if not isinstance(commands, list):
        return "manifest must contain a 'commands' array"

    for index, command in enumerate(commands):
        if not isinstance(command, dict):
            return f"command #{index} must be an object"
        for field_name in _REQUIRED_COMMAND_FIELDS:
            if not isinstance(command.get(field_name), str):
                return f"command #{index} is missing string field '{field_name}'"
        tools = command.get("allowed-tools")
        if isinstance(tools, list):
            if not all(isinstance(tool, str) for tool in tools):
                return f"command #{index} has non-string entries in 'allowed-tools'"
        elif not isinstance(tools, str):
            return f"command #{index} 'allowed-tools' must be a string or an array of strings"
    return None


def is_valid_manifest_payload(payload: Any) -> bool:
    return manifest_payload_problem(payload) is None


def _is_command_content(payload: Any) -> bool:
    return isinstance(payload, str)


class RemoteRepository:
    """Manifest and command content fetched over HTTP behind a TTL cache."""

    def __init__(
        self,
        http_client: HTTPClient,
        cache: CacheStore,
        *,
        base_url: str = DEFAULT_REPOSITORY_URL,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def manifest_url(self, language: str) -> str:
        return f"{self._base_url}/commands/{language}/manifest.json"

    def content_url(self, language: str, file: str) -> str:
        return f"{self._base_url}/commands/{language}/{file.lstrip('/')}"

    def manifest_key(self, language: str) -> str:
        return self._cache.build_key("manifest", language)

    def command_key(self, name: str, language: str) -> str:
        return self._cache.build_key("command", language, name)

    async def get_manifest(self, language: str, *, force_refresh: bool = False) -> Manifest:
        lang = self._validated_language(language)

        async def fetch() -> dict[str, Any]:
            return await self._fetch_manifest_payload(lang)

        payload = await self._cache.get(
            self.manifest_key(lang),
            fetch,
            is_valid_manifest_payload,
            force_refresh=force_refresh,
        )
        try:
            return Manifest.model_validate(payload)
        except ValidationError as exc:
            raise ManifestError(lang, "manifest failed validation", exc) from exc

    async def get_command(self, name: str, language: str, *, force_refresh: bool = False) -> str:
        lang = self._validated_language(language)
        manifest = await self.get_manifest(lang, force_refresh=force_refresh)
        command = manifest.find(name)
        if command is None:
            raise CommandNotFoundError(name, lang)

        url = self.content_url(lang, command.file)

        async def fetch() -> str:
            try:
                response = await self._http.get(url)
            except HTTPError as exc:
                raise CommandContentError(name, lang, str(exc), exc) from exc
            if not response.body:
                logger.warning("Command content is empty", data={"command": name, "language": lang})
            return response.body

        return await self._cache.get(
            self.command_key(name, lang),
            fetch,
            _is_command_content,
            force_refresh=force_refresh,
        )

    def peek_manifest(self, language: str) -> Manifest | None:
        """The cached manifest for ``language`` regardless of age, if any."""
        lang = self._validated_language(language)
        entry = self._cache.peek(self.manifest_key(lang), is_valid_manifest_payload)
        if entry is None:
            return None
        try:
            return Manifest.model_validate(entry.data)
        except ValidationError:
            return None

    def get_available_languages(self) -> list[LanguageInfo]:
        """Languages with a cached manifest, most commands first."""
        languages: list[LanguageInfo] = []
        for key in self._cache.list_keys():
            match = MANIFEST_KEY_PATTERN.match(key)
            if not match:
                continue
            code = match.group(1)
            entry = self._cache.peek(key, is_valid_manifest_payload)
            if entry is None:
                logger.debug("Skipping language without readable manifest", data={"language": code})
                continue
            languages.append(
                LanguageInfo(
                    code=code,
                    name=language_display_name(code),
                    command_count=len(entry.data["commands"]),
                )
            )
        languages.sort(key=lambda info: (-info.command_count, info.code))
        return languages

    async def probe_languages(self, codes: Iterable[str]) -> list[LanguageInfo]:
        """Try each language's manifest concurrently; failures mark it unavailable."""
        unique: list[str] = []
        for code in codes:
            normalized = code.strip().lower() if isinstance(code, str) else ""
            if normalized and normalized not in unique:
                unique.append(normalized)

        async def probe(code: str) -> LanguageInfo:
            try:
                manifest = await self.get_manifest(code)
            except ManifestError as exc:
                logger.debug("Language probe failed", data={"language": code, "error": str(exc)})
                return LanguageInfo(
                    code=code,
                    name=language_display_name(code),
                    available=code == DEFAULT_LANGUAGE,
                )
            return LanguageInfo(
                code=code,
                name=language_display_name(code),
                command_count=len(manifest.commands),
            )

        return list(await asyncio.gather(*(probe(code) for code in unique)))

    async def _fetch_manifest_payload(self, lang: str) -> dict[str, Any]:
        url = self.manifest_url(lang)
        try:
            response = await self._http.get(url)
        except HTTPError as exc:
            raise ManifestError(lang, str(exc), exc) from exc

        try:
            payload = json.loads(response.body)
        except json.JSONDecodeError as exc:
            raise ManifestError(lang, f"invalid JSON: {exc.msg}", exc) from exc

        problem = manifest_payload_problem(payload)
        if problem is not None:
            raise ManifestError(lang, problem)
        logger.debug(
            "Fetched manifest",
            data={"language": lang, "commands": len(payload["commands"])},
        )
        return payload

    @staticmethod
    def _validated_language(language: str) -> str:
        lang = language.strip().lower() if isinstance(language, str) else ""
        if not is_valid_language(lang):
            raise ManifestError(str(language), "language must be a two-letter code such as 'en'")
        return lang
