from __future__ import annotations

from typing import Protocol

from claude_cmd.types import Manifest


class Repository(Protocol):
    """A source of commands: a manifest per language plus raw command content."""

    async def get_manifest(self, language: str, *, force_refresh: bool = False) -> Manifest: ...

    async def get_command(
        self, name: str, language: str, *, force_refresh: bool = False
    ) -> str: ...
