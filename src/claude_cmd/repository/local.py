"""
Commands already present on disk.

Both roots are scanned and every ``.md`` file is parsed. Each attempt yields a
:class:`ScanEntry` that either carries the parsed command or the reason it was
skipped; skips are logged once the scan finishes and never fail it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from claude_cmd.core.exceptions import CommandNotFoundError, CommandParseError
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.directories import DirectoryDetector
from claude_cmd.parser import CommandParser
from claude_cmd.types import Command, CommandScanResult, InstallLocation, Manifest

logger = get_logger(__name__)

LOCAL_MANIFEST_VERSION = "1.0.0"
LOCAL_LANGUAGE = "local"


@dataclass(frozen=True)
class ScanEntry:
    path: Path
    location: InstallLocation
    relative_path: str
    command: Command | None = None
    skip_reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.command is not None


class LocalRepository:
    """Installed commands from the personal and project roots; personal wins on name clashes."""

    def __init__(self, directories: DirectoryDetector, parser: CommandParser) -> None:
        self._directories = directories
        self._parser = parser

    async def scan_entries(self) -> list[ScanEntry]:
        """Parse every command file, personal root first."""
        scan = await self._directories.scan_all()
        entries = await asyncio.to_thread(self._parse_scan, scan)

        skipped = [entry for entry in entries if not entry.ok]
        for entry in skipped:
            logger.debug(
                "Skipped command file",
                data={"path": str(entry.path), "reason": entry.skip_reason},
            )
        if skipped:
            logger.warning(
                "Some command files could not be parsed",
                data={"skipped": len(skipped), "parsed": len(entries) - len(skipped)},
            )
        return entries

    async def get_manifest(self, language: str = LOCAL_LANGUAGE, *, force_refresh: bool = False) -> Manifest:
        """Manifest of local commands; the language is ignored and a failed scan yields an empty one."""
        try:
            entries = await self.scan_entries()
        except OSError as exc:
            logger.warning("Local command scan failed", data={"error": str(exc)})
            entries = []

        commands: list[Command] = []
        seen: set[str] = set()
        for entry in entries:
            if entry.command is None or entry.command.name in seen:
                continue
            seen.add(entry.command.name)
            commands.append(entry.command)

        return Manifest(
            version=LOCAL_MANIFEST_VERSION,
            updated=datetime.now(timezone.utc).isoformat(),
            commands=tuple(commands),
        )

    async def get_command(
        self, name: str, language: str = LOCAL_LANGUAGE, *, force_refresh: bool = False
    ) -> str:
        entry = await self.find(name)
        if entry is None:
            raise CommandNotFoundError(name, language)
        try:
            return await asyncio.to_thread(entry.path.read_text, encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot read command file", data={"path": str(entry.path), "error": str(exc)})
            raise CommandNotFoundError(name, language) from exc

    async def find(self, name: str) -> ScanEntry | None:
        matches = await self.find_all(name)
        return matches[0] if matches else None

    async def find_all(self, name: str) -> list[ScanEntry]:
        """Every parsed entry named ``name``, personal before project."""
        try:
            entries = await self.scan_entries()
        except OSError as exc:
            logger.warning("Local command scan failed", data={"error": str(exc)})
            return []
        return [entry for entry in entries if entry.command is not None and entry.command.name == name]

    def _parse_scan(self, scan: CommandScanResult) -> list[ScanEntry]:
        entries: list[ScanEntry] = []
        for location in ("personal", "project"):
            root = self._directories.directory_for(location)
            for path in scan.for_location(location):
                entries.append(self._parse_file(path, root, location))
        return entries

    def _parse_file(self, path: Path, root: Path, location: InstallLocation) -> ScanEntry:
        try:
            relative = path.relative_to(root).as_posix()
        except ValueError:
            relative = path.name

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return ScanEntry(path, location, relative, skip_reason=f"unreadable: {exc}")

        try:
            command = self._parser.parse_command_file(content, relative)
        except CommandParseError as exc:
            return ScanEntry(path, location, relative, skip_reason=str(exc))
        return ScanEntry(path, location, relative, command=command)
