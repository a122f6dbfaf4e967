"""
Placing command files on disk and taking them away again.

Every destination goes through :meth:`InstallationManager.build_command_path`,
which refuses names that are absolute, contain ``.``/``..`` segments or null
bytes, or resolve outside the target root. The check runs before any network
call or filesystem write.

Each root also carries a ``.claude-cmd.json`` sidecar recording which commands
were installed from the repository, in which language and from which manifest
version. The sidecar is best-effort: losing it only downgrades provenance to
"local".
"""

from __future__ import annotations

import asyncio
import json
import re
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from claude_cmd.constants import (
    COMMAND_FILE_SUFFIX,
    DEFAULT_LANGUAGE,
    INSTALL_SIDECAR_FILENAME,
    INSTALL_SIDECAR_SCHEMA_VERSION,
)
from claude_cmd.core.exceptions import (
    CommandExistsError,
    CommandNotInstalledError,
    InstallationError,
    InvalidCommandFileError,
    PathEscapeError,
)
from claude_cmd.core.files import atomic_write_text, is_within, prune_empty_parents
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.directories import DirectoryDetector
from claude_cmd.interaction import Confirmer
from claude_cmd.namespace import NamespaceParser
from claude_cmd.parser import CommandParser
from claude_cmd.repository.local import LocalRepository
from claude_cmd.repository.remote import RemoteRepository
from claude_cmd.types import (
    Command,
    InstallationRecord,
    InstallationSummary,
    InstallLocation,
    Manifest,
    RemovalResult,
)

logger = get_logger(__name__)

_NAME_SEPARATORS = re.compile(r"[:/\\]")
_LOCATIONS: tuple[InstallLocation, ...] = ("personal", "project")


class InstallationManager:
    """Owns every filesystem mutation under the personal and project roots."""

    def __init__(
        self,
        remote: RemoteRepository,
        directories: DirectoryDetector,
        namespaces: NamespaceParser,
        parser: CommandParser,
        local: LocalRepository,
        confirmer: Confirmer,
    ) -> None:
        self._remote = remote
        self._directories = directories
        self._namespaces = namespaces
        self._parser = parser
        self._local = local
        self._confirmer = confirmer

    # --- paths -------------------------------------------------------------------

    def build_command_path(self, name: str, base_dir: Path, *, operation: str = "install") -> Path:
        """
        Map ``frontend:component`` to ``{base_dir}/frontend/component.md``.

        Raises:
            InstallationError: the name is empty
            PathEscapeError: the name is absolute, has ``.``/``..``/empty segments,
                contains a null byte, or resolves outside ``base_dir``
        """
        segments = self._name_segments(name, base_dir, operation)
        *parents, leaf = segments
        candidate = base_dir.joinpath(*parents, f"{leaf}{COMMAND_FILE_SUFFIX}")

        resolved_base = base_dir.resolve()
        resolved = candidate.resolve()
        if resolved == resolved_base or not is_within(resolved, resolved_base):
            raise PathEscapeError(name, base_dir, operation)
        return candidate

    def _name_segments(self, name: str, base_dir: Path, operation: str) -> list[str]:
        if not isinstance(name, str) or not name.strip():
            raise InstallationError("Command name is required", operation, name)
        raw = name.strip()
        if "\x00" in raw:
            raise PathEscapeError(name, base_dir, operation)
        if PurePosixPath(raw).is_absolute() or raw.startswith("\\"):
            raise PathEscapeError(name, base_dir, operation)

        segments = [segment.strip() for segment in _NAME_SEPARATORS.split(raw)]
        if any(segment in ("", ".", "..") for segment in segments):
            raise PathEscapeError(name, base_dir, operation)
        return segments

    # --- mutations -----------------------------------------------------------------

    async def install_command(
        self,
        name: str,
        *,
        target: InstallLocation = "personal",
        force: bool = False,
        language: str = DEFAULT_LANGUAGE,
    ) -> InstallationRecord:
        base_dir = self._directories.directory_for(target)
        self.build_command_path(name, base_dir)

        manifest = await self._remote.get_manifest(language)
        name = self._manifest_name(name, manifest)
        destination = self.build_command_path(name, base_dir)

        content = await self._remote.get_command(name, language)
        if not self._parser.validate_command_file(content):
            raise InvalidCommandFileError(name)

        record = await asyncio.to_thread(
            self._write_command,
            name,
            content,
            base_dir,
            destination,
            target,
            force,
            language,
            manifest.version,
        )
        logger.info(
            "Installed command",
            data={"command": name, "location": target, "path": str(destination)},
        )
        return record

    def _manifest_name(self, name: str, manifest: Manifest) -> str:
        """The manifest's spelling of ``name``; ``frontend/component`` finds ``frontend:component``."""
        raw = name.strip()
        if manifest.find(raw) is not None:
            return raw
        wanted = self._namespaces.normalize(raw)
        for command in manifest.commands:
            if self._namespaces.normalize(command.name) == wanted:
                return command.name
        return raw

    def _write_command(
        self,
        name: str,
        content: str,
        base_dir: Path,
        destination: Path,
        target: InstallLocation,
        force: bool,
        language: str,
        manifest_version: str | None,
    ) -> InstallationRecord:
        try:
            self._directories.ensure_directory(base_dir)
            if destination.exists() and not force:
                raise CommandExistsError(name, destination)
            atomic_write_text(destination, content)
            size = destination.stat().st_size
        except InstallationError:
            raise
        except OSError as exc:
            raise InstallationError(
                f"Failed to install command '{name}': {exc}", "install", name, exc
            ) from exc

        installed_at = datetime.now(timezone.utc)
        self._record_provenance(
            base_dir,
            self._sidecar_key(name),
            {
                "installed_at": installed_at.isoformat(),
                "language": language,
                "manifest_version": manifest_version,
                "file": destination.relative_to(base_dir).as_posix(),
            },
        )
        return InstallationRecord(
            name=name,
            file_path=destination,
            location=target,
            installed_at=installed_at,
            size_bytes=size,
            source="repository",
            provenance_version=manifest_version,
            language=language,
        )

    async def remove_command(self, name: str, *, yes: bool = False) -> RemovalResult:
        located = self._locate(name, operation="remove")
        if located is None:
            raise CommandNotInstalledError(name)
        location, path = located

        if not yes:
            confirmed = await self._confirmer.confirm(
                f"Remove command '{name}' from {path}?", default=False
            )
            if not confirmed:
                logger.info("Removal cancelled", data={"command": name})
                return RemovalResult(name=name, path=path, removed=False)

        base_dir = self._directories.directory_for(location)
        await asyncio.to_thread(self._delete_command, name, path, base_dir)
        logger.info("Removed command", data={"command": name, "path": str(path)})
        return RemovalResult(name=name, path=path, removed=True)

    def _delete_command(self, name: str, path: Path, base_dir: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise CommandNotInstalledError(name) from exc
        except OSError as exc:
            raise InstallationError(
                f"Failed to remove command '{name}': {exc}", "remove", name, exc
            ) from exc

        prune_empty_parents(path.parent, stop_at=base_dir)
        self._record_provenance(base_dir, self._sidecar_key(name), None)

    # --- queries -------------------------------------------------------------------

    async def is_installed(self, name: str) -> bool:
        return await self.get_installation_path(name) is not None

    async def get_installation_path(self, name: str) -> Path | None:
        located = self._safe_locate(name)
        return located[1] if located else None

    async def get_installation_info(self, name: str) -> InstallationRecord | None:
        located = self._safe_locate(name)
        if located is None:
            return None
        location, path = located
        base_dir = self._directories.directory_for(location)
        return await asyncio.to_thread(self._describe_file, name, path, location, base_dir)

    async def get_all_installation_info(self) -> list[InstallationRecord]:
        """One record per command file across both roots, personal first."""
        scan = await self._directories.scan_all()

        def describe_all() -> list[InstallationRecord]:
            records: list[InstallationRecord] = []
            for location in _LOCATIONS:
                base_dir = self._directories.directory_for(location)
                for path in scan.for_location(location):
                    name = self._name_from_path(path, base_dir)
                    record = self._describe_file(name, path, location, base_dir)
                    if record is not None:
                        records.append(record)
            return records

        return await asyncio.to_thread(describe_all)

    async def get_installation_summary(self) -> InstallationSummary:
        records = await self.get_all_installation_info()
        personal = sum(1 for record in records if record.location == "personal")
        project = len(records) - personal
        return InstallationSummary(
            total_commands=len(records),
            personal_count=personal,
            project_count=project,
            locations=tuple(
                location
                for location, count in (("personal", personal), ("project", project))
                if count
            ),
        )

    async def list_installed_commands(self) -> list[Command]:
        manifest = await self._local.get_manifest()
        return list(manifest.commands)

    def _locate(self, name: str, *, operation: str) -> tuple[InstallLocation, Path] | None:
        for location in _LOCATIONS:
            base_dir = self._directories.directory_for(location)
            path = self.build_command_path(name, base_dir, operation=operation)
            if base_dir.is_dir() and path.is_file():
                return location, path
        return None

    def _safe_locate(self, name: str) -> tuple[InstallLocation, Path] | None:
        try:
            return self._locate(name, operation="query")
        except InstallationError as exc:
            logger.debug("Ignoring unusable command name", data={"command": name, "error": str(exc)})
            return None

    def _describe_file(
        self, name: str, path: Path, location: InstallLocation, base_dir: Path
    ) -> InstallationRecord | None:
        try:
            stat = path.stat()
        except OSError:
            return None

        provenance = self._read_sidecar(base_dir).get(self._sidecar_key(name))
        if provenance is not None:
            return InstallationRecord(
                name=name,
                file_path=path,
                location=location,
                installed_at=_parse_timestamp(provenance.get("installed_at"), stat.st_mtime),
                size_bytes=stat.st_size,
                source="repository",
                provenance_version=provenance.get("manifest_version"),
                language=provenance.get("language"),
            )
        return InstallationRecord(
            name=name,
            file_path=path,
            location=location,
            installed_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size,
            source="local",
        )

    def _name_from_path(self, path: Path, base_dir: Path) -> str:
        try:
            relative = path.relative_to(base_dir)
        except ValueError:
            return path.stem
        parts = [*relative.parent.parts, path.stem]
        return ":".join(part for part in parts if part not in ("", "."))

    def _sidecar_key(self, name: str) -> str:
        return self._namespaces.normalize(name)

    # --- provenance sidecar --------------------------------------------------------

    def _read_sidecar(self, base_dir: Path) -> dict[str, dict[str, Any]]:
        path = base_dir / INSTALL_SIDECAR_FILENAME
        if not path.is_file():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable install metadata", data={"path": str(path), "error": str(exc)})
            return {}
        commands = payload.get("commands") if isinstance(payload, dict) else None
        if not isinstance(commands, dict):
            return {}
        return {key: value for key, value in commands.items() if isinstance(value, dict)}

    def _record_provenance(
        self, base_dir: Path, key: str, entry: dict[str, Any] | None
    ) -> None:
        commands = self._read_sidecar(base_dir)
        if entry is None:
            if key not in commands:
                return
            commands.pop(key)
        else:
            commands[key] = entry

        path = base_dir / INSTALL_SIDECAR_FILENAME
        try:
            if commands:
                payload = {"schema_version": INSTALL_SIDECAR_SCHEMA_VERSION, "commands": commands}
                atomic_write_text(path, json.dumps(payload, indent=2, sort_keys=True))
            else:
                path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not update install metadata", data={"path": str(path), "error": str(exc)})


def _parse_timestamp(value: Any, fallback: float) -> datetime:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return datetime.fromtimestamp(fallback, tz=timezone.utc)
