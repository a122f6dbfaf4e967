from __future__ import annotations

import asyncio
import os
from collections import deque
from pathlib import Path

from claude_cmd.constants import COMMAND_FILE_SUFFIX, PERSONAL_COMMANDS_PATH, PROJECT_COMMANDS_PATH
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.types import CommandScanResult, DirectoryDescriptor, InstallLocation

logger = get_logger(__name__)


class DirectoryDetector:
    """Locates the personal and project command roots and lists their command files."""

    def __init__(
        self,
        *,
        home: Path | None = None,
        cwd: Path | None = None,
        personal: Path | None = None,
        project: Path | None = None,
    ) -> None:
        self._home = home
        self._cwd = cwd
        self._personal_override = personal
        self._project_override = project

    @property
    def personal_directory(self) -> Path:
        if self._personal_override is not None:
            return self._personal_override.expanduser()
        return (self._home or Path.home()).joinpath(*PERSONAL_COMMANDS_PATH)

    @property
    def project_directory(self) -> Path:
        if self._project_override is not None:
            return self._project_override.expanduser()
        return (self._cwd or Path.cwd()).joinpath(*PROJECT_COMMANDS_PATH)

    def directory_for(self, kind: InstallLocation) -> Path:
        if kind == "project":
            return self.project_directory
        return self.personal_directory

    def describe(self, kind: InstallLocation) -> DirectoryDescriptor:
        path = self.directory_for(kind)
        exists = path.is_dir()
        return DirectoryDescriptor(path=path, kind=kind, exists=exists, writable=_is_writable(path))

    def get_directories(self) -> list[DirectoryDescriptor]:
        return [self.describe("personal"), self.describe("project")]

    @staticmethod
    def ensure_directory(path: Path) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        return path

    def scan(self, kind: InstallLocation) -> tuple[Path, ...]:
        """
        Breadth-first listing of ``*.md`` files under one root.

        Hidden files and directories are skipped. Each directory is visited
        once even when symlinks point back up the tree.
        """
        root = self.directory_for(kind)
        if not root.is_dir():
            logger.debug("Commands directory not found", data={"kind": kind, "path": str(root)})
            return ()

        found: list[Path] = []
        seen: set[Path] = set()
        queue: deque[Path] = deque([root])
        while queue:
            directory = queue.popleft()
            try:
                resolved = directory.resolve()
            except OSError:
                continue
            if resolved in seen:
                continue
            seen.add(resolved)

            try:
                entries = sorted(directory.iterdir())
            except OSError as exc:
                logger.warning(
                    "Cannot read commands directory",
                    data={"path": str(directory), "error": str(exc)},
                )
                continue

            for entry in entries:
                if entry.name.startswith("."):
                    continue
                if entry.is_dir():
                    queue.append(entry)
                elif entry.is_file() and entry.name.endswith(COMMAND_FILE_SUFFIX):
                    found.append(entry)
        return tuple(found)

    async def scan_all(self) -> CommandScanResult:
        personal, project = await asyncio.gather(
            asyncio.to_thread(self.scan, "personal"),
            asyncio.to_thread(self.scan, "project"),
        )
        return CommandScanResult(personal=personal, project=project)


def _is_writable(path: Path) -> bool:
    candidate = path
    while not candidate.exists():
        parent = candidate.parent
        if parent == candidate:
            return False
        candidate = parent
    return candidate.is_dir() and os.access(candidate, os.W_OK)
