from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from claude_cmd.types.command import InstallLocation

InstallSource = Literal["repository", "local"]


@dataclass(frozen=True)
class DirectoryDescriptor:
    """Filesystem truth for one commands root at the moment it was queried."""

    path: Path
    kind: InstallLocation
    exists: bool
    writable: bool


@dataclass(frozen=True)
class CommandScanResult:
    personal: tuple[Path, ...] = ()
    project: tuple[Path, ...] = ()

    def for_location(self, location: InstallLocation) -> tuple[Path, ...]:
        return self.personal if location == "personal" else self.project


@dataclass(frozen=True)
class InstallationRecord:
    name: str
    file_path: Path
    location: InstallLocation
    installed_at: datetime
    size_bytes: int
    source: InstallSource
    provenance_version: str | None = None
    language: str | None = None


@dataclass(frozen=True)
class InstallationSummary:
    total_commands: int
    personal_count: int
    project_count: int
    locations: tuple[InstallLocation, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RemovalResult:
    name: str
    path: Path
    removed: bool

    @property
    def cancelled(self) -> bool:
        return not self.removed
