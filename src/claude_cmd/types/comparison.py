from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from claude_cmd.types.command import Command, Manifest

ChangeType = Literal["added", "removed", "modified"]


@dataclass(frozen=True)
class FieldDiff:
    field: str
    old_value: Any
    new_value: Any


@dataclass(frozen=True)
class ChangeRecord:
    type: ChangeType
    name: str
    old_command: Command | None = None
    new_command: Command | None = None
    field_diffs: tuple[FieldDiff, ...] = ()

    def diff_for(self, field_name: str) -> FieldDiff | None:
        for diff in self.field_diffs:
            if diff.field == field_name:
                return diff
        return None


@dataclass(frozen=True)
class ChangeSummary:
    added: int = 0
    removed: int = 0
    modified: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed + self.modified

    @property
    def has_changes(self) -> bool:
        return self.total > 0


@dataclass(frozen=True)
class ManifestComparisonResult:
    old_manifest: Manifest
    new_manifest: Manifest
    summary: ChangeSummary
    changes: tuple[ChangeRecord, ...]
    compared_at: str

    def changes_of(self, change_type: ChangeType) -> list[ChangeRecord]:
        return [change for change in self.changes if change.type == change_type]
