"""
Structural diffs between two manifest snapshots.

Commands are matched by name. ``allowed-tools`` is compared as a set, so
``"Bash, Read"`` and ``["Read", "Bash"]`` are the same grant.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from claude_cmd.types import (
    ChangeRecord,
    ChangeSummary,
    Command,
    FieldDiff,
    Manifest,
    ManifestComparisonResult,
)

COMPARED_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "file",
    "argument-hint",
    "namespace",
    "allowed-tools",
)
"""Wire names of the fields taking part in equality and field diffs."""

DRIFT_FIELDS: tuple[str, ...] = ("description", "allowed-tools", "argument-hint")
"""Fields that reveal a local copy diverging from its repository version."""

_ACCESSORS: dict[str, Callable[[Command], Any]] = {
    "name": lambda command: command.name,
    "description": lambda command: command.description.strip(),
    "file": lambda command: command.file,
    "argument-hint": lambda command: command.argument_hint or None,
    "namespace": lambda command: command.namespace,
    "allowed-tools": lambda command: command.allowed_tool_set,
}


def _field_value(command: Command, field_name: str) -> Any:
    try:
        return _ACCESSORS[field_name](command)
    except KeyError:
        raise ValueError(f"Unknown command field: {field_name}") from None


class ManifestComparator:
    """Pure comparison of manifests and commands; holds no state."""

    def compare_manifests(self, old: Manifest, new: Manifest) -> ManifestComparisonResult:
        old_by_name = {command.name: command for command in old.commands}
        new_by_name = {command.name: command for command in new.commands}

        changes: list[ChangeRecord] = []
        added = modified = removed = 0

        for name, new_command in new_by_name.items():
            old_command = old_by_name.get(name)
            if old_command is None:
                changes.append(ChangeRecord(type="added", name=name, new_command=new_command))
                added += 1
                continue
            diffs = self.diff_commands(old_command, new_command)
            if diffs:
                changes.append(
                    ChangeRecord(
                        type="modified",
                        name=name,
                        old_command=old_command,
                        new_command=new_command,
                        field_diffs=tuple(diffs),
                    )
                )
                modified += 1

        for name, old_command in old_by_name.items():
            if name not in new_by_name:
                changes.append(ChangeRecord(type="removed", name=name, old_command=old_command))
                removed += 1

        return ManifestComparisonResult(
            old_manifest=old,
            new_manifest=new,
            summary=ChangeSummary(added=added, removed=removed, modified=modified),
            changes=tuple(changes),
            compared_at=datetime.now(timezone.utc).isoformat(),
        )

    def are_manifests_identical(self, old: Manifest, new: Manifest) -> bool:
        if len(old.commands) != len(new.commands):
            return False
        if old.version != new.version or old.updated != new.updated:
            return False

        new_by_name = {command.name: command for command in new.commands}
        for command in old.commands:
            other = new_by_name.get(command.name)
            if other is None or not self.commands_equal(command, other):
                return False
        return True

    def commands_equal(
        self, first: Command, second: Command, fields: Sequence[str] = COMPARED_FIELDS
    ) -> bool:
        return all(_field_value(first, name) == _field_value(second, name) for name in fields)

    def diff_commands(
        self, old: Command, new: Command, fields: Sequence[str] = COMPARED_FIELDS
    ) -> list[FieldDiff]:
        """
        Field-level differences between two commands.

        ``allowed-tools`` diffs report the tools as declared (in order), even
        though the comparison itself ignores order and duplicates.
        """
        diffs: list[FieldDiff] = []
        for name in fields:
            if _field_value(old, name) == _field_value(new, name):
                continue
            if name == "allowed-tools":
                diffs.append(FieldDiff(name, list(old.allowed_tools), list(new.allowed_tools)))
            else:
                diffs.append(FieldDiff(name, _field_value(old, name), _field_value(new, name)))
        return diffs

    def has_local_changes(self, local: Command, repository: Command) -> bool:
        return not self.commands_equal(local, repository, DRIFT_FIELDS)
