from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CommandSource = Literal["repository", "personal", "project"]
InstallLocation = Literal["personal", "project"]

SOURCE_ORDER: tuple[CommandSource, ...] = ("repository", "personal", "project")


def normalize_allowed_tools(value: Any) -> tuple[str, ...]:
    """
    Normalize the ``allowed-tools`` union to an ordered, de-duplicated tuple.

    A string is split on commas (``"Bash, Read"``); a list must contain only
    strings. Blank entries are dropped and first occurrence wins.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        if not all(isinstance(item, str) for item in value):
            raise ValueError("allowed-tools list entries must all be strings")
        items = list(value)
    else:
        raise ValueError("allowed-tools must be a string or a list of strings")

    tools: list[str] = []
    for item in items:
        tool = item.strip()
        if tool and tool not in tools:
            tools.append(tool)
    return tuple(tools)


class Command(BaseModel):
    """A single installable command, as listed in a manifest or found on disk."""

    name: str
    description: str
    file: str
    allowed_tools: tuple[str, ...] = Field(alias="allowed-tools")
    argument_hint: str | None = Field(default=None, alias="argument-hint")
    namespace: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("allowed_tools", mode="before")
    @classmethod
    def _normalize_tools(cls, value: Any) -> tuple[str, ...]:
        return normalize_allowed_tools(value)

    @property
    def allowed_tool_set(self) -> frozenset[str]:
        return frozenset(self.allowed_tools)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Manifest(BaseModel):
    """Immutable snapshot of the command catalog for one language or source."""

    version: str = ""
    updated: str = ""
    commands: tuple[Command, ...]

    model_config = ConfigDict(frozen=True, extra="ignore")

    def find(self, name: str) -> Command | None:
        for command in self.commands:
            if command.name == name:
                return command
        return None

    def to_wire(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "updated": self.updated,
            "commands": [command.to_wire() for command in self.commands],
        }


class InstallationStatus(BaseModel):
    is_installed: bool
    install_location: InstallLocation | None = None
    install_path: str | None = None
    has_local_changes: bool = False

    model_config = ConfigDict(frozen=True)


class EnrichedCommand(Command):
    """A command merged across the repository and both local roots."""

    source: CommandSource
    available_in_sources: tuple[CommandSource, ...]
    installation_status: InstallationStatus | None = None


class LanguageInfo(BaseModel):
    code: str
    name: str
    command_count: int = 0
    available: bool = True

    model_config = ConfigDict(frozen=True)
