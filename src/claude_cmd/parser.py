from __future__ import annotations

import re
from pathlib import PurePath, PurePosixPath
from typing import Any

import frontmatter
import yaml

from claude_cmd.constants import COMMAND_FILE_SUFFIX
from claude_cmd.core.exceptions import CommandParseError, InvalidNamespaceSyntaxError
from claude_cmd.core.logging.logger import get_logger
from claude_cmd.namespace import NamespaceParser
from claude_cmd.types import Command, normalize_allowed_tools

logger = get_logger(__name__)

CORE_TOOLS = frozenset(
    {
        "Bash",
        "Edit",
        "Glob",
        "Grep",
        "LS",
        "MultiEdit",
        "NotebookEdit",
        "NotebookRead",
        "Read",
        "Task",
        "TodoWrite",
        "WebFetch",
        "WebSearch",
        "Write",
    }
)

# mcp__<server>__<tool>
_MCP_TOOL_PATTERN = re.compile(r"^mcp__[a-zA-Z0-9_]+__[a-zA-Z0-9_]+$")
# Bash(git status:*) or Bash(npm:*, yarn:*)
_BASH_TOOL_PATTERN = re.compile(r"^Bash\([a-zA-Z0-9_\-,:*\s]+\)$")
_WINDOWS_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")


def is_allowed_tool(tool: str) -> bool:
    return (
        tool in CORE_TOOLS
        or bool(_MCP_TOOL_PATTERN.match(tool))
        or bool(_BASH_TOOL_PATTERN.match(tool))
    )


class CommandParser:
    """
    Turns command markdown files into :class:`Command` models.

    Frontmatter is optional. When present it must provide a ``description``;
    ``allowed-tools`` is checked against :data:`CORE_TOOLS`, MCP tool names and
    ``Bash(...)`` patterns. A file without frontmatter becomes a command with a
    generated description and no tool grants.
    """

    def __init__(self, namespaces: NamespaceParser | None = None) -> None:
        self._namespaces = namespaces or NamespaceParser()

    def parse_command_file(self, content: str, location: str | PurePath) -> Command:
        """
        Parse ``content``.

        Args:
            content: Raw markdown, optionally with YAML frontmatter
            location: Path relative to a commands root (``frontend/component.md``)
                or a command name (``frontend:component``)

        Raises:
            CommandParseError: invalid YAML, missing description, or a security violation
        """
        name, namespace, file = self._identify(location)

        try:
            post = frontmatter.loads(content)
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            raise CommandParseError("Invalid YAML frontmatter", name, exc) from exc

        metadata = post.metadata if isinstance(post.metadata, dict) else {}
        if not metadata:
            return Command(
                name=name,
                description=f"Custom slash command: {name}",
                file=file,
                allowed_tools=(),
                namespace=namespace,
            )

        description = metadata.get("description")
        if not isinstance(description, str) or not description.strip():
            raise CommandParseError("Command file missing required 'description' field", name)

        self._check_file_reference(metadata.get("file"), name)

        try:
            tools = normalize_allowed_tools(metadata.get("allowed-tools"))
        except ValueError as exc:
            raise CommandParseError(str(exc), name, exc) from exc
        for tool in tools:
            if not is_allowed_tool(tool):
                raise CommandParseError(f"Security violation: tool '{tool}' is not allowed", name)

        argument_hint = metadata.get("argument-hint")
        if argument_hint is not None and not isinstance(argument_hint, str):
            argument_hint = str(argument_hint)

        return Command(
            name=name,
            description=description.strip(),
            file=file,
            allowed_tools=tools,
            argument_hint=argument_hint or None,
            namespace=namespace,
        )

    def validate_command_file(self, content: str) -> bool:
        try:
            self.parse_command_file(content, "validation-test")
        except CommandParseError as exc:
            logger.debug("Command file failed validation", data={"error": str(exc)})
            return False
        return True

    def _identify(self, location: str | PurePath) -> tuple[str, str | None, str]:
        raw = str(location).replace("\\", "/")
        if isinstance(location, PurePath) or "/" in raw or raw.endswith(COMMAND_FILE_SUFFIX):
            path = PurePosixPath(raw)
            leaf = path.name
            if leaf.endswith(COMMAND_FILE_SUFFIX):
                leaf = leaf[: -len(COMMAND_FILE_SUFFIX)]
            namespace = self._namespace_from(str(path.parent))
            name = f"{namespace}:{leaf}" if namespace else leaf
            return name, namespace, raw

        # A bare command name, possibly namespaced
        namespace = None
        if ":" in raw:
            namespace = self._namespace_from(raw.rsplit(":", 1)[0])
        try:
            file = f"{self._namespaces.to_path(raw)}{COMMAND_FILE_SUFFIX}"
        except InvalidNamespaceSyntaxError:
            file = f"{raw}{COMMAND_FILE_SUFFIX}"
        return raw, namespace, file

    def _namespace_from(self, directory: str) -> str | None:
        if directory in ("", ".", "/"):
            return None
        try:
            return self._namespaces.to_colon_separated(directory)
        except InvalidNamespaceSyntaxError:
            return None

    @staticmethod
    def _check_file_reference(file_value: Any, name: str) -> None:
        if file_value is None:
            return
        if not isinstance(file_value, str):
            raise CommandParseError("Frontmatter 'file' must be a string", name)
        if ".." in file_value:
            raise CommandParseError("Security violation: file path contains path traversal", name)
        if file_value.startswith("/") or _WINDOWS_DRIVE_PATTERN.match(file_value):
            raise CommandParseError("Security violation: file path must be relative", name)
