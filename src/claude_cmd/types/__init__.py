"""Data model shared across claude-cmd services."""

from claude_cmd.types.command import (
    SOURCE_ORDER,
    Command,
    CommandSource,
    EnrichedCommand,
    InstallationStatus,
    InstallLocation,
    LanguageInfo,
    Manifest,
    normalize_allowed_tools,
)
from claude_cmd.types.comparison import (
    ChangeRecord,
    ChangeSummary,
    ChangeType,
    FieldDiff,
    ManifestComparisonResult,
)
from claude_cmd.types.installation import (
    CommandScanResult,
    DirectoryDescriptor,
    InstallationRecord,
    InstallationSummary,
    InstallSource,
    RemovalResult,
)

__all__ = [
    "SOURCE_ORDER",
    "ChangeRecord",
    "ChangeSummary",
    "ChangeType",
    "Command",
    "CommandScanResult",
    "CommandSource",
    "DirectoryDescriptor",
    "EnrichedCommand",
    "FieldDiff",
    "InstallLocation",
    "InstallSource",
    "InstallationRecord",
    "InstallationStatus",
    "InstallationSummary",
    "LanguageInfo",
    "Manifest",
    "ManifestComparisonResult",
    "RemovalResult",
    "normalize_allowed_tools",
]
