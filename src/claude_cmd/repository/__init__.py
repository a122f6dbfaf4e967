"""Command sources sharing the manifest/content contract."""

from claude_cmd.repository.base import Repository
from claude_cmd.repository.local import LocalRepository, ScanEntry
from claude_cmd.repository.remote import RemoteRepository, is_valid_language

__all__ = [
    "LocalRepository",
    "RemoteRepository",
    "Repository",
    "ScanEntry",
    "is_valid_language",
]
