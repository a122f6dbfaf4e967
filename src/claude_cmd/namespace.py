"""
Hierarchical command namespaces.

A namespace is written either colon-separated (``frontend:react:hooks``) or
path-style (``frontend/react/hooks``). When a colon is present it is the only
separator; otherwise slashes are used. Empty segments are dropped while
parsing, so ``frontend::component`` and ``frontend:component`` parse alike.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from claude_cmd.core.exceptions import InvalidNamespaceSyntaxError, NamespaceValidationError

DEFAULT_SEGMENT_PATTERN = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?$")
"""Alphanumerics with internal hyphens; no leading or trailing hyphen."""


@dataclass(frozen=True)
class ParsedNamespace:
    original: str
    segments: tuple[str, ...]
    canonical_path: str
    depth: int

    @property
    def colon_separated(self) -> str:
        return ":".join(self.segments)


@dataclass(frozen=True)
class NamespaceValidationOptions:
    min_depth: int = 1
    max_depth: int = 5
    segment_pattern: re.Pattern[str] = DEFAULT_SEGMENT_PATTERN
    allow_empty_segments: bool = False


DEFAULT_VALIDATION_OPTIONS = NamespaceValidationOptions()


class NamespaceParser:
    """Stateless parser and validator for namespace strings."""

    def parse(self, raw: str) -> ParsedNamespace:
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidNamespaceSyntaxError(str(raw), "Namespace cannot be empty")

        trimmed = raw.strip()
        if ":" in trimmed:
            parts = trimmed.split(":")
        elif "/" in trimmed:
            parts = trimmed.split("/")
        else:
            parts = [trimmed]

        segments = tuple(part.strip() for part in parts if part.strip())
        if not segments:
            raise InvalidNamespaceSyntaxError(raw, "No valid segments found")

        return ParsedNamespace(
            original=trimmed,
            segments=segments,
            canonical_path="/".join(segments),
            depth=len(segments),
        )

    def validate(self, raw: str, options: NamespaceValidationOptions | None = None) -> bool:
        try:
            self.validate_strict(raw, options)
        except (InvalidNamespaceSyntaxError, NamespaceValidationError):
            return False
        return True

    def validate_strict(
        self, raw: str, options: NamespaceValidationOptions | None = None
    ) -> ParsedNamespace:
        opts = options or DEFAULT_VALIDATION_OPTIONS

        if not opts.allow_empty_segments and isinstance(raw, str):
            separator = ":" if ":" in raw else "/"
            stripped = raw.strip()
            if stripped and any(not part.strip() for part in stripped.split(separator)):
                raise InvalidNamespaceSyntaxError(raw, "Empty segments are not allowed")

        parsed = self.parse(raw)

        if parsed.depth < opts.min_depth:
            raise NamespaceValidationError(raw, "minDepth", parsed.depth)
        if parsed.depth > opts.max_depth:
            raise NamespaceValidationError(raw, "maxDepth", parsed.depth)

        for segment in parsed.segments:
            if not opts.segment_pattern.match(segment):
                raise InvalidNamespaceSyntaxError(
                    raw,
                    f'Invalid segment "{segment}": must match pattern {opts.segment_pattern.pattern}',
                )
        return parsed

    def to_path(self, raw: str) -> str:
        return self.parse(raw).canonical_path

    def to_colon_separated(self, raw: str) -> str:
        return self.parse(raw).colon_separated

    def normalize(self, raw: str) -> str:
        """Colon-separated form for comparisons, or the stripped input if unparseable."""
        try:
            return self.to_colon_separated(raw)
        except InvalidNamespaceSyntaxError:
            return raw.strip() if isinstance(raw, str) else raw

    def get_parent(self, raw: str) -> str | None:
        parsed = self.parse(raw)
        if parsed.depth <= 1:
            return None
        return ":".join(parsed.segments[:-1])

    def is_parent_of(self, parent: str, child: str) -> bool:
        """True when ``parent``'s segments are a proper prefix of ``child``'s."""
        parent_segments = self.parse(parent).segments
        child_segments = self.parse(child).segments
        if len(parent_segments) >= len(child_segments):
            return False
        return child_segments[: len(parent_segments)] == parent_segments

    def get_ancestors(self, raw: str) -> list[str]:
        """Proper prefixes of ``raw``, outermost first."""
        segments = self.parse(raw).segments
        return [":".join(segments[:depth]) for depth in range(1, len(segments))]
