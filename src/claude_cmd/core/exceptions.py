"""
Exception taxonomy for claude-cmd.

Transport errors (``HTTPError`` and subclasses) are raised by the HTTP client
only; repositories translate them into ``ManifestError`` or
``CommandContentError`` and keep the original on ``cause``.
"""

from __future__ import annotations

from pathlib import Path


class ClaudeCmdError(Exception):
    """Base class for every error claude-cmd raises on purpose."""

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# --- transport ---------------------------------------------------------------


class HTTPError(ClaudeCmdError):
    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class HTTPTimeoutError(HTTPError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Request timed out after {timeout:g}s", url)
        self.timeout = timeout


class HTTPNetworkError(HTTPError):
    def __init__(self, url: str, reason: str | None = None) -> None:
        super().__init__(f"Network error: {reason or 'Connection failed'}", url)
        self.reason = reason


class HTTPStatusError(HTTPError):
    def __init__(self, url: str, status: int, status_text: str) -> None:
        super().__init__(f"HTTP {status}: {status_text}", url)
        self.status = status
        self.status_text = status_text


# --- repositories ------------------------------------------------------------


class RepositoryError(ClaudeCmdError):
    def __init__(self, message: str, language: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.language = language
        self.cause = cause


class ManifestError(RepositoryError):
    """The manifest for a language could not be retrieved or is malformed."""

    def __init__(
        self,
        language: str,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f'Failed to retrieve manifest for language "{language}": {reason or "Unknown error"}',
            language,
            cause,
        )
        self.reason = reason


class CommandNotFoundError(RepositoryError):
    def __init__(self, name: str, language: str) -> None:
        super().__init__(f'Command "{name}" not found in language "{language}"', language)
        self.name = name


class CommandContentError(RepositoryError):
    def __init__(
        self,
        name: str,
        language: str,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f'Failed to retrieve content for command "{name}" in language "{language}": '
            f"{reason or 'Unknown error'}",
            language,
            cause,
        )
        self.name = name
        self.reason = reason


# --- cache ---------------------------------------------------------------------


class InvalidCacheKeyError(ClaudeCmdError, ValueError):
    """A cache key component is empty or too long after sanitization."""

    def __init__(self, component: str, reason: str) -> None:
        super().__init__(f'Invalid cache key component "{component}"', reason)
        self.component = component


# --- namespaces ------------------------------------------------------------------


class NamespaceError(ClaudeCmdError):
    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class InvalidNamespaceSyntaxError(NamespaceError):
    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f'Invalid namespace syntax "{raw}": {reason}', raw)
        self.reason = reason


class NamespaceValidationError(NamespaceError):
    def __init__(self, raw: str, violated_bound: str, actual_depth: int) -> None:
        super().__init__(
            f'Namespace "{raw}" violates constraint "{violated_bound}": {actual_depth}',
            raw,
        )
        self.violated_bound = violated_bound
        self.actual_depth = actual_depth


# --- command files ------------------------------------------------------------------


class CommandParseError(ClaudeCmdError):
    def __init__(
        self,
        message: str,
        name: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.name = name
        self.cause = cause


# --- installation -------------------------------------------------------------------


class InstallationError(ClaudeCmdError):
    def __init__(
        self,
        message: str,
        operation: str,
        name: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.name = name
        self.cause = cause


class CommandExistsError(InstallationError):
    def __init__(self, name: str, path: Path) -> None:
        super().__init__(
            f"Command '{name}' already exists at {path}. Use --force to overwrite.",
            "install",
            name,
        )
        self.path = path


class CommandNotInstalledError(InstallationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Command '{name}' is not installed.", "remove", name)


class PathEscapeError(InstallationError):
    """A command name would place a file outside its commands directory."""

    def __init__(self, name: str, base_dir: Path, operation: str = "install") -> None:
        super().__init__(
            f"Command name '{name}' resolves outside of {base_dir}. "
            "Names may not be absolute or contain '.' or '..' segments.",
            operation,
            name,
        )
        self.base_dir = base_dir


class InvalidCommandFileError(InstallationError):
    def __init__(self, name: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Invalid command file format for '{name}'", "install", name, cause)


# --- service layer -----------------------------------------------------------------


class CommandServiceError(ClaudeCmdError):
    def __init__(
        self,
        message: str,
        operation: str,
        language: str = "unknown",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.language = language
        self.cause = cause


class StatusError(ClaudeCmdError):
    """System status could not be collected."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


# --- language --------------------------------------------------------------------


class InvalidLocaleError(ClaudeCmdError, ValueError):
    """A POSIX locale string has no usable language component."""

    def __init__(self, locale: str, reason: str) -> None:
        super().__init__(f'Invalid locale "{locale}"', reason)
        self.locale = locale
