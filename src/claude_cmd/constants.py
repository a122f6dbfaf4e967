"""
Global constants for claude_cmd with minimal dependencies to avoid circular imports.
"""

DEFAULT_REPOSITORY_URL = (
    "https://raw.githubusercontent.com/claude-code-commands/commands/refs/heads/main"
)
"""Base URL; manifests live at ``{base}/commands/{lang}/manifest.json``."""

DEFAULT_LANGUAGE = "en"

DEFAULT_CACHE_TTL_SECONDS = 60 * 60
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0

CACHE_FORMAT_VERSION = "1.0"
"""Written into every cache file as ``version`` for future migrations."""

MAX_CACHE_KEY_COMPONENT_LENGTH = 255

COMMAND_FILE_SUFFIX = ".md"
INSTALL_SIDECAR_FILENAME = ".claude-cmd.json"
INSTALL_SIDECAR_SCHEMA_VERSION = 1

PERSONAL_COMMANDS_PATH = (".claude", "commands")
"""Relative to the user's home directory."""

PROJECT_COMMANDS_PATH = (".claude", "commands")
"""Relative to the working directory."""

USER_CONFIG_PATH = (".config", "claude-cmd", "config.yaml")
PROJECT_CONFIG_PATH = (".claude", "claude-cmd.yaml")

LANGUAGE_ENV_VAR = "CLAUDE_CMD_LANG"

KNOWN_LANGUAGES: dict[str, str] = {
    "en": "English",
    "fr": "Français",
    "es": "Español",
    "de": "Deutsch",
    "it": "Italiano",
    "pt": "Português",
    "ja": "日本語",
    "ko": "한국어",
    "zh": "中文",
    "ru": "Русский",
    "pl": "Polski",
    "nl": "Nederlands",
    "sv": "Svenska",
    "no": "Norsk",
    "da": "Dansk",
    "fi": "Suomi",
    "tr": "Türkçe",
    "ar": "العربية",
    "he": "עברית",
    "hi": "हिन्दी",
}
