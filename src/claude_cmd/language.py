from __future__ import annotations

import os
import re
from typing import Mapping

from claude_cmd.constants import DEFAULT_LANGUAGE, LANGUAGE_ENV_VAR
from claude_cmd.core.exceptions import InvalidLocaleError
from claude_cmd.core.logging.logger import get_logger

logger = get_logger(__name__)

_LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}$")
_LOCALE_ENV_VARS = ("LC_ALL", "LC_MESSAGES", "LANG")


def is_valid_language_code(code: str) -> bool:
    return bool(_LANGUAGE_CODE_PATTERN.match(code))


def sanitize_language_code(code: str | None) -> str:
    """Lower-cased, trimmed code, or ``""`` when it is not 2-3 letters."""
    if not code:
        return ""
    normalized = code.strip().lower()
    return normalized if is_valid_language_code(normalized) else ""


def parse_locale(locale: str) -> str:
    """
    Language part of a POSIX locale: ``fr_FR.UTF-8@euro`` -> ``fr``.

    Raises:
        InvalidLocaleError: empty input, ``C``/``POSIX``, or no 2-3 letter language
    """
    trimmed = locale.strip()
    if not trimmed:
        raise InvalidLocaleError(locale, "locale string cannot be empty")
    if trimmed.upper() in ("C", "POSIX"):
        raise InvalidLocaleError(locale, "special locale names 'C' and 'POSIX' are not supported")

    base = trimmed.split("@", 1)[0].split(".", 1)[0]
    language = re.split(r"[_-]", base, maxsplit=1)[0].lower()
    if not language:
        raise InvalidLocaleError(locale, "missing language component")
    if not is_valid_language_code(language):
        raise InvalidLocaleError(locale, "language code must be 2-3 letters")
    return language


class LanguageDetector:
    """Picks the command language from the CLI flag, environment, config and locale, in that order."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def detect(
        self,
        cli_flag: str | None = None,
        env_var: str | None = None,
        config_language: str | None = None,
        posix_locale: str | None = None,
    ) -> str:
        for candidate in (cli_flag, env_var, config_language):
            language = sanitize_language_code(candidate)
            if language:
                return language

        if posix_locale:
            try:
                return parse_locale(posix_locale)
            except InvalidLocaleError as exc:
                logger.debug("Ignoring system locale", data={"error": str(exc)})

        return DEFAULT_LANGUAGE

    def detect_from_environment(
        self, cli_flag: str | None = None, config_language: str | None = None
    ) -> str:
        return self.detect(
            cli_flag=cli_flag,
            env_var=self._environ.get(LANGUAGE_ENV_VAR),
            config_language=config_language,
            posix_locale=self.system_locale(),
        )

    def system_locale(self) -> str:
        for name in _LOCALE_ENV_VARS:
            value = self._environ.get(name)
            if value:
                return value
        return ""
