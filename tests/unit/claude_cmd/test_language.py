import pytest

from claude_cmd.core.exceptions import InvalidLocaleError
from claude_cmd.language import LanguageDetector, parse_locale, sanitize_language_code


@pytest.mark.parametrize(
    ("locale", "expected"),
    [
        ("fr_FR.UTF-8", "fr"),
        ("de_DE@euro", "de"),
        ("en-US", "en"),
        ("es", "es"),
        ("PT_br.utf8", "pt"),
        ("fil_PH", "fil"),
    ],
)
def test_parse_locale(locale: str, expected: str) -> None:
    assert parse_locale(locale) == expected


@pytest.mark.parametrize("locale", ["", "   ", "C", "POSIX", "c", "_US", "english_US", "1x_YY"])
def test_parse_locale_rejects(locale: str) -> None:
    with pytest.raises(InvalidLocaleError):
        parse_locale(locale)


def test_sanitize_language_code() -> None:
    assert sanitize_language_code(" FR ") == "fr"
    assert sanitize_language_code("english") == ""
    assert sanitize_language_code(None) == ""


def test_precedence() -> None:
    detector = LanguageDetector(environ={})
    assert detector.detect("es", "fr", "de", "it_IT.UTF-8") == "es"
    assert detector.detect(None, "fr", "de", "it_IT.UTF-8") == "fr"
    assert detector.detect("", "", "de", "it_IT.UTF-8") == "de"
    assert detector.detect(None, None, None, "it_IT.UTF-8") == "it"
    assert detector.detect() == "en"


def test_invalid_candidates_fall_through() -> None:
    detector = LanguageDetector(environ={})
    assert detector.detect("english", "12", None, "C") == "en"
    assert detector.detect("x", None, "fr") == "fr"


def test_detect_from_environment() -> None:
    detector = LanguageDetector(environ={"CLAUDE_CMD_LANG": "de", "LANG": "fr_FR.UTF-8"})
    assert detector.detect_from_environment() == "de"
    assert detector.detect_from_environment(cli_flag="ja") == "ja"


def test_system_locale_order() -> None:
    detector = LanguageDetector(environ={"LANG": "fr_FR.UTF-8", "LC_ALL": "es_ES.UTF-8"})
    assert detector.system_locale() == "es_ES.UTF-8"
    assert detector.detect_from_environment(config_language=None) == "es"
    assert LanguageDetector(environ={}).system_locale() == ""


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("LANG", "ko_KR.UTF-8")
    assert LanguageDetector().detect_from_environment() == "ko"
