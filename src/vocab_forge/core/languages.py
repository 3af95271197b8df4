"""Supported dataset languages and display-name lookup."""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Language:
    code: str
    name: str


SUPPORTED_LANGUAGES: List[Language] = [
    Language("en", "English"),
    Language("ar", "Arabic"),
    Language("de", "German"),
    Language("es", "Spanish"),
    Language("fr", "French"),
    Language("in", "Indonesian"),
    Language("it", "Italian"),
    Language("ja", "Japanese"),
    Language("ko", "Korean"),
    Language("pl", "Polish"),
    Language("pt", "Portuguese"),
    Language("ru", "Russian"),
    Language("th", "Thai"),
    Language("tr", "Turkish"),
    Language("vi", "Vietnamese"),
    Language("zh-rCN", "Chinese (Simplified)"),
    Language("zh-rTW", "Chinese (Traditional)"),
]

LANGUAGE_CODES = frozenset(lang.code for lang in SUPPORTED_LANGUAGES)

DEFAULT_LANGUAGE = "en"

_NAMES: Dict[str, str] = {lang.code: lang.name for lang in SUPPORTED_LANGUAGES}


def language_name(code: str) -> str:
    """Return the display name for a language code, falling back to English."""
    return _NAMES.get(code, _NAMES[DEFAULT_LANGUAGE])


def is_supported(code: str) -> bool:
    return code in LANGUAGE_CODES
