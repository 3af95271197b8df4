"""Generation Service - abstract content-generation capability."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from vocab_forge.core import GenerationError, SentenceToken

# The model answers with underscore keys for the Chinese variants.
_KEY_ALIASES = {"zh_cn": "zh-rCN", "zh_tw": "zh-rTW"}


def _language_map(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, Mapping):
        return {}
    result: Dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            continue
        result[_KEY_ALIASES.get(key, key)] = str(value)
    return result


@dataclass(frozen=True)
class GeneratedContent:
    """Structured linguistic data produced for one term."""

    script: str = ""
    phonetic: str = ""
    variant: str = ""
    part_of_speech: str = ""
    translations: Dict[str, str] = field(default_factory=dict)
    example_sentence: str = ""
    example_tokens: Tuple[SentenceToken, ...] = ()
    example_script: str = ""
    example_translations: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Any) -> "GeneratedContent":
        """Parse a generator payload (model JSON or backend response).

        Raises:
            GenerationError: If the payload is not an object or lacks a
                required field. Partial payloads are rejected as a whole.
        """
        if not isinstance(data, Mapping):
            raise GenerationError("Generator returned a non-object payload")
        missing = [key for key in ("translations", "exampleSentence") if key not in data]
        if missing:
            raise GenerationError(f"Generator payload missing fields: {missing}")

        raw_tokens = data.get("exampleSentenceTokens") or data.get("exampleSentenceStructure") or []
        tokens = tuple(
            SentenceToken.from_dict({**token, "translations": _language_map(token.get("translations"))})
            for token in raw_tokens
            if isinstance(token, Mapping)
        )
        return cls(
            script=str(data.get("script") or ""),
            phonetic=str(data.get("phonetic") or ""),
            variant=str(data.get("variant") or ""),
            part_of_speech=str(data.get("partOfSpeech") or ""),
            translations=_language_map(data.get("translations")),
            example_sentence=str(data.get("exampleSentence") or ""),
            example_tokens=tokens,
            example_script=str(data.get("exampleScript") or ""),
            example_translations=_language_map(data.get("exampleTranslations")),
        )

    def to_delta(self) -> Dict[str, Any]:
        """Item fields to write, replacing the previous enrichment."""
        return {
            "script": self.script,
            "phonetic": self.phonetic,
            "variant": self.variant,
            "part_of_speech": self.part_of_speech,
            "translations": dict(self.translations),
            "example_sentence": self.example_sentence,
            "example_tokens": self.example_tokens,
            "example_script": self.example_script,
            "example_translation": self.example_translations.get("en"),
            "example_translations": dict(self.example_translations),
        }


@dataclass
class GenerationResult:
    """Result of a text generation request."""

    content: Optional[GeneratedContent]
    model: str
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        """True if generation failed."""
        return self.error is not None or self.content is None


@dataclass
class MediaResult:
    """Result of an image or audio generation request."""

    data_uri: Optional[str]
    model: str
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None or not self.data_uri


class GenerationService(ABC):
    """
    Abstract capability: given a term and a language, return linguistic data,
    an image, or audio.

    Implementations never raise for remote failures; they report them in the
    result's ``error`` so the caller can record an all-or-nothing outcome.
    """

    @abstractmethod
    def generate(self, term: str, language_name: str) -> GenerationResult:
        """
        Generate linguistic data for a term.

        Args:
            term: Source word or phrase.
            language_name: Display name of the term's language (e.g. "Spanish").

        Returns:
            GenerationResult with content or an error message.
        """
        pass

    @abstractmethod
    def generate_image(self, term: str, prompt: Optional[str] = None) -> MediaResult:
        """Generate an illustration for a term; returns a data URI."""
        pass

    @abstractmethod
    def generate_audio(self, text: str, voice: str = "Kore", style: str = "Natural") -> MediaResult:
        """Synthesize speech for text; returns a data URI."""
        pass

    def close(self) -> None:
        """Release transport resources. Services without any keep the default."""
