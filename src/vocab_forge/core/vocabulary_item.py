"""Vocabulary catalog entities and the pure patch function applied to them."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from vocab_forge.core.errors import ValidationError


class ItemStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class SentenceToken:
    """One segment of a tokenized example sentence."""

    word: str
    script: str = ""
    variant: Optional[str] = None
    translation: str = ""
    translations: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SentenceToken":
        variant = raw.get("variant")
        return cls(
            word=str(raw.get("word") or ""),
            script=str(raw.get("script") or raw.get("reading") or ""),
            variant=str(variant) if variant else None,
            translation=str(raw.get("translation") or ""),
            translations={
                str(k): str(v) for k, v in (raw.get("translations") or {}).items() if v is not None
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "word": self.word,
            "script": self.script,
            "translation": self.translation,
            "translations": dict(self.translations),
        }
        if self.variant:
            data["variant"] = self.variant
        return data


@dataclass(frozen=True)
class VocabularyItem:
    """A single catalog entry.

    Attributes:
        id: Opaque unique identifier used for merge and dedup.
        int_id: Human-facing sequence number, unique and never reused.
        app_name: Application part of the dataset context.
        target_language: Language code part of the dataset context.
        term: Source word or phrase.
        status: Enrichment lifecycle state.
        translations: Language code -> translated term.
        example_tokens: Segmented example sentence.
        example_translations: Language code -> translated example sentence.
        image_ref: Generated image as a data URI.
        audio_ref: Generated pronunciation audio as a data URI.
    """

    id: str
    int_id: int
    app_name: str
    target_language: str
    term: str
    status: ItemStatus = ItemStatus.PENDING
    original_index: int = 0
    script: Optional[str] = None
    phonetic: Optional[str] = None
    variant: Optional[str] = None
    part_of_speech: Optional[str] = None
    translations: Dict[str, str] = field(default_factory=dict)
    example_sentence: Optional[str] = None
    example_tokens: Tuple[SentenceToken, ...] = ()
    example_script: Optional[str] = None
    example_translation: Optional[str] = None
    example_translations: Dict[str, str] = field(default_factory=dict)
    image_ref: Optional[str] = None
    image_prompt: Optional[str] = None
    audio_ref: Optional[str] = None

    def in_context(self, app_name: str, target_language: str) -> bool:
        return self.app_name == app_name and self.target_language == target_language


IMMUTABLE_FIELDS = frozenset({"id", "int_id", "app_name", "target_language"})

MUTABLE_FIELDS = frozenset(f.name for f in fields(VocabularyItem)) - IMMUTABLE_FIELDS


def patch(current: VocabularyItem, delta: Mapping[str, Any]) -> VocabularyItem:
    """Return a copy of ``current`` with ``delta`` applied.

    Map fields are replaced wholesale; callers that need to merge maps build
    the merged map from ``current`` first. Unknown and immutable fields are
    rejected so a stray key can never move an item between contexts.

    Raises:
        ValidationError: If ``delta`` names an immutable or unknown field.
    """
    changes: Dict[str, Any] = {}
    for name, value in delta.items():
        if name in IMMUTABLE_FIELDS:
            if getattr(current, name) != value:
                raise ValidationError(f"Field '{name}' is immutable")
            continue
        if name not in MUTABLE_FIELDS:
            raise ValidationError(f"Unknown field: {name}")
        if name == "status":
            value = ItemStatus(value)
        elif name in ("translations", "example_translations"):
            value = dict(value or {})
        elif name == "example_tokens":
            value = tuple(
                token if isinstance(token, SentenceToken) else SentenceToken.from_dict(token)
                for token in (value or ())
            )
        changes[name] = value
    if not changes:
        return current
    return replace(current, **changes)
