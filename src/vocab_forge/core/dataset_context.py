"""Dataset context (app, language) and list-view filtering."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

from vocab_forge.core.vocabulary_item import VocabularyItem


@dataclass(frozen=True)
class DatasetContext:
    """The partition of the catalog a user is working on."""

    app_name: str
    target_language: str

    def contains(self, item: VocabularyItem) -> bool:
        return item.in_context(self.app_name, self.target_language)

    def select(self, items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
        """Return the items in this context, preserving catalog order."""
        return [item for item in items if self.contains(item)]


class CompletenessFilter(str, Enum):
    ALL = "all"
    MISSING_IMAGE = "missing_img"
    MISSING_AUDIO = "missing_audio"
    MISSING_TRANSLATIONS = "missing_trans"


@dataclass(frozen=True)
class ViewFilter:
    """Search and completeness narrowing applied on top of a context view."""

    search: str = ""
    completeness: CompletenessFilter = CompletenessFilter.ALL

    def matches(self, item: VocabularyItem) -> bool:
        needle = self.search.strip().lower()
        if needle:
            english = (item.translations.get("en") or "").lower()
            if needle not in item.term.lower() and needle not in english:
                return False

        if self.completeness is CompletenessFilter.MISSING_IMAGE:
            return not item.image_ref
        if self.completeness is CompletenessFilter.MISSING_AUDIO:
            return not item.audio_ref
        if self.completeness is CompletenessFilter.MISSING_TRANSLATIONS:
            return not item.translations
        return True

    def apply(self, items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
        return [item for item in items if self.matches(item)]
