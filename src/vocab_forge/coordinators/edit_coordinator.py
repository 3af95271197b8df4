"""Edit Coordinator - permission-gated manual edits and deletion."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from vocab_forge.core import (
    COMMON,
    ItemStatus,
    SentenceToken,
    User,
    ValidationError,
    VocabularyItem,
)
from vocab_forge.core.vocabulary_item import MUTABLE_FIELDS
from vocab_forge.services.catalog_store import CatalogStore
from vocab_forge.services.permission_evaluator import LANGUAGE_KEYED_FIELDS, PermissionEvaluator

logger = logging.getLogger(__name__)

# Managed by the pipeline, not by manual edits.
_NON_EDITABLE = frozenset({"status"})


@dataclass(frozen=True)
class FieldAccess:
    """What a user may change on one item."""

    common: bool
    languages: FrozenSet[str]

    def allows(self, field_name: str, language: Optional[str] = None) -> bool:
        if field_name in LANGUAGE_KEYED_FIELDS:
            return language in self.languages
        return self.common

    @property
    def read_only(self) -> bool:
        return not self.common and not self.languages


class EditCoordinator(QObject):
    """Applies user edits through the catalog store.

    A save is checked as a whole: if any changed field or language is out of
    the user's scopes, nothing is written.
    """

    item_saved = Signal(str)
    items_deleted = Signal(list)

    def __init__(
        self,
        catalog_store: CatalogStore,
        permission_evaluator: Optional[PermissionEvaluator] = None,
    ):
        super().__init__()

        if catalog_store is None:
            raise ValueError("CatalogStore must not be None")

        self.catalog_store = catalog_store
        self.permission_evaluator = permission_evaluator or PermissionEvaluator()

    def editable_fields(self, user: Optional[User], item: VocabularyItem) -> FieldAccess:
        scopes = self.permission_evaluator.editable_scopes(user, item.app_name)
        return FieldAccess(common=COMMON in scopes, languages=frozenset(scopes - {COMMON}))

    def save(
        self, user: Optional[User], item_id: str, changes: Mapping[str, Any]
    ) -> Optional[VocabularyItem]:
        """
        Apply field changes and mark the item completed.

        Language-keyed fields take a partial mapping ``{language: text}`` that
        is merged into the item's current map; every other field is replaced.

        Returns:
            The saved item, or None if it no longer exists.

        Raises:
            PermissionDeniedError: If any change is outside the user's scopes.
            ValidationError: If a field is unknown or not editable.
        """
        item = self.catalog_store.get(item_id)
        if item is None:
            return None
        for scope in self._required_scopes(changes):
            self.permission_evaluator.require(user, item.app_name, scope)

        def build_delta(current: VocabularyItem) -> Dict[str, Any]:
            delta: Dict[str, Any] = {}
            for name, value in changes.items():
                if name in LANGUAGE_KEYED_FIELDS:
                    merged = dict(getattr(current, name))
                    merged.update({lang: str(text) for lang, text in value.items()})
                    delta[name] = merged
                else:
                    delta[name] = value
            delta["status"] = ItemStatus.COMPLETED
            return delta

        saved = self.catalog_store.update_with(item_id, build_delta)
        if saved is not None:
            self.item_saved.emit(item_id)
        return saved

    def update_token(
        self, user: Optional[User], item_id: str, index: int, token: SentenceToken
    ) -> Optional[VocabularyItem]:
        """Replace one example-sentence token, or append it when ``index`` is past the end."""
        item = self.catalog_store.get(item_id)
        if item is None:
            return None
        tokens = list(item.example_tokens)
        if 0 <= index < len(tokens):
            tokens[index] = token
        else:
            tokens.append(token)
        return self.save(user, item_id, {"example_tokens": tuple(tokens)})

    def remove_token(self, user: Optional[User], item_id: str, index: int) -> Optional[VocabularyItem]:
        item = self.catalog_store.get(item_id)
        if item is None:
            return None
        if not 0 <= index < len(item.example_tokens):
            raise ValidationError(f"No token at position {index}")
        tokens = item.example_tokens[:index] + item.example_tokens[index + 1:]
        return self.save(user, item_id, {"example_tokens": tokens})

    def delete(self, user: Optional[User], ids: Iterable[str]) -> List[VocabularyItem]:
        """
        Permanently delete items from both tiers.

        Raises:
            PermissionDeniedError: If the user is not an administrator.
        """
        self.permission_evaluator.require_admin(user, "delete items")
        id_list = list(ids)
        remaining = self.catalog_store.delete_batch(id_list)
        logger.info("%s deleted %d item(s)", user.username, len(id_list))
        self.items_deleted.emit(id_list)
        return remaining

    def _required_scopes(self, changes: Mapping[str, Any]) -> Tuple[str, ...]:
        scopes = []
        for name, value in changes.items():
            if name not in MUTABLE_FIELDS or name in _NON_EDITABLE:
                raise ValidationError(f"Field '{name}' cannot be edited")
            if name in LANGUAGE_KEYED_FIELDS:
                if not isinstance(value, Mapping):
                    raise ValidationError(f"Field '{name}' expects a language -> text mapping")
                for language in value:
                    scopes.append(self.permission_evaluator.scope_for_field(name, language))
            else:
                scopes.append(self.permission_evaluator.scope_for_field(name))
        if not scopes:
            raise ValidationError("Nothing to save")
        return tuple(dict.fromkeys(scopes))

