"""Domain layer - catalog entities, contexts and permission types."""

from .app_definition import AppDefinition
from .dataset_context import CompletenessFilter, DatasetContext, ViewFilter
from .errors import (
    AuthenticationError,
    GenerationError,
    PermissionDeniedError,
    RemoteUnavailableError,
    ValidationError,
    VocabForgeError,
)
from .languages import SUPPORTED_LANGUAGES, Language, language_name
from .record_normalization import item_to_record, normalize_item, normalize_items
from .user import COMMON, PermissionMap, Role, User
from .vocabulary_item import ItemStatus, SentenceToken, VocabularyItem, patch

__all__ = [
    "AppDefinition",
    "AuthenticationError",
    "COMMON",
    "CompletenessFilter",
    "DatasetContext",
    "GenerationError",
    "ItemStatus",
    "Language",
    "PermissionDeniedError",
    "PermissionMap",
    "RemoteUnavailableError",
    "Role",
    "SUPPORTED_LANGUAGES",
    "SentenceToken",
    "User",
    "ValidationError",
    "ViewFilter",
    "VocabForgeError",
    "VocabularyItem",
    "item_to_record",
    "language_name",
    "normalize_item",
    "normalize_items",
    "patch",
]
