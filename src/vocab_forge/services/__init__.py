"""Services layer - catalog persistence, permissions and external integrations."""

from vocab_forge.services.app_registry import AppRegistry
from vocab_forge.services.catalog_store import CatalogStore, merge_by_id
from vocab_forge.services.export_service import ExportService
from vocab_forge.services.identity_allocator import IdentityAllocator
from vocab_forge.services.permission_evaluator import PermissionEvaluator
from vocab_forge.services.session_service import SessionService
from vocab_forge.services.settings_manager import SettingsManager

# Generation services
from vocab_forge.services.generation import (
    GeneratedContent,
    GenerationResult,
    GenerationService,
    GeminiGenerationService,
    HttpGenerationService,
    MediaResult,
)

__all__ = [
    "AppRegistry",
    "CatalogStore",
    "ExportService",
    "GeneratedContent",
    "GenerationResult",
    "GenerationService",
    "GeminiGenerationService",
    "HttpGenerationService",
    "IdentityAllocator",
    "MediaResult",
    "PermissionEvaluator",
    "SessionService",
    "SettingsManager",
    "merge_by_id",
]
