"""Import Coordinator - turns term lists into pending catalog items."""

import logging
from typing import Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from vocab_forge.core import DatasetContext, ItemStatus, User, ValidationError, VocabularyItem
from vocab_forge.core.languages import is_supported
from vocab_forge.core.record_normalization import normalize_item
from vocab_forge.services.app_registry import AppRegistry
from vocab_forge.services.catalog_store import CatalogStore
from vocab_forge.services.permission_evaluator import PermissionEvaluator
from vocab_forge.services.session_service import SessionService

logger = logging.getLogger(__name__)

NEW_ITEM_TERM = "New Word"


class ImportCoordinator(QObject):
    """Creates items from an import batch or the "add word" action.

    Both actions are admin-only. Column detection and file parsing happen
    upstream; this receives clean term lists.
    """

    items_imported = Signal(object)  # DatasetContext

    def __init__(
        self,
        catalog_store: CatalogStore,
        app_registry: AppRegistry,
        session_service: SessionService,
        permission_evaluator: Optional[PermissionEvaluator] = None,
    ):
        super().__init__()

        if catalog_store is None:
            raise ValueError("CatalogStore must not be None")
        if app_registry is None:
            raise ValueError("AppRegistry must not be None")

        self.catalog_store = catalog_store
        self.app_registry = app_registry
        self.session_service = session_service
        self.permission_evaluator = permission_evaluator or PermissionEvaluator()

    def import_terms(
        self,
        user: Optional[User],
        app_name: str,
        language: str,
        terms: Iterable[str],
    ) -> List[VocabularyItem]:
        """Create one pending item per non-blank term, in input order.

        The app is registered on demand and the new context becomes the
        remembered working context.

        Raises:
            PermissionDeniedError: If the user is not an administrator.
            ValidationError: If the app name is blank, the language is not
                supported, or no term survives cleaning.
        """
        self.permission_evaluator.require_admin(user, "import data")
        app_name = app_name.strip()
        if not app_name:
            raise ValidationError("App name must not be empty")
        if not is_supported(language):
            raise ValidationError(f"Unsupported language: {language}")

        cleaned = [term.strip() for term in terms if term and term.strip()]
        if not cleaned:
            raise ValidationError("No terms to import")

        app = self.app_registry.ensure_app(app_name)
        drafts = [
            normalize_item({
                "appName": app.name,
                "targetLang": language,
                "term": term,
                "originalIndex": index,
                "status": ItemStatus.PENDING.value,
            })
            for index, term in enumerate(cleaned)
        ]
        created = self.catalog_store.create_batch(drafts)

        context = DatasetContext(app_name=app.name, target_language=language)
        if self.session_service is not None:
            self.session_service.save_context(context)
        logger.info("Imported %d term(s) into %s", len(created), context)
        self.items_imported.emit(context)
        return created

    def add_single_item(
        self, user: Optional[User], context: DatasetContext, term: str = NEW_ITEM_TERM
    ) -> VocabularyItem:
        """Append one placeholder item to the context.

        Raises:
            PermissionDeniedError: If the user is not an administrator.
            ValidationError: If the server accepted the item but returned no record.
        """
        self.permission_evaluator.require_admin(user, "add words")
        draft = normalize_item({
            "appName": context.app_name,
            "targetLang": context.target_language,
            "term": term,
            "status": ItemStatus.PENDING.value,
        })
        created = self.catalog_store.create_batch([draft])
        if not created:
            raise ValidationError(f"Server returned no record for new item '{term}'")
        return created[0]
