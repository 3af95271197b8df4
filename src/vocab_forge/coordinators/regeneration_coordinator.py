"""Regeneration Coordinator - manual single-item text, image and audio generation."""

import logging
from typing import Any, Dict, Optional

from PySide6.QtCore import QObject, QThreadPool, Signal

from vocab_forge.core import COMMON, ItemStatus, User, VocabularyItem, language_name
from vocab_forge.services.api_workers import RegenerationWorker
from vocab_forge.services.catalog_store import CatalogStore
from vocab_forge.services.generation import GenerationService
from vocab_forge.services.permission_evaluator import PermissionEvaluator

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "Kore"
DEFAULT_STYLE = "Natural"
VOICES = ("Kore", "Puck", "Charon", "Fenrir", "Zephyr")
STYLES = ("Natural", "Cheerfully", "Slowly", "Excitedly", "Whispering")


class RegenerationCoordinator(QObject):
    """
    Runs generation for one item outside the scheduler.

    These calls may overlap with a scheduler run on a different item. Each
    result is written with ``update_with`` against the item's latest state,
    so fields written meanwhile by another writer are preserved.
    """

    regeneration_finished = Signal(str, str)  # item id, kind
    regeneration_failed = Signal(str, str)  # item id, error message

    def __init__(
        self,
        catalog_store: CatalogStore,
        generation_service: GenerationService,
        permission_evaluator: Optional[PermissionEvaluator] = None,
    ):
        super().__init__()

        if catalog_store is None:
            raise ValueError("CatalogStore must not be None")
        if generation_service is None:
            raise ValueError("GenerationService must not be None")

        self.catalog_store = catalog_store
        self.generation_service = generation_service
        self.permission_evaluator = permission_evaluator or PermissionEvaluator()
        self.thread_pool = QThreadPool.globalInstance()

    def regenerate_text(self, user: Optional[User], item_id: str) -> Optional[VocabularyItem]:
        """
        Regenerate linguistic data for an item (admin only).

        Scalar fields are replaced; translation maps are merged into the
        current maps so manual translations for languages the model skipped
        survive. On failure the item is marked error.

        Raises:
            PermissionDeniedError: If the user is not an administrator.
        """
        self.permission_evaluator.require_admin(user, "regenerate text")
        item = self.catalog_store.get(item_id)
        if item is None:
            return None

        result = self.generation_service.generate(item.term, language_name(item.target_language))
        if result.is_error:
            logger.warning("Text regeneration failed for %r: %s", item.term, result.error)
            updated = self.catalog_store.update(item_id, {"status": ItemStatus.ERROR})
            self.regeneration_failed.emit(item_id, result.error or "Generation failed")
            return updated

        content = result.content

        def build_delta(current: VocabularyItem) -> Dict[str, Any]:
            delta = content.to_delta()
            delta["translations"] = {**current.translations, **content.translations}
            delta["example_translations"] = {
                **current.example_translations,
                **content.example_translations,
            }
            delta["example_translation"] = delta["example_translations"].get("en")
            delta["status"] = ItemStatus.COMPLETED
            return delta

        updated = self.catalog_store.update_with(item_id, build_delta)
        if updated is not None:
            self.regeneration_finished.emit(item_id, "text")
        return updated

    def generate_image(
        self, user: Optional[User], item_id: str, prompt: Optional[str] = None
    ) -> Optional[VocabularyItem]:
        """
        Generate and attach an illustration. Requires the ``common`` scope.

        A failed generation leaves the item unchanged.
        """
        item = self.catalog_store.get(item_id)
        if item is None:
            return None
        self.permission_evaluator.require(user, item.app_name, COMMON)

        result = self.generation_service.generate_image(item.term, prompt)
        if result.is_error:
            return self._media_failed(item, "image", result.error)

        delta: Dict[str, Any] = {"image_ref": result.data_uri, "status": ItemStatus.COMPLETED}
        if prompt:
            delta["image_prompt"] = prompt
        updated = self.catalog_store.update(item_id, delta)
        if updated is not None:
            self.regeneration_finished.emit(item_id, "image")
        return updated

    def generate_audio(
        self,
        user: Optional[User],
        item_id: str,
        voice: str = DEFAULT_VOICE,
        style: str = DEFAULT_STYLE,
    ) -> Optional[VocabularyItem]:
        """
        Synthesize pronunciation of the term. Requires the ``common`` scope.

        A failed generation leaves the item unchanged.
        """
        item = self.catalog_store.get(item_id)
        if item is None:
            return None
        self.permission_evaluator.require(user, item.app_name, COMMON)

        result = self.generation_service.generate_audio(item.term, voice=voice, style=style)
        if result.is_error:
            return self._media_failed(item, "audio", result.error)

        updated = self.catalog_store.update(
            item_id, {"audio_ref": result.data_uri, "status": ItemStatus.COMPLETED}
        )
        if updated is not None:
            self.regeneration_finished.emit(item_id, "audio")
        return updated

    def start(self, kind: str, user: Optional[User], item_id: str, **options: Any) -> None:
        """Run one regeneration (``text``, ``image`` or ``audio``) on the Qt thread pool.

        Results arrive through ``regeneration_finished`` / ``regeneration_failed``.
        """
        actions = {
            "text": self.regenerate_text,
            "image": self.generate_image,
            "audio": self.generate_audio,
        }
        if kind not in actions:
            raise ValueError(f"Unknown regeneration kind: {kind}")
        action = actions[kind]
        worker = RegenerationWorker(lambda: action(user, item_id, **options), label=f"{kind} generation")
        worker.signals.error.connect(lambda message: self.regeneration_failed.emit(item_id, message))
        self.thread_pool.start(worker)

    def _media_failed(self, item: VocabularyItem, kind: str, error: Optional[str]) -> None:
        logger.warning("%s generation failed for %r: %s", kind.capitalize(), item.term, error)
        self.regeneration_failed.emit(item.id, error or f"{kind} generation failed")
        return None
