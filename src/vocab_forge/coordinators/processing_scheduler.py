"""Processing Scheduler - sequential enrichment of pending items in one context."""

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from PySide6.QtCore import QObject, QThreadPool, Signal

from vocab_forge.core import DatasetContext, ItemStatus, User, VocabularyItem, language_name
from vocab_forge.services.api_workers import SchedulerWorker
from vocab_forge.services.catalog_store import CatalogStore
from vocab_forge.services.generation import GenerationResult, GenerationService
from vocab_forge.services.permission_evaluator import PermissionEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessingOutcome:
    """What happened to one item in one step.

    ``status`` is None when the item disappeared (deleted) while its
    generation call was in flight; nothing was written in that case.
    """

    item_id: str
    status: Optional[ItemStatus]
    error: Optional[str] = None


class ProcessingScheduler(QObject):
    """
    Drives pending items of the active context through generation.

    Responsibilities:
    - Pick the first pending item of the active context in catalog order.
    - Mark it loading (local only), call the generator, then record
      completed with the generated fields or error.
    - Keep at most one item loading at a time.
    - Stop after the in-flight item when the context changes.

    Error items are never retried automatically; ``reset_to_pending``
    re-queues them explicitly, along with items left loading by a run that
    never finished.
    """

    item_started = Signal(str)
    item_finished = Signal(str, str)
    processing_finished = Signal(int, int)

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

        self._context: Optional[DatasetContext] = None
        self._in_flight = threading.Lock()
        self._running = False
        self._current_id: Optional[str] = None
        self.thread_pool = QThreadPool.globalInstance()

    @property
    def context(self) -> Optional[DatasetContext]:
        return self._context

    @property
    def is_running(self) -> bool:
        return self._running

    def set_context(self, context: Optional[DatasetContext]) -> None:
        """Switch the active context. A running loop stops after its current item."""
        if context != self._context:
            logger.info("Processing context changed to %s", context)
        self._context = context

    def stop(self) -> None:
        """Ask a running loop to halt after the in-flight item."""
        self._running = False

    def next_pending(self) -> Optional[VocabularyItem]:
        if self._context is None:
            return None
        return self._first_pending(self._context)

    def start(self, user: Optional[User]) -> bool:
        """
        Run the loop on the Qt thread pool.

        Returns:
            False if there is nothing pending in the active context.

        Raises:
            PermissionDeniedError: If the user is not an administrator.
        """
        self.permission_evaluator.require_admin(user, "start processing")
        if self.next_pending() is None:
            return False
        self.thread_pool.start(SchedulerWorker(self))
        return True

    def process(self, user: Optional[User], max_items: Optional[int] = None) -> Tuple[int, int]:
        """Admin-gated synchronous run; see ``run_until_idle``."""
        self.permission_evaluator.require_admin(user, "start processing")
        return self.run_until_idle(max_items=max_items)

    def step(self) -> Optional[ProcessingOutcome]:
        """
        Process exactly one pending item.

        Returns:
            The outcome, or None when idle, when no context is set, or when
            another step is already in flight (the call is refused).
        """
        context = self._context
        if context is None:
            return None
        if not self._in_flight.acquire(blocking=False):
            logger.info("Step refused: an item is already loading")
            return None
        try:
            return self._process_next(context)
        finally:
            self._in_flight.release()

    def run_until_idle(self, max_items: Optional[int] = None) -> Tuple[int, int]:
        """
        Process pending items until none remain or the context changes.

        Returns:
            (completed, failed) counts for this run.
        """
        context = self._context
        if context is None:
            return (0, 0)
        if not self._in_flight.acquire(blocking=False):
            logger.info("Run refused: processing is already active")
            return (0, 0)

        completed = failed = 0
        self._running = True
        try:
            while self._running and self._context == context:
                outcome = self._process_next(context)
                if outcome is None:
                    break
                if outcome.status is ItemStatus.COMPLETED:
                    completed += 1
                elif outcome.status is ItemStatus.ERROR:
                    failed += 1
                if max_items is not None and completed + failed >= max_items:
                    break
        finally:
            self._running = False
            self._in_flight.release()

        logger.info("Processing finished for %s: %d completed, %d failed", context, completed, failed)
        self.processing_finished.emit(completed, failed)
        return completed, failed

    def reset_to_pending(self, user: Optional[User], item_ids: Iterable[str]) -> int:
        """Re-queue error items and items stuck loading. Returns how many were reset.

        The item this scheduler is generating right now is left alone.
        """
        self.permission_evaluator.require_admin(user, "start processing")
        reset = 0
        for item_id in item_ids:
            item = self.catalog_store.get(item_id)
            if item is None or item.status not in (ItemStatus.ERROR, ItemStatus.LOADING):
                continue
            if item_id == self._current_id:
                continue
            if self.catalog_store.update(item_id, {"status": ItemStatus.PENDING}) is not None:
                reset += 1
        return reset

    # --- internals ---

    def _first_pending(self, context: DatasetContext) -> Optional[VocabularyItem]:
        # The in-memory view, so a remote that rejects writes cannot resurrect
        # an item this loop has already moved past.
        for item in self.catalog_store.snapshot(context):
            if item.status is ItemStatus.PENDING:
                return item
        return None

    def _process_next(self, context: DatasetContext) -> Optional[ProcessingOutcome]:
        item = self._first_pending(context)
        if item is None:
            return None

        loading = self.catalog_store.update(item.id, {"status": ItemStatus.LOADING}, sync=False)
        if loading is None:
            return ProcessingOutcome(item_id=item.id, status=None)
        self.item_started.emit(item.id)
        logger.debug("Generating %r (%s)", item.term, item.id)

        self._current_id = item.id
        try:
            result = self._generate(item)
        finally:
            self._current_id = None
        if result.is_error:
            logger.warning("Generation failed for %r: %s", item.term, result.error)
            final = self.catalog_store.update(item.id, {"status": ItemStatus.ERROR})
        else:
            delta = dict(result.content.to_delta())
            delta["status"] = ItemStatus.COMPLETED
            final = self.catalog_store.update(item.id, delta)

        if final is None:
            logger.info("Item %s was deleted during generation; result dropped", item.id)
            outcome = ProcessingOutcome(item_id=item.id, status=None, error=result.error)
        else:
            outcome = ProcessingOutcome(item_id=item.id, status=final.status, error=result.error)
        self.item_finished.emit(item.id, outcome.status.value if outcome.status else "deleted")
        return outcome

    def _generate(self, item: VocabularyItem) -> GenerationResult:
        try:
            return self.generation_service.generate(item.term, language_name(item.target_language))
        except Exception as e:
            # Services report failures in the result; anything raised is a bug
            # in the service and still must not leave the item loading.
            logger.exception("Generation service raised for %s", item.id)
            return GenerationResult(content=None, model="unknown", error=str(e))
