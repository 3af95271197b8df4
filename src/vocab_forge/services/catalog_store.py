"""Catalog Store - one logical catalog over a local cache and a remote store.

The remote store is the source of truth whenever it answers. The local cache
keeps the catalog readable and writable during outages and carries
optimistic state for the UI. Both tiers only ever see normalized records.
"""

import logging
import threading
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from vocab_forge.core import (
    DatasetContext,
    ItemStatus,
    RemoteUnavailableError,
    ValidationError,
    VocabularyItem,
    item_to_record,
    normalize_item,
    normalize_items,
    patch,
)
from vocab_forge.io import LocalCache, RemoteGateway
from vocab_forge.io.local_cache import KEY_VOCAB
from vocab_forge.services.identity_allocator import IdentityAllocator

logger = logging.getLogger(__name__)

Delta = Mapping[str, Any]
DraftItem = Union[VocabularyItem, Mapping[str, Any]]


def merge_by_id(
    local: Sequence[VocabularyItem], remote: Sequence[VocabularyItem]
) -> List[VocabularyItem]:
    """Union two tiers keyed by id; the remote record wins on collision.

    Local-only records (created while offline, or not yet acknowledged) are
    kept. The result is in catalog order: ascending ``int_id``, ties broken
    by remote order then local order.
    """
    merged: Dict[str, VocabularyItem] = {}
    for item in remote:
        merged[item.id] = item
    for item in local:
        merged.setdefault(item.id, item)
    return sorted(merged.values(), key=lambda item: item.int_id)


class CatalogStore:
    """Dual-tier vocabulary repository.

    Construct one per session and pass it to the coordinators; there is no
    module-level instance. All writes go through ``update_with`` (or the batch
    operations), which patch the latest in-memory record by id under a single
    writer lock, so the scheduler and manual regeneration can interleave
    without clobbering each other's fields.
    """

    def __init__(
        self,
        remote: RemoteGateway,
        cache: LocalCache,
        allocator: IdentityAllocator,
    ) -> None:
        if remote is None:
            raise ValueError("RemoteGateway must not be None")
        if cache is None:
            raise ValueError("LocalCache must not be None")
        if allocator is None:
            raise ValueError("IdentityAllocator must not be None")
        self._remote = remote
        self._cache = cache
        self._allocator = allocator
        self._lock = threading.RLock()
        with self._lock:
            loaded = self._requeue_interrupted(normalize_items(self._cache.get_json(KEY_VOCAB, [])))
            self._remote_ids: Set[str] = set()
            self._items = self._assign_missing_int_ids(merge_by_id(loaded, []), remote_ids=set())
            self._allocator.observe(self._items)
            self._persist_locked()

    # --- reads ---

    def snapshot(self, context: Optional[DatasetContext] = None) -> List[VocabularyItem]:
        """Current in-memory view, without touching the remote store."""
        with self._lock:
            items = list(self._items)
        return context.select(items) if context else items

    def get(self, item_id: str) -> Optional[VocabularyItem]:
        with self._lock:
            return next((item for item in self._items if item.id == item_id), None)

    def list(self, context: Optional[DatasetContext] = None) -> List[VocabularyItem]:
        """Refresh from the remote store and return the (context) view.

        On remote failure the local view is returned unmodified.
        """
        try:
            raw = self._remote.list_items()
        except RemoteUnavailableError as e:
            logger.warning("Remote list failed, serving local cache: %s", e)
            return self.snapshot(context)
        self._merge_remote(normalize_items(raw), complete=True)
        return self.snapshot(context)

    # --- writes ---

    def create_batch(self, drafts: Sequence[DraftItem]) -> List[VocabularyItem]:
        """Create items and return them as stored.

        Items get int ids from the allocator first. When the remote accepts
        the batch its response is canonical (the server assigns its own ids)
        and the catalog is re-read; otherwise the locally numbered items are
        written to the cache.

        Raises:
            ValidationError: If any draft has an empty term. Nothing is written.
        """
        items = [d if isinstance(d, VocabularyItem) else normalize_item(d) for d in drafts]
        if not items:
            return []
        for item in items:
            if not item.term.strip():
                raise ValidationError("Vocabulary term must not be empty")

        with self._lock:
            taken = {item.id for item in self._items}
            first = self._allocator.next_int_id(len(items), self._items)
            numbered = [
                replace(item, int_id=first + offset, id=item.id if item.id not in taken else str(uuid.uuid4()))
                for offset, item in enumerate(items)
            ]

        try:
            created_raw = self._remote.create_items([item_to_record(item) for item in numbered])
        except RemoteUnavailableError as e:
            logger.warning("Remote create failed, keeping %d item(s) locally: %s", len(numbered), e)
            with self._lock:
                self._items = merge_by_id(self._items, numbered)
                self._persist_locked()
            return numbered

        created = normalize_items(created_raw)
        self._merge_remote(created)
        self.list()
        logger.info("Created %d item(s) remotely", len(created))
        return created

    def update(self, item_id: str, delta: Delta, sync: bool = True) -> Optional[VocabularyItem]:
        """Patch one item by id. See ``update_with``."""
        return self.update_with(item_id, lambda _current: delta, sync=sync)

    def update_with(
        self,
        item_id: str,
        build_delta: Callable[[VocabularyItem], Delta],
        sync: bool = True,
    ) -> Optional[VocabularyItem]:
        """Read-modify-write one item against its latest state.

        ``build_delta`` receives the current record (not a captured copy) and
        returns the fields to change. The local tier is patched first and is
        authoritative for the UI; the remote PUT is attempted afterwards when
        ``sync`` is set, and a failure there only logs.

        Returns:
            The updated item, or None if the id is no longer in the catalog
            (e.g. deleted while a generation call was in flight).

        Raises:
            ValidationError: If the delta touches an immutable or unknown field.
        """
        with self._lock:
            index = next((i for i, item in enumerate(self._items) if item.id == item_id), None)
            if index is None:
                logger.info("Skipping update for missing item %s", item_id)
                return None
            updated = patch(self._items[index], build_delta(self._items[index]))
            items = list(self._items)
            items[index] = updated
            self._items = items
            self._persist_locked()

        if sync:
            try:
                self._remote.update_item(item_id, item_to_record(updated))
            except RemoteUnavailableError as e:
                logger.warning("Remote update of %s failed, kept locally: %s", item_id, e)
        return updated

    def delete_batch(self, ids: Iterable[str]) -> List[VocabularyItem]:
        """Delete items from both tiers and return the remaining catalog.

        Local removal always happens, even when the remote call fails. Ids
        that are already absent are ignored, so repeating a delete is a no-op.
        """
        id_set: Set[str] = set(ids)
        if not id_set:
            return self.snapshot()

        remaining_raw: Optional[List[Dict[str, Any]]] = None
        try:
            remaining_raw = self._remote.delete_items(sorted(id_set))
        except RemoteUnavailableError as e:
            logger.warning("Remote delete failed, removing %d id(s) locally: %s", len(id_set), e)

        with self._lock:
            before = len(self._items)
            self._items = [item for item in self._items if item.id not in id_set]
            self._remote_ids -= id_set
            self._persist_locked()
            logger.info("Deleted %d item(s) locally", before - len(self._items))

        if remaining_raw is not None:
            remaining = [item for item in normalize_items(remaining_raw) if item.id not in id_set]
            self._merge_remote(remaining, complete=True)
        return self.snapshot()

    # --- internals ---

    def _merge_remote(self, remote_items: List[VocabularyItem], complete: bool = False) -> None:
        """Fold remote records into the local tier and persist.

        ``complete`` marks ``remote_items`` as the whole remote catalog (a
        list or delete answer) rather than a create response. Local-only
        items survive. A local-only item whose provisional int id is already
        held by a remote record is renumbered, since only the remote
        assignment is authoritative. A local ``loading`` status is kept over a
        remote ``pending`` one: that item's generation call is still in flight.
        """
        with self._lock:
            loading = {item.id for item in self._items if item.status is ItemStatus.LOADING}
            remote_items = [
                replace(item, status=ItemStatus.LOADING)
                if item.id in loading and item.status is ItemStatus.PENDING
                else item
                for item in remote_items
            ]
            merged = merge_by_id(self._items, remote_items)
            batch_ids = {item.id for item in remote_items}
            if complete:
                self._remote_ids = batch_ids
            else:
                self._remote_ids |= batch_ids
            self._items = self._assign_missing_int_ids(merged, self._remote_ids)
            self._allocator.observe(self._items)
            self._persist_locked()
            logger.debug("Merged %d remote record(s); catalog has %d", len(remote_items), len(self._items))

    @staticmethod
    def _requeue_interrupted(items: List[VocabularyItem]) -> List[VocabularyItem]:
        """Turn cached ``loading`` items back into ``pending``.

        Only called while loading the cache: a fresh store has no generation
        call in flight, so a cached ``loading`` status is left over from an
        interrupted run.
        """
        result = []
        for item in items:
            if item.status is ItemStatus.LOADING:
                logger.warning("Re-queueing item %s left loading by an interrupted run", item.id)
                item = replace(item, status=ItemStatus.PENDING)
            result.append(item)
        return result

    def _assign_missing_int_ids(
        self, items: List[VocabularyItem], remote_ids: Set[str]
    ) -> List[VocabularyItem]:
        """Give unnumbered or colliding local-only items fresh int ids."""
        claimed: Set[int] = {item.int_id for item in items if item.id in remote_ids}
        needs_id: List[int] = []
        for index, item in enumerate(items):
            if item.id in remote_ids:
                continue
            if item.int_id <= 0 or item.int_id in claimed:
                needs_id.append(index)
            else:
                claimed.add(item.int_id)
        if not needs_id:
            return items

        result = list(items)
        first = self._allocator.next_int_id(len(needs_id), items)
        for offset, index in enumerate(needs_id):
            old = result[index]
            result[index] = replace(old, int_id=first + offset)
            logger.warning(
                "Renumbered local-only item %s from int id %d to %d", old.id, old.int_id, first + offset
            )
        return sorted(result, key=lambda item: item.int_id)

    def _persist_locked(self) -> None:
        self._cache.put_json(KEY_VOCAB, [item_to_record(item) for item in self._items])
