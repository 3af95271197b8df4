"""Tests for the dual-tier CatalogStore."""

import json

import pytest

from vocab_forge.core import DatasetContext, ItemStatus, ValidationError, normalize_item
from vocab_forge.io.local_cache import KEY_VOCAB
from vocab_forge.services import CatalogStore, IdentityAllocator, merge_by_id


def draft(term, app="LingoDeer", lang="es"):
    return {"appName": app, "targetLang": lang, "term": term}


def int_ids(items):
    return [item.int_id for item in items]


def assert_unique_int_ids(items):
    ids = int_ids(items)
    assert len(ids) == len(set(ids)), f"duplicate int ids: {ids}"
    assert all(i > 0 for i in ids)


class TestMergeById:
    def test_remote_wins_and_local_only_survives(self):
        a = normalize_item({"id": "A", "intId": 1, "term": "a"})
        b = normalize_item({"id": "B", "intId": 2, "term": "b"})
        b_prime = normalize_item({"id": "B", "intId": 2, "term": "b-prime"})
        c = normalize_item({"id": "C", "intId": 3, "term": "c"})

        merged = merge_by_id([a, b], [b_prime, c])

        assert [item.id for item in merged] == ["A", "B", "C"]
        assert merged[1].term == "b-prime"

    def test_result_is_sorted_by_int_id(self):
        late = normalize_item({"id": "L", "intId": 9, "term": "late"})
        early = normalize_item({"id": "E", "intId": 2, "term": "early"})
        assert int_ids(merge_by_id([late], [early])) == [2, 9]


class TestConstruction:
    def test_none_dependencies_fail_fast(self, fake_remote, cache, allocator):
        with pytest.raises(ValueError, match="RemoteGateway must not be None"):
            CatalogStore(remote=None, cache=cache, allocator=allocator)
        with pytest.raises(ValueError, match="LocalCache must not be None"):
            CatalogStore(remote=fake_remote, cache=None, allocator=allocator)

    def test_loads_and_normalizes_cached_records(self, fake_remote, cache):
        cache.put_json(KEY_VOCAB, [
            {"id": "x", "intId": 4, "term": "hola", "translations": json.dumps({"en": "hi"})},
            {"term": "unnumbered"},
            "garbage",
        ])
        store = CatalogStore(fake_remote, cache, IdentityAllocator(cache))

        items = store.snapshot()
        assert [item.term for item in items] == ["hola", "unnumbered"]
        assert items[0].translations == {"en": "hi"}
        assert items[1].int_id == 5


class TestCreateAndDelete:
    def test_dog_cat_fish(self, store, fake_remote, context):
        created = store.create_batch([draft("dog"), draft("cat"), draft("fish")])

        assert int_ids(created) == [1, 2, 3]
        assert [item.status for item in created] == [ItemStatus.PENDING] * 3
        assert {item.id for item in created} == {r["id"] for r in fake_remote.records}

        cat = next(item for item in created if item.term == "cat")
        remaining = store.delete_batch([cat.id])

        assert [(item.int_id, item.term) for item in remaining] == [(1, "dog"), (3, "fish")]
        assert [item.term for item in store.list(context)] == ["dog", "fish"]

    def test_empty_term_rejected_without_writes(self, store, fake_remote):
        with pytest.raises(ValidationError):
            store.create_batch([draft("ok"), draft("   ")])
        assert fake_remote.records == []
        assert store.snapshot() == []

    def test_empty_batch_is_noop(self, store, fake_remote):
        assert store.create_batch([]) == []
        assert fake_remote.calls == []

    def test_delete_is_idempotent(self, store):
        created = store.create_batch([draft("uno"), draft("dos")])
        first = store.delete_batch([created[0].id])
        second = store.delete_batch([created[0].id])
        assert first == second
        assert [item.term for item in second] == ["dos"]

    def test_delete_unknown_id_changes_nothing(self, store):
        store.create_batch([draft("uno")])
        before = store.snapshot()
        assert store.delete_batch(["nope"]) == before

    def test_offline_delete_still_removes_locally(self, store, fake_remote, cache):
        created = store.create_batch([draft("uno"), draft("dos")])
        fake_remote.offline = True

        remaining = store.delete_batch([created[1].id])

        assert [item.term for item in remaining] == ["uno"]
        assert [r["term"] for r in cache.get_json(KEY_VOCAB)] == ["uno"]


class TestOffline:
    def test_offline_create_keeps_items_locally(self, store, fake_remote, cache, context):
        fake_remote.offline = True

        created = store.create_batch([draft("hola"), draft("adiós")])

        assert int_ids(created) == [1, 2]
        assert [item.term for item in store.list(context)] == ["hola", "adiós"]
        assert len(cache.get_json(KEY_VOCAB)) == 2

    def test_offline_items_survive_restart(self, fake_remote, cache, context):
        fake_remote.offline = True
        CatalogStore(fake_remote, cache, IdentityAllocator(cache)).create_batch(
            [draft("hola"), draft("adiós")]
        )

        reopened = CatalogStore(fake_remote, cache, IdentityAllocator(cache))
        assert [item.term for item in reopened.list(context)] == ["hola", "adiós"]

    def test_offline_ids_never_collide_with_cached_ids(self, store, fake_remote):
        fake_remote.offline = True
        item = normalize_item(draft("repeat"))

        first = store.create_batch([item])
        second = store.create_batch([item])

        assert first[0].id != second[0].id
        assert_unique_int_ids(store.snapshot())

    def test_list_failure_returns_local_view_unmodified(self, store, fake_remote, context):
        store.create_batch([draft("uno")])
        before = store.snapshot(context)
        fake_remote.offline = True
        assert store.list(context) == before


class TestRecovery:
    def test_int_ids_stay_unique_across_outage_and_recovery(self, store, fake_remote, context):
        fake_remote.offline = True
        store.create_batch([draft("local-1"), draft("local-2")])

        # another client writes while this one is offline
        fake_remote.seed(term="remote-1", intId=1)
        fake_remote.offline = False

        recovered = store.list(context)
        assert_unique_int_ids(recovered)
        assert {item.term for item in recovered} == {"local-1", "local-2", "remote-1"}
        assert next(i for i in recovered if i.term == "remote-1").int_id == 1

        store.create_batch([draft("online")])
        after = store.list(context)
        assert_unique_int_ids(after)
        assert len(after) == 4

    def test_remote_record_wins_local_only_survives(self, fake_remote, cache, context):
        cache.put_json(KEY_VOCAB, [
            {"id": "A", "intId": 1, "appName": "LingoDeer", "targetLang": "es", "term": "a"},
            {"id": "B", "intId": 2, "appName": "LingoDeer", "targetLang": "es", "term": "b"},
        ])
        fake_remote.seed(id="B", intId=2, term="b-prime")
        fake_remote.seed(id="C", intId=3, term="c")
        store = CatalogStore(fake_remote, cache, IdentityAllocator(cache))

        items = store.list(context)

        assert [(item.id, item.term) for item in items] == [("A", "a"), ("B", "b-prime"), ("C", "c")]

    def test_loading_left_by_interrupted_run_is_requeued_on_restart(self, fake_remote, cache, context):
        fake_remote.offline = True
        first = CatalogStore(fake_remote, cache, IdentityAllocator(cache))
        dog = first.create_batch([draft("dog")])[0]
        first.update(dog.id, {"status": ItemStatus.LOADING}, sync=False)

        # the process dies here; a new store opens the same cache
        reopened = CatalogStore(fake_remote, cache, IdentityAllocator(cache))

        assert reopened.get(dog.id).status is ItemStatus.PENDING
        assert cache.get_json(KEY_VOCAB)[0]["status"] == "pending"
        assert [item.term for item in reopened.list(context)] == ["dog"]

    def test_refresh_keeps_local_loading_over_remote_pending(self, store, fake_remote, context):
        dog = store.create_batch([draft("dog")])[0]
        store.update(dog.id, {"status": ItemStatus.LOADING}, sync=False)

        refreshed = store.list(context)

        assert fake_remote.record(dog.id)["status"] == "pending"
        assert refreshed[0].status is ItemStatus.LOADING

    def test_refresh_takes_remote_result_over_local_loading(self, store, fake_remote, context):
        dog = store.create_batch([draft("dog")])[0]
        store.update(dog.id, {"status": ItemStatus.LOADING}, sync=False)
        fake_remote.record(dog.id)["status"] = "completed"

        assert store.list(context)[0].status is ItemStatus.COMPLETED

    def test_list_filters_by_context(self, store):
        store.create_batch([draft("uno"), draft("one", lang="en"), draft("yi", app="ChineseSkill")])
        assert [i.term for i in store.list(DatasetContext("LingoDeer", "en"))] == ["one"]
        assert len(store.list()) == 3


class TestUpdate:
    def test_update_patches_both_tiers(self, store, fake_remote):
        item = store.create_batch([draft("perro")])[0]

        updated = store.update(item.id, {"translations": {"en": "dog"}, "status": "completed"})

        assert updated.translations == {"en": "dog"}
        assert store.get(item.id).status is ItemStatus.COMPLETED
        assert fake_remote.record(item.id)["translations"] == {"en": "dog"}

    def test_local_only_update_skips_remote(self, store, fake_remote):
        item = store.create_batch([draft("perro")])[0]
        fake_remote.calls.clear()

        store.update(item.id, {"status": ItemStatus.LOADING}, sync=False)

        assert "update_item" not in fake_remote.calls
        assert store.get(item.id).status is ItemStatus.LOADING

    def test_update_survives_remote_failure(self, store, fake_remote, cache):
        item = store.create_batch([draft("perro")])[0]
        fake_remote.reject_writes = True

        updated = store.update(item.id, {"term": "perrito"})

        assert updated.term == "perrito"
        assert cache.get_json(KEY_VOCAB)[0]["term"] == "perrito"

    def test_update_missing_item_returns_none(self, store):
        assert store.update("ghost", {"term": "x"}) is None

    def test_immutable_patch_leaves_store_unchanged(self, store):
        item = store.create_batch([draft("perro")])[0]
        with pytest.raises(ValidationError):
            store.update(item.id, {"app_name": "ChineseSkill"})
        assert store.get(item.id) == item

    def test_update_with_reads_latest_state(self, store):
        item = store.create_batch([draft("perro")])[0]
        store.update(item.id, {"image_ref": "data:image/png;base64,AAA"})

        store.update_with(
            item.id,
            lambda current: {"translations": {**current.translations, "en": "dog"}},
        )
        store.update_with(
            item.id,
            lambda current: {"translations": {**current.translations, "fr": "chien"}},
        )

        final = store.get(item.id)
        assert final.translations == {"en": "dog", "fr": "chien"}
        assert final.image_ref == "data:image/png;base64,AAA"
