#!/usr/bin/env python3
"""
Integration tests for the catalog - full workflow validation.

Tests the complete administrator journey:
1. Import terms → pending items in a new context
2. Process → every item enriched exactly once
3. Edit → editor changes merged and synced
4. Delete → removed from both tiers
5. Server outage → work continues locally and survives a restart
"""

import pytest

from vocab_forge.coordinators import EditCoordinator, ImportCoordinator, ProcessingScheduler
from vocab_forge.core import DatasetContext, ItemStatus
from vocab_forge.io import LocalCache
from vocab_forge.services import (
    AppRegistry,
    CatalogStore,
    GeneratedContent,
    GenerationResult,
    GenerationService,
    IdentityAllocator,
    MediaResult,
    SessionService,
)


class DictionaryGenerator(GenerationService):
    """Deterministic generator backed by a small word list."""

    WORDS = {"perro": "dog", "gato": "cat", "pez": "fish", "pájaro": "bird"}

    def generate(self, term, language_name):
        english = self.WORDS.get(term)
        if english is None:
            return GenerationResult(content=None, model="dictionary", error=f"Unknown term {term}")
        return GenerationResult(
            content=GeneratedContent(
                part_of_speech="noun",
                translations={"en": english},
                example_sentence=f"Veo un {term}.",
                example_translations={"en": f"I see a {english}."},
            ),
            model="dictionary",
        )

    def generate_image(self, term, prompt=None):
        return MediaResult(data_uri=None, model="dictionary", error="not supported")

    def generate_audio(self, text, voice="Kore", style="Natural"):
        return MediaResult(data_uri=None, model="dictionary", error="not supported")


class Workspace:
    """One client session wired against a database file."""

    def __init__(self, remote, db_path):
        self.cache = LocalCache(db_path)
        self.cache.ensure_schema()
        self.store = CatalogStore(remote=remote, cache=self.cache, allocator=IdentityAllocator(self.cache))
        self.session = SessionService(remote=remote, cache=self.cache)
        self.importer = ImportCoordinator(self.store, AppRegistry(remote, self.cache), self.session)
        self.scheduler = ProcessingScheduler(self.store, DictionaryGenerator())
        self.editor = EditCoordinator(self.store)

    def close(self):
        self.cache.close()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "cache.db"


@pytest.fixture
def workspace(fake_remote, db_path):
    ws = Workspace(fake_remote, db_path)
    yield ws
    ws.close()


def test_import_process_edit_delete(workspace, fake_remote, admin, editor):
    context = DatasetContext("LingoDeer", "es")

    # 1. Import
    created = workspace.importer.import_terms(admin, "LingoDeer", "es", ["perro", "gato", "ornitorrinco"])
    assert len(fake_remote.records) == 3

    # 2. Process
    workspace.scheduler.set_context(workspace.session.last_context())
    assert workspace.scheduler.process(admin) == (2, 1)
    by_term = {item.term: item for item in workspace.store.list(context)}
    assert by_term["perro"].translations == {"en": "dog"}
    assert by_term["ornitorrinco"].status is ItemStatus.ERROR

    # 3. Edit the failed item by hand
    saved = workspace.editor.save(editor, by_term["ornitorrinco"].id, {
        "translations": {"es": "ornitorrinco"},
        "part_of_speech": "noun",
    })
    assert saved.status is ItemStatus.COMPLETED
    assert fake_remote.record(saved.id)["status"] == "completed"

    # 4. Delete
    remaining = workspace.editor.delete(admin, [created[1].id])
    assert [item.term for item in remaining] == ["perro", "ornitorrinco"]
    assert len(fake_remote.records) == 2


def test_outage_work_survives_restart(fake_remote, db_path, admin):
    context = DatasetContext("LingoDeer", "es")
    fake_remote.seed(term="perro", intId=1)

    first = Workspace(fake_remote, db_path)
    first.store.list(context)

    # 5. Outage: import and process offline
    fake_remote.offline = True
    first.importer.import_terms(admin, "LingoDeer", "es", ["gato", "pez"])
    first.scheduler.set_context(context)
    assert first.scheduler.process(admin) == (3, 0)
    first.close()

    # Restart while still offline: everything is served from the cache
    second = Workspace(fake_remote, db_path)
    items = second.store.list(context)
    assert [item.term for item in items] == ["perro", "gato", "pez"]
    assert all(item.status is ItemStatus.COMPLETED for item in items)
    int_ids = [item.int_id for item in items]
    assert len(set(int_ids)) == len(int_ids)

    # Server returns: remote items win, local-only items are kept
    fake_remote.offline = False
    items = second.store.list(context)
    assert {item.term for item in items} == {"perro", "gato", "pez"}
    assert len({item.int_id for item in items}) == 3
    second.close()
