"""Unit tests for record normalization between tiers."""

import json

from vocab_forge.core import ItemStatus, item_to_record, normalize_item, normalize_items
from vocab_forge.core.record_normalization import DEFAULT_APP_NAME


class TestNormalizeItem:
    """Tests for filling defaults on partial records."""

    def test_minimal_record_gets_safe_defaults(self):
        item = normalize_item({"term": "hola"})

        assert item.id
        assert item.int_id == 0
        assert item.app_name == DEFAULT_APP_NAME
        assert item.target_language == "en"
        assert item.status is ItemStatus.PENDING
        assert item.translations == {}
        assert item.example_translations == {}
        assert item.example_tokens == ()

    def test_each_missing_id_gets_a_distinct_uuid(self):
        first = normalize_item({"term": "a"})
        second = normalize_item({"term": "a"})
        assert first.id != second.id

    def test_json_encoded_maps_are_decoded(self):
        item = normalize_item({
            "id": "x",
            "term": "gato",
            "translations": json.dumps({"en": "cat"}),
            "exampleTranslations": json.dumps({"en": "The cat sleeps."}),
        })
        assert item.translations == {"en": "cat"}
        assert item.example_translations == {"en": "The cat sleeps."}

    def test_malformed_json_map_becomes_empty(self):
        item = normalize_item({"term": "gato", "translations": "{not json"})
        assert item.translations == {}

    def test_aliases_are_accepted(self):
        item = normalize_item({
            "term": "chat",
            "targetLanguage": "fr",
            "imageRef": "data:image/png;base64,AAA",
            "exampleTokens": [{"word": "Le"}],
        })
        assert item.target_language == "fr"
        assert item.image_ref == "data:image/png;base64,AAA"
        assert item.example_tokens[0].word == "Le"

    def test_unknown_status_falls_back_to_pending(self):
        assert normalize_item({"term": "x", "status": "weird"}).status is ItemStatus.PENDING

    def test_non_positive_int_id_means_unassigned(self):
        assert normalize_item({"term": "x", "intId": -4}).int_id == 0
        assert normalize_item({"term": "x", "intId": "12"}).int_id == 12


def test_normalize_items_skips_non_objects():
    items = normalize_items([{"term": "a"}, "junk", None, {"term": "b"}])
    assert [item.term for item in items] == ["a", "b"]


def test_normalize_items_rejects_non_list():
    assert normalize_items({"term": "a"}) == []


def test_item_to_record_uses_wire_names_and_omits_none():
    item = normalize_item({
        "id": "abc",
        "intId": 3,
        "appName": "LingoDeer",
        "targetLang": "es",
        "term": "perro",
        "status": "completed",
        "partOfSpeech": "noun",
        "translations": {"en": "dog"},
    })
    record = item_to_record(item)

    assert record["id"] == "abc"
    assert record["intId"] == 3
    assert record["targetLang"] == "es"
    assert record["status"] == "completed"
    assert record["partOfSpeech"] == "noun"
    assert record["translations"] == {"en": "dog"}
    assert "imageUrl" not in record
    assert "script" not in record
    assert normalize_item(record) == item
