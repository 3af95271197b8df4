"""Record normalization between wire/cache dictionaries and VocabularyItem.

Every record entering or leaving a storage tier passes through here, so a
partially shaped record from any source cannot break catalog invariants.
"""

import json
import uuid
from typing import Any, Dict, List, Mapping, Optional

from vocab_forge.core.languages import DEFAULT_LANGUAGE
from vocab_forge.core.vocabulary_item import ItemStatus, SentenceToken, VocabularyItem

DEFAULT_APP_NAME = "General"

# attribute name -> (wire name, accepted aliases)
_WIRE_NAMES = {
    "id": ("id", ()),
    "int_id": ("intId", ("int_id",)),
    "app_name": ("appName", ("app_name",)),
    "target_language": ("targetLang", ("targetLanguage", "target_language")),
    "term": ("term", ()),
    "status": ("status", ()),
    "original_index": ("originalIndex", ("original_index",)),
    "script": ("script", ()),
    "phonetic": ("phonetic", ()),
    "variant": ("variant", ()),
    "part_of_speech": ("partOfSpeech", ("part_of_speech",)),
    "translations": ("translations", ()),
    "example_sentence": ("exampleSentence", ("example_sentence",)),
    "example_tokens": ("exampleSentenceTokens", ("exampleTokens", "example_tokens")),
    "example_script": ("exampleScript", ("example_script",)),
    "example_translation": ("exampleTranslation", ("example_translation",)),
    "example_translations": ("exampleTranslations", ("example_translations",)),
    "image_ref": ("imageUrl", ("imageRef", "image_ref")),
    "image_prompt": ("imagePrompt", ("image_prompt",)),
    "audio_ref": ("audioUrl", ("audioRef", "audio_ref")),
}


def _lookup(raw: Mapping[str, Any], attr: str) -> Any:
    wire, aliases = _WIRE_NAMES[attr]
    for key in (wire, *aliases):
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _as_map(value: Any) -> Dict[str, str]:
    """Coerce a translation map that may arrive JSON-encoded."""
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return {}
    if not isinstance(value, Mapping):
        return {}
    return {str(k): str(v) for k, v in value.items() if v is not None}


def _as_status(value: Any) -> ItemStatus:
    try:
        return ItemStatus(str(value).lower())
    except ValueError:
        return ItemStatus.PENDING


def _as_int(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_tokens(value: Any) -> tuple:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return ()
    if not isinstance(value, list):
        return ()
    return tuple(
        token if isinstance(token, SentenceToken) else SentenceToken.from_dict(token)
        for token in value
        if isinstance(token, (Mapping, SentenceToken))
    )


def normalize_item(raw: Mapping[str, Any]) -> VocabularyItem:
    """Build a VocabularyItem from any record shape, filling safe defaults.

    Missing ids get a fresh uuid, missing status becomes ``pending``, missing
    maps become empty, and an absent or non-positive intId becomes 0
    (meaning "not yet assigned").
    """
    item_id = _lookup(raw, "id")
    return VocabularyItem(
        id=str(item_id) if item_id else str(uuid.uuid4()),
        int_id=_as_int(_lookup(raw, "int_id")),
        app_name=str(_lookup(raw, "app_name") or DEFAULT_APP_NAME),
        target_language=str(_lookup(raw, "target_language") or DEFAULT_LANGUAGE),
        term=str(_lookup(raw, "term") or ""),
        status=_as_status(_lookup(raw, "status")),
        original_index=_as_int(_lookup(raw, "original_index")),
        script=_as_text(_lookup(raw, "script")),
        phonetic=_as_text(_lookup(raw, "phonetic")),
        variant=_as_text(_lookup(raw, "variant")),
        part_of_speech=_as_text(_lookup(raw, "part_of_speech")),
        translations=_as_map(_lookup(raw, "translations")),
        example_sentence=_as_text(_lookup(raw, "example_sentence")),
        example_tokens=_as_tokens(_lookup(raw, "example_tokens")),
        example_script=_as_text(_lookup(raw, "example_script")),
        example_translation=_as_text(_lookup(raw, "example_translation")),
        example_translations=_as_map(_lookup(raw, "example_translations")),
        image_ref=_as_text(_lookup(raw, "image_ref")),
        image_prompt=_as_text(_lookup(raw, "image_prompt")),
        audio_ref=_as_text(_lookup(raw, "audio_ref")),
    )


def normalize_items(raw_items: Any) -> List[VocabularyItem]:
    """Normalize a list of records, skipping entries that are not objects."""
    if not isinstance(raw_items, list):
        return []
    return [normalize_item(raw) for raw in raw_items if isinstance(raw, Mapping)]


def item_to_record(item: VocabularyItem) -> Dict[str, Any]:
    """Serialize an item with wire (camelCase) names; None fields are omitted."""
    record: Dict[str, Any] = {}
    for attr, (wire, _aliases) in _WIRE_NAMES.items():
        value = getattr(item, attr)
        if value is None:
            continue
        if attr == "status":
            value = value.value
        elif attr in ("translations", "example_translations"):
            value = dict(value)
        elif attr == "example_tokens":
            value = [token.to_dict() for token in value]
        record[wire] = value
    return record
