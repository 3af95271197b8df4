"""Export Service - flattens catalog views for spreadsheets and writes JSON dumps."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from vocab_forge.core import DatasetContext, User, VocabularyItem, item_to_record, language_name
from vocab_forge.core.languages import SUPPORTED_LANGUAGES
from vocab_forge.services.permission_evaluator import PermissionEvaluator

logger = logging.getLogger(__name__)


class ExportService:
    """Produces export artifacts for a context view."""

    def __init__(self, permission_evaluator: Optional[PermissionEvaluator] = None) -> None:
        self.permission_evaluator = permission_evaluator or PermissionEvaluator()

    @staticmethod
    def export_rows(items: Sequence[VocabularyItem]) -> List[Dict[str, Any]]:
        """One flat row per item, with a column pair per supported language."""
        rows = []
        for item in items:
            row: Dict[str, Any] = {
                "ID": item.int_id,
                "App": item.app_name,
                "TargetLang": language_name(item.target_language),
                "Term": item.term,
                "Script": item.script or "",
                "Phonetic": item.phonetic or "",
                "Variant": item.variant or "",
                "PartOfSpeech": item.part_of_speech or "",
                "Example": item.example_sentence or "",
                "ExampleScript": item.example_script or "",
            }
            for lang in SUPPORTED_LANGUAGES:
                row[f"Values-{lang.code}"] = item.translations.get(lang.code, "")
                row[f"Example-{lang.code}"] = item.example_translations.get(lang.code, "")
            rows.append(row)
        return rows

    @staticmethod
    def export_json(items: Sequence[VocabularyItem], path: Path) -> Path:
        """Write items as wire records to ``path``; returns the path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = [item_to_record(item) for item in items]
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Exported %d item(s) to %s", len(payload), path)
        return path

    @staticmethod
    def default_filename(context: DatasetContext) -> str:
        return f"{context.app_name}_{language_name(context.target_language)}_export.json"

    def export(
        self,
        user: Optional[User],
        context: DatasetContext,
        items: Sequence[VocabularyItem],
        directory: Path,
    ) -> Path:
        """Admin-only JSON export of a context view into ``directory``.

        Raises:
            PermissionDeniedError: If the user is not an administrator.
        """
        self.permission_evaluator.require_admin(user, "export data")
        return self.export_json(context.select(items), Path(directory) / self.default_filename(context))
