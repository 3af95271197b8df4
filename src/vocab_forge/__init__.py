"""
Vocab Forge - a multi-language vocabulary catalog with generated enrichment.

This package provides:
- A dual-tier catalog (remote API plus local SQLite cache)
- Sequential enrichment of pending items through a generation service
- Field-level edit permissions per app and language
"""

__version__ = "0.1.0"

# Make key components available at package level
from vocab_forge.core import DatasetContext, ItemStatus, VocabularyItem

__all__ = [
    "DatasetContext",
    "ItemStatus",
    "VocabularyItem",
]
