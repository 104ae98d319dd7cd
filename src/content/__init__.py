"""
Content: closed tag sets and the drill content catalog.
"""

from src.content.catalog import (
    Bundle,
    Catalog,
    CatalogError,
    ContentItem,
    ReadingPassage,
    ReadingQuestion,
    default_catalog,
)
from src.content.constants import (
    CATEGORY_LABELS,
    USAGE_CATEGORIES,
    DrillType,
    ExamType,
    Level,
    SessionMode,
    Tier,
    UsageCategory,
)

__all__ = [
    # Catalog
    "Catalog",
    "CatalogError",
    "ContentItem",
    "Bundle",
    "ReadingPassage",
    "ReadingQuestion",
    "default_catalog",
    # Tags
    "UsageCategory",
    "DrillType",
    "SessionMode",
    "ExamType",
    "Level",
    "Tier",
    "USAGE_CATEGORIES",
    "CATEGORY_LABELS",
]
