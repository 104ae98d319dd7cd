"""
Content Catalog: Drill Item Loader.

Loads the static practice content from JSON:
- bundles.json      - headword bundles (unit of spaced repetition)
- usage_items.json  - standalone usage items (also used by the diagnostic)
- passages.json     - reading passages for the diagnostic

Records are validated here, at the loading boundary. A category or item
type outside the closed sets, a missing field or a duplicate item id
raises CatalogError; nothing downstream re-checks tags.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from functools import lru_cache
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .constants import DrillType, ExamType, Level, UsageCategory, USAGE_CATEGORIES


class CatalogError(ValueError):
    """Raised when catalog content is malformed."""


# =============================================================================
# Models
# =============================================================================


class ContentItem(BaseModel):
    """
    An atomic practice question.

    Bundle JSON carries the category as ``errorTag`` and the mechanic as
    ``itemType``; standalone items use ``category`` and ``type``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    type: DrillType = Field(validation_alias=AliasChoices("type", "itemType"))
    category: UsageCategory = Field(validation_alias=AliasChoices("category", "errorTag"))
    prompt: str
    choices: tuple[str, ...] | None = None
    tokens: tuple[str, ...] | None = None
    answer: str | tuple[str, ...]
    explanation: str = ""
    difficulty: str | None = None

    @property
    def has_ordered_answer(self) -> bool:
        """True for multi-blank or token-order answers."""
        return isinstance(self.answer, tuple)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class Bundle(BaseModel):
    """A headword cluster of related items."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    headword: str = ""
    exam_type: ExamType | None = Field(
        default=None, validation_alias=AliasChoices("exam_type", "examType")
    )
    level: Level | None = None
    tags: tuple[str, ...] = ()
    items: tuple[ContentItem, ...] = ()


class ReadingQuestion(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    question: str
    choices: tuple[str, ...]
    correct_answer: str = Field(
        validation_alias=AliasChoices("correct_answer", "correctAnswer")
    )
    explanation: str = ""


class ReadingPassage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    title: str
    content: str
    word_count: int = Field(
        gt=0, validation_alias=AliasChoices("word_count", "wordCount")
    )
    difficulty: Level | None = None
    exam_type: ExamType | None = Field(
        default=None, validation_alias=AliasChoices("exam_type", "examType")
    )
    questions: tuple[ReadingQuestion, ...] = ()


def _parse(model: type[BaseModel], record: Any, source: str) -> Any:
    """Validate one raw record, converting pydantic errors to CatalogError."""
    try:
        return model.model_validate(record)
    except ValidationError as e:
        record_id = record.get("id", "?") if isinstance(record, dict) else "?"
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise CatalogError(f"{source}: invalid record '{record_id}': {problems}") from e


# =============================================================================
# Catalog
# =============================================================================


class Catalog:
    """
    Read-only collection of drill content.

    Loaded once and shared by every selection call. Item order is stable:
    bundle items in bundle order, then standalone items.
    """

    DEFAULT_DATA_DIR = Path(__file__).parent / "data"
    BUNDLES_FILE = "bundles.json"
    ITEMS_FILE = "usage_items.json"
    PASSAGES_FILE = "passages.json"

    def __init__(
        self,
        bundles: Iterable[Bundle] = (),
        standalone_items: Iterable[ContentItem] = (),
        passages: Iterable[ReadingPassage] = (),
    ):
        self._bundles: tuple[Bundle, ...] = tuple(bundles)
        self._standalone: tuple[ContentItem, ...] = tuple(standalone_items)
        self._passages: tuple[ReadingPassage, ...] = tuple(passages)

        self._items: dict[str, ContentItem] = {}
        self._bundle_of: dict[str, str] = {}

        for bundle in self._bundles:
            for item in bundle.items:
                self._register(item, source=f"bundle '{bundle.id}'")
                self._bundle_of[item.id] = bundle.id

        for item in self._standalone:
            self._register(item, source="standalone items")

        self._ordered: tuple[ContentItem, ...] = tuple(self._items.values())

    def _register(self, item: ContentItem, source: str) -> None:
        if item.id in self._items:
            raise CatalogError(f"{source}: duplicate item id '{item.id}'")
        self._items[item.id] = item

    # ----- construction -----

    @classmethod
    def from_records(
        cls,
        bundles: Iterable[dict] = (),
        items: Iterable[dict] = (),
        passages: Iterable[dict] = (),
    ) -> Catalog:
        """Build a catalog from raw JSON-style records."""
        return cls(
            bundles=[_parse(Bundle, b, "bundles") for b in bundles],
            standalone_items=[_parse(ContentItem, i, "usage items") for i in items],
            passages=[_parse(ReadingPassage, p, "passages") for p in passages],
        )

    @classmethod
    def load(cls, data_dir: Path | None = None) -> Catalog:
        """
        Load the catalog from a data directory.

        Args:
            data_dir: Directory with the catalog JSON files
                (default: packaged seed data)

        Returns:
            Catalog instance

        Raises:
            CatalogError: If a file is unreadable or a record is invalid
        """
        data_dir = data_dir or cls.DEFAULT_DATA_DIR

        catalog = cls.from_records(
            bundles=cls._read_json(data_dir / cls.BUNDLES_FILE),
            items=cls._read_json(data_dir / cls.ITEMS_FILE),
            passages=cls._read_json(data_dir / cls.PASSAGES_FILE, required=False),
        )

        logger.debug(
            f"Loaded catalog from {data_dir}: {len(catalog)} items, "
            f"{len(catalog.bundles)} bundles, {len(catalog.passages)} passages"
        )
        return catalog

    @staticmethod
    def _read_json(path: Path, required: bool = True) -> list[dict]:
        if not path.exists():
            if required:
                raise CatalogError(f"Catalog file not found: {path}")
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogError(f"{path.name}: not valid JSON ({e})") from e

        if not isinstance(data, list):
            raise CatalogError(f"{path.name}: expected a JSON array of records")
        return data

    # ----- access -----

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self._ordered)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    @property
    def bundles(self) -> tuple[Bundle, ...]:
        return self._bundles

    @property
    def passages(self) -> tuple[ReadingPassage, ...]:
        return self._passages

    def all_items(self) -> list[ContentItem]:
        """Every item: bundle items first, then standalone items."""
        return list(self._ordered)

    def standalone_items(self) -> list[ContentItem]:
        return list(self._standalone)

    def items_in_category(self, category: UsageCategory) -> list[ContentItem]:
        return [item for item in self._ordered if item.category == category]

    def get(self, item_id: str) -> ContentItem | None:
        return self._items.get(item_id)

    def bundle_id_for(self, item_id: str) -> str | None:
        """Bundle containing the item, or None for standalone items."""
        return self._bundle_of.get(item_id)

    def get_passage(self, passage_id: str) -> ReadingPassage | None:
        return next((p for p in self._passages if p.id == passage_id), None)

    def stats(self) -> dict:
        """Item counts per category and per drill type."""
        by_category = {cat.value: 0 for cat in USAGE_CATEGORIES}
        by_type = {t.value: 0 for t in DrillType}
        for item in self._ordered:
            by_category[item.category.value] += 1
            by_type[item.type.value] += 1

        return {
            "total_items": len(self._ordered),
            "bundles": len(self._bundles),
            "standalone_items": len(self._standalone),
            "passages": len(self._passages),
            "by_category": by_category,
            "by_type": by_type,
        }


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """The packaged seed catalog, loaded once per process."""
    return Catalog.load()
