"""
Item Selector.

Builds the list of items for a drill session.

Adaptive selection:
1. Start from the full catalog minus items already used
2. Weight each item by its category's combined weakness plus a small
   random jitter, then sort by weight (highest first)
3. Move items from due bundles to the front, keeping relative order
4. Greedy fill, at most ceil(count / 3) items per category
5. If that leaves the session short, fill from the same order ignoring the cap
6. Shuffle the final selection

Focused selection filters to one category, shuffles and truncates.

Randomness comes from an injected random.Random, so a seeded selector
is fully deterministic.
"""

from __future__ import annotations

import math
import random
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from src.content.catalog import Catalog, ContentItem, default_catalog
from src.content.constants import UsageCategory

from .srs import BundleState, due_bundle_ids
from .weakness import DIAGNOSTIC_WEIGHT, SESSION_WEIGHT, combined_weakness

if TYPE_CHECKING:
    from src.delivery.records import DiagnosticResult, DrillSession


@dataclass
class SelectorConfig:
    """Tuning for adaptive selection."""

    jitter: float = 0.3  # Upper bound of the random weight added per item
    category_cap_divisor: int = 3  # max per category = ceil(count / divisor)
    diagnostic_weight: float = DIAGNOSTIC_WEIGHT
    session_weight: float = SESSION_WEIGHT


class ItemSelector:
    """
    Chooses drill items from a catalog.

    The selector holds no learner state; everything it needs is passed
    into each call.
    """

    def __init__(
        self,
        catalog: Catalog,
        rng: random.Random | None = None,
        config: SelectorConfig | None = None,
    ):
        """
        Initialize the selector.

        Args:
            catalog: Content catalog to draw from
            rng: Random source (a fresh unseeded Random if None)
            config: Selection tuning (defaults if None)
        """
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.config = config or SelectorConfig()

    def max_per_category(self, count: int) -> int:
        return math.ceil(count / self.config.category_cap_divisor)

    def select_adaptive(
        self,
        count: int,
        diagnostic: DiagnosticResult | None,
        recent_sessions: Iterable[DrillSession],
        bundle_states: Iterable[BundleState],
        used_item_ids: Collection[str] = frozenset(),
        now: datetime | None = None,
    ) -> list[ContentItem]:
        """
        Select up to `count` items weighted toward the learner's weak categories.

        Args:
            count: Number of items wanted
            diagnostic: Latest diagnostic result, or None
            recent_sessions: Recent drill sessions (weakness evidence)
            bundle_states: Review states; items of due bundles go first
            used_item_ids: Item ids that must not be returned
            now: Reference instant for due checks (default: current UTC time)

        Returns:
            Shuffled list of at most `count` distinct items
        """
        if count <= 0:
            return []

        available = [item for item in self.catalog if item.id not in used_item_ids]
        if not available:
            logger.debug("No items available for adaptive selection")
            return []

        weakness = combined_weakness(
            diagnostic,
            recent_sessions,
            diagnostic_weight=self.config.diagnostic_weight,
            session_weight=self.config.session_weight,
        )

        weighted = [
            (weakness[item.category] + self.rng.uniform(0, self.config.jitter), item)
            for item in available
        ]
        # sort() is stable, so equal weights keep catalog order
        weighted.sort(key=lambda pair: pair[0], reverse=True)
        ranked = [item for _, item in weighted]

        due = due_bundle_ids(bundle_states, now)
        if due:
            due_items = [i for i in ranked if self.catalog.bundle_id_for(i.id) in due]
            other_items = [i for i in ranked if self.catalog.bundle_id_for(i.id) not in due]
            ranked = due_items + other_items

        selected = self._fill(ranked, count)

        self.rng.shuffle(selected)

        logger.debug(
            f"Adaptive selection: {len(selected)}/{count} items from {len(available)} available "
            f"({len(due)} due bundles)"
        )
        return selected

    def _fill(self, ranked: list[ContentItem], count: int) -> list[ContentItem]:
        cap = self.max_per_category(count)
        selected: list[ContentItem] = []
        chosen: set[str] = set()
        per_category: dict[UsageCategory, int] = {}

        for item in ranked:
            if len(selected) >= count:
                break
            if per_category.get(item.category, 0) < cap:
                selected.append(item)
                chosen.add(item.id)
                per_category[item.category] = per_category.get(item.category, 0) + 1

        # Not enough variety to honour the cap: top up in ranked order
        if len(selected) < count:
            for item in ranked:
                if len(selected) >= count:
                    break
                if item.id not in chosen:
                    selected.append(item)
                    chosen.add(item.id)

        return selected

    def select_focused(
        self,
        category: UsageCategory,
        count: int,
        used_item_ids: Collection[str] = frozenset(),
    ) -> list[ContentItem]:
        """Up to `count` shuffled items from a single category."""
        if count <= 0:
            return []

        pool = [
            item
            for item in self.catalog.items_in_category(category)
            if item.id not in used_item_ids
        ]
        self.rng.shuffle(pool)
        return pool[:count]


# =============================================================================
# Module-level helpers
# =============================================================================


def select_adaptive(
    count: int,
    diagnostic: DiagnosticResult | None,
    recent_sessions: Iterable[DrillSession],
    bundle_states: Iterable[BundleState],
    used_item_ids: Collection[str] = frozenset(),
    *,
    catalog: Catalog | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[ContentItem]:
    """Adaptive selection against the packaged catalog unless one is given."""
    selector = ItemSelector(catalog or default_catalog(), rng=rng)
    return selector.select_adaptive(
        count, diagnostic, recent_sessions, bundle_states, used_item_ids, now=now
    )


def select_focused(
    category: UsageCategory,
    count: int,
    used_item_ids: Collection[str] = frozenset(),
    *,
    catalog: Catalog | None = None,
    rng: random.Random | None = None,
) -> list[ContentItem]:
    selector = ItemSelector(catalog or default_catalog(), rng=rng)
    return selector.select_focused(category, count, used_item_ids)
