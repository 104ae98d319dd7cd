"""
Learner Records.

Everything the tool remembers about a learner:
- UserProfile      - exam type, date, target and L1
- UserProgress     - drill time, reading history, per-category accuracy history
- DiagnosticResult - one per diagnostic attempt
- DrillSession     - one per completed practice session
- Entitlement      - purchased tier

Records are plain dataclasses persisted as JSON documents by the
StateStore. Timestamps are ISO-8601 UTC strings.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.content.catalog import ContentItem
from src.content.constants import (
    USAGE_CATEGORIES,
    ExamType,
    Level,
    SessionMode,
    Tier,
    UsageCategory,
)

Answer = str | list[str]


def utc_now_iso() -> str:
    """Current instant as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def new_record_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


# =============================================================================
# Category Tallies
# =============================================================================


@dataclass
class CategoryTally:
    """Correct / total counts for one usage category."""

    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0

    def to_dict(self) -> dict[str, int]:
        return {"correct": self.correct, "total": self.total}

    @classmethod
    def from_dict(cls, data: dict) -> CategoryTally:
        """Parse stored counts, clamped so that 0 <= correct <= total."""
        total = max(0, int(data.get("total", 0)))
        correct = min(total, max(0, int(data.get("correct", 0))))
        return cls(correct=correct, total=total)


Tallies = dict[UsageCategory, CategoryTally]


def keep_latest(points: list, limit: int) -> list:
    """The newest `limit` entries; none when the limit is not positive."""
    return points[-limit:] if limit > 0 else []


def empty_tallies() -> Tallies:
    """A tally for every category, all at zero."""
    return {cat: CategoryTally() for cat in USAGE_CATEGORIES}


def tallies_to_dict(tallies: Tallies) -> dict[str, dict[str, int]]:
    return {cat.value: tally.to_dict() for cat, tally in tallies.items()}


def tallies_from_dict(data: dict | None) -> Tallies:
    """Parse a stored breakdown. Unknown category keys are ignored."""
    tallies = empty_tallies()
    for key, value in (data or {}).items():
        try:
            tallies[UsageCategory(key)] = CategoryTally.from_dict(value)
        except ValueError:
            continue
    return tallies


# =============================================================================
# Diagnostic
# =============================================================================


@dataclass
class ReadingAnswer:
    question_id: str
    selected: str
    correct: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> ReadingAnswer:
        return cls(**data)


@dataclass
class ReadingResult:
    """Reading section of a diagnostic."""

    passage_id: str
    wpm: int
    accuracy: float  # 0-1
    time_spent_ms: int
    answers: list[ReadingAnswer] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "passage_id": self.passage_id,
            "wpm": self.wpm,
            "accuracy": self.accuracy,
            "time_spent_ms": self.time_spent_ms,
            "answers": [a.to_dict() for a in self.answers],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ReadingResult:
        return cls(
            passage_id=data["passage_id"],
            wpm=int(data.get("wpm", 0)),
            accuracy=float(data.get("accuracy", 0.0)),
            time_spent_ms=int(data.get("time_spent_ms", 0)),
            answers=[ReadingAnswer.from_dict(a) for a in data.get("answers", [])],
        )


@dataclass
class UsageAnswer:
    item_id: str
    category: UsageCategory
    correct: bool
    time_spent_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "category": self.category.value,
            "correct": self.correct,
            "time_spent_ms": self.time_spent_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UsageAnswer:
        return cls(
            item_id=data["item_id"],
            category=UsageCategory(data["category"]),
            correct=bool(data["correct"]),
            time_spent_ms=int(data.get("time_spent_ms", 0)),
        )


@dataclass
class UsageResult:
    """Usage section of a diagnostic."""

    items: list[UsageAnswer] = field(default_factory=list)
    category_scores: Tallies = field(default_factory=empty_tallies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [a.to_dict() for a in self.items],
            "category_scores": tallies_to_dict(self.category_scores),
        }

    @classmethod
    def from_dict(cls, data: dict) -> UsageResult:
        return cls(
            items=[UsageAnswer.from_dict(a) for a in data.get("items", [])],
            category_scores=tallies_from_dict(data.get("category_scores")),
        )


@dataclass
class DiagnosticResult:
    """One diagnostic attempt. Incomplete until completed_at is set."""

    id: str
    started_at: str
    completed_at: str | None = None
    reading: ReadingResult | None = None
    usage: UsageResult | None = None
    weaknesses: list[UsageCategory] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return bool(self.completed_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "reading": self.reading.to_dict() if self.reading else None,
            "usage": self.usage.to_dict() if self.usage else None,
            "weaknesses": [w.value for w in self.weaknesses],
        }

    @classmethod
    def from_dict(cls, data: dict) -> DiagnosticResult:
        reading = data.get("reading")
        usage = data.get("usage")
        return cls(
            id=data["id"],
            started_at=data["started_at"],
            completed_at=data.get("completed_at"),
            reading=ReadingResult.from_dict(reading) if reading else None,
            usage=UsageResult.from_dict(usage) if usage else None,
            weaknesses=[UsageCategory(w) for w in data.get("weaknesses", [])],
        )


# =============================================================================
# Drill Sessions
# =============================================================================


@dataclass
class AnsweredItem:
    """A content item annotated with the learner's response."""

    item: ContentItem
    user_answer: Answer | None = None
    correct: bool = False
    time_spent_ms: int = 0

    @property
    def category(self) -> UsageCategory:
        return self.item.category

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.item.to_dict(),
            "user_answer": self.user_answer,
            "correct": self.correct,
            "time_spent_ms": self.time_spent_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AnsweredItem:
        return cls(
            item=ContentItem.model_validate(data),
            user_answer=data.get("user_answer"),
            correct=bool(data.get("correct", False)),
            time_spent_ms=int(data.get("time_spent_ms", 0)),
        )


@dataclass
class SessionResults:
    total_items: int = 0
    correct: int = 0
    accuracy: float = 0.0  # 0-1
    category_breakdown: Tallies = field(default_factory=empty_tallies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_items": self.total_items,
            "correct": self.correct,
            "accuracy": self.accuracy,
            "category_breakdown": tallies_to_dict(self.category_breakdown),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionResults:
        return cls(
            total_items=int(data.get("total_items", 0)),
            correct=int(data.get("correct", 0)),
            accuracy=float(data.get("accuracy", 0.0)),
            category_breakdown=tallies_from_dict(data.get("category_breakdown")),
        )


@dataclass
class DrillSession:
    """A completed practice session."""

    id: str
    created_at: str
    mode: SessionMode
    duration_sec: int
    items: list[AnsweredItem] = field(default_factory=list)
    results: SessionResults | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at,
            "mode": self.mode.value,
            "duration_sec": self.duration_sec,
            "items": [i.to_dict() for i in self.items],
            "results": self.results.to_dict() if self.results else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DrillSession:
        results = data.get("results")
        return cls(
            id=data["id"],
            created_at=data["created_at"],
            mode=SessionMode(data.get("mode", SessionMode.ADAPTIVE.value)),
            duration_sec=int(data.get("duration_sec", 0)),
            items=[AnsweredItem.from_dict(i) for i in data.get("items", [])],
            results=SessionResults.from_dict(results) if results else None,
        )


# =============================================================================
# Profile, Progress, Entitlement
# =============================================================================


@dataclass
class UserProfile:
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)
    exam_type: ExamType | None = None
    exam_date: str | None = None  # YYYY-MM-DD
    target_score: str | None = None
    l1: str | None = None
    level_estimate: Level | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["exam_type"] = self.exam_type.value if self.exam_type else None
        data["level_estimate"] = self.level_estimate.value if self.level_estimate else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        exam_type = data.get("exam_type")
        level = data.get("level_estimate")
        return cls(
            created_at=data.get("created_at") or utc_now_iso(),
            updated_at=data.get("updated_at") or utc_now_iso(),
            exam_type=ExamType(exam_type) if exam_type else None,
            exam_date=data.get("exam_date"),
            target_score=data.get("target_score"),
            l1=data.get("l1"),
            level_estimate=Level(level) if level else None,
        )


@dataclass
class ReadingPoint:
    date: str
    wpm: int
    accuracy: float


@dataclass
class AccuracyPoint:
    date: str
    accuracy: float


@dataclass
class UserProgress:
    total_drill_time: int = 0  # seconds
    drills_completed: int = 0
    reading_history: list[ReadingPoint] = field(default_factory=list)
    usage_accuracy: dict[UsageCategory, list[AccuracyPoint]] = field(
        default_factory=lambda: {cat: [] for cat in USAGE_CATEGORIES}
    )
    exam_readiness_score: int = 0
    last_updated: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_drill_time": self.total_drill_time,
            "drills_completed": self.drills_completed,
            "reading_history": [asdict(p) for p in self.reading_history],
            "usage_accuracy": {
                cat.value: [asdict(p) for p in points]
                for cat, points in self.usage_accuracy.items()
            },
            "exam_readiness_score": self.exam_readiness_score,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserProgress:
        usage_accuracy: dict[UsageCategory, list[AccuracyPoint]] = {
            cat: [] for cat in USAGE_CATEGORIES
        }
        for key, points in (data.get("usage_accuracy") or {}).items():
            try:
                category = UsageCategory(key)
            except ValueError:
                continue
            usage_accuracy[category] = [AccuracyPoint(**p) for p in points]

        return cls(
            total_drill_time=int(data.get("total_drill_time", 0)),
            drills_completed=int(data.get("drills_completed", 0)),
            reading_history=[ReadingPoint(**p) for p in data.get("reading_history", [])],
            usage_accuracy=usage_accuracy,
            exam_readiness_score=int(data.get("exam_readiness_score", 0)),
            last_updated=data.get("last_updated") or utc_now_iso(),
        )


@dataclass
class Entitlement:
    tier: Tier = Tier.FREE
    active: bool = False
    purchased_at: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.active and self.tier != Tier.FREE

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "active": self.active,
            "purchased_at": self.purchased_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Entitlement:
        return cls(
            tier=Tier(data.get("tier", Tier.FREE.value)),
            active=bool(data.get("active", False)),
            purchased_at=data.get("purchased_at"),
        )
