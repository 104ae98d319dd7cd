"""
Closed tag sets shared by the catalog, the adaptive engine and the CLI.

The iteration order of UsageCategory is the canonical catalog order used
for stable tie-breaking.
"""
from __future__ import annotations

from enum import Enum


APP_SLUG = "exam-vocab-boost"


class UsageCategory(str, Enum):
    """What a drill item teaches."""

    COLLOCATIONS = "collocations"
    PREPOSITIONS = "prepositions"
    REGISTER = "register"
    GRAMMAR_FRAMES = "grammar_frames"
    WORD_FORMS = "word_forms"


class DrillType(str, Enum):
    """The drill mechanic used to present an item."""

    COLLOCATION_MCQ = "collocation_mcq"
    PREPOSITION_FILL = "preposition_fill"
    REGISTER_CHOICE = "register_choice"
    SENTENCE_BUILD = "sentence_build"


class SessionMode(str, Enum):
    ADAPTIVE = "adaptive"
    FOCUSED = "focused"
    CRAM = "cram"


class ExamType(str, Enum):
    IELTS = "IELTS"
    TOEFL = "TOEFL"


class Level(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class Tier(str, Enum):
    FREE = "free"
    TIER_1 = "tier_1"
    TIER_2 = "tier_2"


USAGE_CATEGORIES: tuple[UsageCategory, ...] = tuple(UsageCategory)

CATEGORY_LABELS: dict[UsageCategory, str] = {
    UsageCategory.COLLOCATIONS: "Collocations",
    UsageCategory.PREPOSITIONS: "Prepositions",
    UsageCategory.REGISTER: "Register & Formality",
    UsageCategory.GRAMMAR_FRAMES: "Grammar Frames",
    UsageCategory.WORD_FORMS: "Word Forms",
}

L1_LANGUAGES = (
    "Chinese",
    "Spanish",
    "Arabic",
    "Japanese",
    "Korean",
    "Portuguese",
    "French",
    "German",
    "Russian",
    "Vietnamese",
    "Other",
)

PRICING_TIERS: dict[Tier, dict] = {
    Tier.TIER_1: {
        "name": "Full Access",
        "price": 39.99,
        "features": [
            "Unlimited adaptive drills",
            "Full diagnostic reports",
            "All usage categories",
            "Progress tracking forever",
            "Personalized fix plans",
        ],
    },
    Tier.TIER_2: {
        "name": "Full Access + Cram Mode Pack",
        "price": 59.99,
        "features": [
            "Everything in Full Access",
            "Intensive cram mode drills",
            "Exam day prep guides",
            "Priority support",
            "Downloadable study materials",
        ],
    },
}
