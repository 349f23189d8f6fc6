"""Data classes for the scheduling domain model."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

GRADUATED = -1


class Grade(str, Enum):
    """Learner's self-assessment for one review."""
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


class Phase(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"


class Bucket(str, Enum):
    """Deck bucket a card falls into for a given user at a given instant."""
    NEW = "new"
    DUE = "due"
    LEARNING = "learning"
    MATURE = "mature"


@dataclass
class Card:
    id: int
    deck_id: int
    front: str = ""
    back: str = ""


@dataclass
class ProgressState:
    """Scheduling state of one card for one user.

    ``interval`` is in days; fractions encode minutes and hours.
    ``learning_step`` is ``-1`` once graduated, an index into the learning
    steps while learning, and ``None`` for rows written before the column
    existed (see ``scheduler.migrate_legacy_progress``).
    """
    interval: float
    ease_factor: float
    repetitions: int
    due_date: datetime
    last_review: Optional[datetime] = None
    learning_step: Optional[int] = None

    @classmethod
    def new(cls, settings, now: datetime) -> "ProgressState":
        return cls(
            interval=0,
            ease_factor=settings.starting_ease_factor,
            repetitions=0,
            due_date=now,
            last_review=None,
            learning_step=0,
        )

    @property
    def phase(self) -> Phase:
        # A pre-created zeroed row is as new as a missing one.
        if self.repetitions == 0 and self.last_review is None:
            return Phase.NEW
        if self.graduated:
            return Phase.REVIEW
        return Phase.LEARNING

    @property
    def graduated(self) -> bool:
        return self.learning_step == GRADUATED


@dataclass(frozen=True)
class Preview:
    due_date: datetime
    interval: float


@dataclass
class DeckStats:
    new: int = 0
    due: int = 0
    learning: int = 0
    mature: int = 0
    total: int = 0

    def as_dict(self) -> dict:
        return {
            "new": self.new,
            "due": self.due,
            "learning": self.learning,
            "mature": self.mature,
            "total": self.total,
        }
