from dataclasses import asdict, dataclass, field
from typing import List, Optional, Union

from ..config import DEFAULT_EASE_FACTOR

CardId = Union[int, str]


@dataclass(frozen=True)
class ScheduleState:
    """
    Spaced-repetition record for one card of one learner.

    Timestamps are epoch milliseconds.
    """

    card_id: CardId
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0
    next_review_ms: int = 0
    last_answered_correct: bool = False
    total_reviews: int = 0
    correct_reviews: int = 0
    avg_response_time_ms: Optional[float] = None
    last_reviewed_ms: Optional[int] = None

    @property
    def has_history(self) -> bool:
        return self.total_reviews > 0

    def is_due(self, now_ms: int) -> bool:
        return not self.last_answered_correct or self.next_review_ms <= now_ms

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleState":
        return cls(**data)


@dataclass(frozen=True)
class ReviewEntry:
    card_id: CardId
    quality: int
    correct: bool
    timestamp_ms: int
    response_time_ms: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewEntry":
        return cls(**data)


@dataclass(frozen=True)
class ReviewStats:
    total_reviewed: int = 0
    mastered: int = 0
    learning: int = 0
    struggling: int = 0
    due_now: int = 0
    average_ease_factor: float = DEFAULT_EASE_FACTOR

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DueResult:
    due_cards: List[CardId] = field(default_factory=list)
    stats: ReviewStats = field(default_factory=ReviewStats)
