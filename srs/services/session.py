"""
Contract the quiz UI talks to, whatever backs the review data.

Adapters bind the pure scheduler, due queue and ledger to a concrete store and
scope their data per learner and per study set.
"""

import math
from abc import ABC, abstractmethod
from typing import List, Optional

from ..domain.logic import infer_quality
from ..domain.queue import compute_due, compute_stats, failed_cards
from ..domain.state import CardId, DueResult, ReviewEntry, ReviewStats, ScheduleState
from ..exceptions import InvalidQualityError, ReviewValidationError
from ..utils.time import now_ms


def validate_quality(quality) -> int:
    # bool is an int subclass but never a grade
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not 0 <= quality <= 5:
        raise InvalidQualityError(quality)
    return int(quality)


def validate_card_id(card_id) -> CardId:
    if isinstance(card_id, bool) or not isinstance(card_id, (int, str)):
        raise ReviewValidationError(f"card id must be an int or a string, got {card_id!r}")
    if isinstance(card_id, str) and not card_id:
        raise ReviewValidationError("card id must not be empty")
    return card_id


def validate_response_time(response_time_ms) -> Optional[float]:
    if response_time_ms is None:
        return None
    if isinstance(response_time_ms, bool) or not isinstance(response_time_ms, (int, float)):
        raise ReviewValidationError(
            f"response time must be a number of milliseconds, got {response_time_ms!r}"
        )
    if not math.isfinite(response_time_ms):
        raise ReviewValidationError(f"response time must be finite, got {response_time_ms}")
    if response_time_ms < 0:
        raise ReviewValidationError(f"response time must not be negative, got {response_time_ms}")
    return response_time_ms


def resolve_quality(prior, correct, quality=None, response_time_ms=None) -> int:
    """Explicit quality wins; otherwise grade from timing, then from correctness."""
    if quality is not None:
        return validate_quality(quality)
    return int(infer_quality(prior, correct, response_time_ms))


class ReviewSession(ABC):
    """
    Review operations for one learner within one study-set scope.

    ``clock`` returns the current time in epoch milliseconds.
    """

    def __init__(self, study_set_id: Optional[str] = None, clock=now_ms):
        self.study_set_id = study_set_id
        self.clock = clock

    @abstractmethod
    def record_answer(
        self,
        card_id: CardId,
        correct: bool,
        quality: Optional[int] = None,
        response_time_ms: Optional[float] = None,
    ) -> ScheduleState:
        """Log one review and return the card's new schedule."""

    @abstractmethod
    def override_last_quality(self, card_id: CardId, quality: int) -> Optional[ScheduleState]:
        """
        Re-grade the card's latest review and rebuild its schedule from history.

        Returns None when there is nothing to override.
        """

    @abstractmethod
    def get_states(self) -> dict:
        """All schedule states in scope, keyed by card id."""

    @abstractmethod
    def get_history(self, card_id: CardId) -> List[ReviewEntry]:
        """The card's review entries, oldest first."""

    @abstractmethod
    def clear_all(self) -> None:
        """Drop every schedule and review in scope. Irreversible."""

    def get_state(self, card_id: CardId) -> Optional[ScheduleState]:
        return self.get_states().get(card_id)

    def get_due_cards(self, now_ms: Optional[int] = None, limit: Optional[int] = None) -> DueResult:
        return compute_due(self.get_states(), self._now(now_ms), limit=limit)

    def get_stats(self, now_ms: Optional[int] = None) -> ReviewStats:
        return compute_stats(self.get_states().values(), self._now(now_ms))

    def get_failed_cards(self) -> List[ScheduleState]:
        return failed_cards(self.get_states())

    def _now(self, now_ms: Optional[int]) -> int:
        return self.clock() if now_ms is None else now_ms
