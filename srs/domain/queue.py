"""
Due-queue derivation and aggregate stats over schedule states.

Everything here is recomputed from the states handed in; nothing is cached.
"""

from typing import Iterable, List, Mapping, Optional

from .state import CardId, DueResult, ReviewStats, ScheduleState
from ..config import DEFAULT_EASE_FACTOR, MASTERED_REPETITIONS


def _reviewed(states: Iterable[ScheduleState]) -> List[ScheduleState]:
    return [s for s in states if s.has_history]


def compute_stats(states: Iterable[ScheduleState], now_ms: int) -> ReviewStats:
    total = mastered = learning = struggling = due_now = 0
    ease_sum = 0.0

    for state in _reviewed(states):
        total += 1
        ease_sum += state.ease_factor
        if state.next_review_ms <= now_ms:
            due_now += 1

        # Buckets are exclusive: a failed card is struggling whatever its streak
        if not state.last_answered_correct:
            struggling += 1
        elif state.repetitions >= MASTERED_REPETITIONS:
            mastered += 1
        elif state.repetitions >= 1:
            learning += 1

    return ReviewStats(
        total_reviewed=total,
        mastered=mastered,
        learning=learning,
        struggling=struggling,
        due_now=due_now,
        average_ease_factor=ease_sum / total if total else DEFAULT_EASE_FACTOR,
    )


def compute_due(
    states: Mapping[CardId, ScheduleState], now_ms: int, limit: Optional[int] = None
) -> DueResult:
    """
    Build the review queue for ``now_ms``.

    Cards answered wrong last time come first, then cards due by date. Both
    groups are ordered by next review time. Cards never reviewed are left to
    the practice flow and never appear here.
    """
    reviewed = _reviewed(states.values())

    due = [s for s in reviewed if s.is_due(now_ms)]
    failed = [s for s in due if not s.last_answered_correct]
    scheduled = [s for s in due if s.last_answered_correct]
    failed.sort(key=lambda s: s.next_review_ms)
    scheduled.sort(key=lambda s: s.next_review_ms)

    due_cards = [s.card_id for s in failed + scheduled]
    if limit is not None:
        due_cards = due_cards[:limit]

    return DueResult(due_cards=due_cards, stats=compute_stats(reviewed, now_ms))


def failed_cards(states: Mapping[CardId, ScheduleState]) -> List[ScheduleState]:
    """Cards whose last answer was wrong, most recently reviewed first."""
    failed = [s for s in _reviewed(states.values()) if not s.last_answered_correct]
    failed.sort(key=lambda s: s.last_reviewed_ms or 0, reverse=True)
    return failed
