import math
from dataclasses import replace
from typing import Iterable, Optional

from .enums import Quality
from .state import ReviewEntry, ScheduleState
from ..config import (
    DAY_MS,
    DEFAULT_RESPONSE_TIME_MS,
    FIRST_INTERVAL_DAYS,
    LAPSE_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    RESPONSE_TIME_NEW_WEIGHT,
    RESPONSE_TIME_OLD_WEIGHT,
    SECOND_INTERVAL_DAYS,
)


def round_half_away(value: float) -> int:
    """Round to nearest integer, halves away from zero (16.5 -> 17)."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def next_ease_factor(ease_factor: float, quality: int) -> float:
    miss = 5 - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def compute_next(
    prior: Optional[ScheduleState],
    quality: int,
    correct: bool,
    now_ms: int,
    card_id=None,
    response_time_ms: Optional[float] = None,
) -> ScheduleState:
    # quality is validated earlier; correct drives the interval, quality the ease
    if prior is None:
        prior = ScheduleState(card_id=card_id)
    elif card_id is None:
        card_id = prior.card_id

    ease_factor = prior.ease_factor
    interval_days = prior.interval_days
    repetitions = prior.repetitions

    if not correct:
        repetitions = 0
        interval_days = LAPSE_INTERVAL_DAYS
    else:
        if repetitions == 0:
            interval_days = FIRST_INTERVAL_DAYS
        elif repetitions == 1:
            interval_days = SECOND_INTERVAL_DAYS
        else:
            interval_days = round_half_away(interval_days * ease_factor)
        repetitions += 1

    avg_response_time_ms = prior.avg_response_time_ms
    if response_time_ms:
        if avg_response_time_ms:
            avg_response_time_ms = (
                avg_response_time_ms * RESPONSE_TIME_OLD_WEIGHT
                + response_time_ms * RESPONSE_TIME_NEW_WEIGHT
            )
        else:
            avg_response_time_ms = response_time_ms

    return replace(
        prior,
        card_id=card_id,
        ease_factor=next_ease_factor(ease_factor, quality),
        interval_days=interval_days,
        repetitions=repetitions,
        next_review_ms=now_ms + interval_days * DAY_MS,
        last_answered_correct=bool(correct),
        total_reviews=prior.total_reviews + 1,
        correct_reviews=prior.correct_reviews + (1 if correct else 0),
        avg_response_time_ms=avg_response_time_ms,
        last_reviewed_ms=now_ms,
    )


def replay(entries: Iterable[ReviewEntry]) -> Optional[ScheduleState]:
    """
    Rebuild a card's state from its review history.

    Entries must be in chronological order; each is applied at its own timestamp.
    Returns None for an empty history.
    """
    state = None
    for entry in entries:
        state = compute_next(
            state,
            entry.quality,
            entry.correct,
            entry.timestamp_ms,
            card_id=entry.card_id,
            response_time_ms=entry.response_time_ms,
        )
    return state


def quality_from_response(
    correct: bool,
    response_time_ms: float,
    average_response_time_ms: float = DEFAULT_RESPONSE_TIME_MS,
) -> Quality:
    """
    Grade an answer by how fast it came relative to the card's usual pace.

    A quick wrong answer is a blackout; a slow wrong one had some familiarity.
    Correct answers grade 5 when under half the average time, 4 up to 1.2x,
    and 3 beyond that.
    """
    if not correct:
        if response_time_ms < average_response_time_ms * 0.5:
            return Quality.BLACKOUT
        return Quality.INCORRECT

    ratio = response_time_ms / average_response_time_ms
    if ratio < 0.5:
        return Quality.PERFECT
    if ratio < 1.2:
        return Quality.HESITANT
    return Quality.HARD


def quality_from_correctness(correct: bool, hesitation: bool = False) -> Quality:
    if not correct:
        return Quality.INCORRECT
    if hesitation:
        return Quality.HARD
    return Quality.HESITANT


def infer_quality(
    prior: Optional[ScheduleState], correct: bool, response_time_ms: Optional[float] = None
) -> Quality:
    """Default quality for callers that collected no explicit feedback."""
    if response_time_ms:
        baseline = DEFAULT_RESPONSE_TIME_MS
        if prior is not None and prior.avg_response_time_ms:
            baseline = prior.avg_response_time_ms
        return quality_from_response(correct, response_time_ms, baseline)
    return quality_from_correctness(correct)
