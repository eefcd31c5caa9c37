import logging

import pytest

from srs.config import DAY_MS
from srs.domain.enums import Quality
from srs.domain.logic import (
    compute_next,
    infer_quality,
    next_ease_factor,
    quality_from_correctness,
    quality_from_response,
    replay,
    round_half_away,
)
from srs.domain.state import ReviewEntry, ScheduleState

logger = logging.getLogger(__name__)

NOW = 1_700_000_000_000

# Helpers

def review_n(n, quality=5, correct=True, start=NOW):
    state = None
    history = []
    for i in range(n):
        state = compute_next(state, quality, correct, start + i * DAY_MS, card_id="c1")
        history.append(state)
    return history


# Tests

def test_first_review_defaults():
    """A card with no prior state starts from ease 2.5, interval 0, no streak."""
    state = compute_next(None, 4, True, NOW, card_id=7)

    assert state.card_id == 7
    assert state.interval_days == 1
    assert state.repetitions == 1
    assert state.ease_factor == 2.5
    assert state.next_review_ms == NOW + DAY_MS
    assert state.total_reviews == 1
    assert state.correct_reviews == 1
    assert state.last_answered_correct is True
    assert state.last_reviewed_ms == NOW
    assert state.avg_response_time_ms is None


def test_determinism():
    """Same inputs always give the same state."""
    prior = ScheduleState(card_id="x", ease_factor=2.1, interval_days=9, repetitions=4,
                          next_review_ms=NOW, last_answered_correct=True,
                          total_reviews=6, correct_reviews=5)
    results = {compute_next(prior, 3, True, NOW) for _ in range(5)}
    assert len(results) == 1


def test_interval_growth_sequence_at_quality_five():
    """Intervals 1, 6, 16, 45 with ease rising by exactly 0.1 each step."""
    s1, s2, s3, s4 = review_n(4)

    ease1 = 2.5 + 0.1
    ease2 = ease1 + 0.1
    ease3 = ease2 + 0.1
    ease4 = ease3 + 0.1

    assert (s1.interval_days, s1.repetitions, s1.ease_factor) == (1, 1, ease1)
    assert (s2.interval_days, s2.repetitions, s2.ease_factor) == (6, 2, ease2)
    # third interval uses the ease held before the third review: round(6 * 2.7)
    assert (s3.interval_days, s3.repetitions, s3.ease_factor) == (16, 3, ease3)
    assert (s4.interval_days, s4.repetitions, s4.ease_factor) == (45, 4, ease4)
    assert s4.next_review_ms == NOW + 3 * DAY_MS + 45 * DAY_MS
    logger.info("✓ Passed: interval sequence %s",
                [s.interval_days for s in (s1, s2, s3, s4)])


def test_interval_rounds_half_away_from_zero():
    """6 * 2.75 = 16.5 rounds up to 17."""
    prior = ScheduleState(card_id="x", ease_factor=2.75, interval_days=6, repetitions=2,
                          total_reviews=2, correct_reviews=2, last_answered_correct=True)
    assert compute_next(prior, 4, True, NOW).interval_days == 17


@pytest.mark.parametrize("value,expected", [(16.5, 17), (16.49, 16), (0.5, 1), (2.5, 3), (-2.5, -3)])
def test_round_half_away(value, expected):
    assert round_half_away(value) == expected


@pytest.mark.parametrize("quality,delta", [
    (5, 0.1),
    (4, 0.1 - 1 * (0.08 + 1 * 0.02)),
    (3, 0.1 - 2 * (0.08 + 2 * 0.02)),
    (0, 0.1 - 5 * (0.08 + 5 * 0.02)),
])
def test_ease_update_formula(quality, delta):
    assert next_ease_factor(2.5, quality) == pytest.approx(2.5 + delta)


@pytest.mark.parametrize("quality", range(6))
@pytest.mark.parametrize("ease", [1.3, 1.31, 1.5, 2.5, 3.7])
def test_ease_never_drops_below_floor(quality, ease):
    prior = ScheduleState(card_id="x", ease_factor=ease, interval_days=3, repetitions=2,
                          total_reviews=2, correct_reviews=2, last_answered_correct=True)
    for correct in (True, False):
        assert compute_next(prior, quality, correct, NOW).ease_factor >= 1.3


def test_quality_zero_hits_floor():
    state = compute_next(None, 0, False, NOW, card_id="x")
    assert state.ease_factor == pytest.approx(1.7)  # 2.5 - 0.8
    state = compute_next(state, 0, False, NOW)
    assert state.ease_factor == 1.3


@pytest.mark.parametrize("quality", range(6))
def test_lapse_resets_streak(quality):
    """An incorrect review always restarts the streak at a one-day interval."""
    prior = ScheduleState(card_id="x", ease_factor=2.8, interval_days=120, repetitions=7,
                          total_reviews=9, correct_reviews=8, last_answered_correct=True)
    state = compute_next(prior, quality, False, NOW)

    assert state.repetitions == 0
    assert state.interval_days == 1
    assert state.next_review_ms == NOW + DAY_MS
    assert state.last_answered_correct is False
    assert state.total_reviews == 10
    assert state.correct_reviews == 8


def test_correct_with_low_quality_keeps_streak_but_cuts_ease():
    """correct drives the interval; quality only drives the ease."""
    prior = ScheduleState(card_id="x", ease_factor=2.5, interval_days=6, repetitions=2,
                          total_reviews=2, correct_reviews=2, last_answered_correct=True)
    state = compute_next(prior, 2, True, NOW)

    assert state.repetitions == 3
    assert state.interval_days == 15
    assert state.ease_factor == pytest.approx(2.5 - 0.32)
    assert state.last_answered_correct is True


def test_incorrect_with_high_quality_still_lapses():
    prior = ScheduleState(card_id="x", ease_factor=2.5, interval_days=6, repetitions=2,
                          total_reviews=2, correct_reviews=2, last_answered_correct=True)
    state = compute_next(prior, 5, False, NOW)

    assert state.repetitions == 0
    assert state.interval_days == 1
    assert state.ease_factor == 2.5 + 0.1


def test_counters_never_decrease():
    outcomes = [(5, True), (1, False), (4, True), (0, False), (3, True)]
    state = None
    for i, (quality, correct) in enumerate(outcomes):
        before = state
        state = compute_next(state, quality, correct, NOW + i, card_id="x")
        if before is not None:
            assert state.total_reviews == before.total_reviews + 1
            assert state.correct_reviews >= before.correct_reviews
    assert state.total_reviews == 5
    assert state.correct_reviews == 3


def test_response_time_smoothing():
    """1000 ms average and a 2000 ms answer give 1000*0.7 + 2000*0.3."""
    prior = ScheduleState(card_id="x", avg_response_time_ms=1000, total_reviews=1)
    state = compute_next(prior, 4, True, NOW, response_time_ms=2000)
    assert state.avg_response_time_ms == 1000 * 0.7 + 2000 * 0.3
    assert state.avg_response_time_ms == pytest.approx(1300)


def test_first_response_time_taken_as_is():
    state = compute_next(None, 4, True, NOW, card_id="x", response_time_ms=4200)
    assert state.avg_response_time_ms == 4200


def test_missing_response_time_keeps_average():
    prior = ScheduleState(card_id="x", avg_response_time_ms=1000, total_reviews=1)
    assert compute_next(prior, 4, True, NOW).avg_response_time_ms == 1000


def test_replay_matches_incremental():
    entries = [
        ReviewEntry("c1", 5, True, NOW),
        ReviewEntry("c1", 3, True, NOW + DAY_MS, response_time_ms=3000),
        ReviewEntry("c1", 1, False, NOW + 7 * DAY_MS, response_time_ms=9000),
        ReviewEntry("c1", 4, True, NOW + 8 * DAY_MS),
    ]
    state = None
    for e in entries:
        state = compute_next(state, e.quality, e.correct, e.timestamp_ms,
                             card_id=e.card_id, response_time_ms=e.response_time_ms)

    assert replay(entries) == state
    assert replay([]) is None


@pytest.mark.parametrize("correct,rt,avg,expected", [
    (False, 4000, 10000, Quality.BLACKOUT),
    (False, 6000, 10000, Quality.INCORRECT),
    (True, 4000, 10000, Quality.PERFECT),
    (True, 7000, 10000, Quality.HESITANT),
    (True, 11000, 10000, Quality.HESITANT),
    (True, 15000, 10000, Quality.HARD),
    (True, 30000, 10000, Quality.HARD),
])
def test_quality_from_response(correct, rt, avg, expected):
    assert quality_from_response(correct, rt, avg) == expected


def test_quality_from_correctness():
    assert quality_from_correctness(True) == 4
    assert quality_from_correctness(True, hesitation=True) == 3
    assert quality_from_correctness(False) == 1


def test_infer_quality_uses_card_average_as_baseline():
    prior = ScheduleState(card_id="x", avg_response_time_ms=2000, total_reviews=1)
    # 3000 ms is fast against the 15 s default but slow for this card
    assert infer_quality(None, True, 3000) == Quality.PERFECT
    assert infer_quality(prior, True, 3000) == Quality.HARD
    assert infer_quality(prior, False) == Quality.INCORRECT
