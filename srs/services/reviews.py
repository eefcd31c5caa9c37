import structlog
from django.db import transaction

from ..config import REVIEW_WRITE_ATTEMPTS
from ..data.repos import (
    card_history,
    delete_scope,
    get_existing_idempotent,
    get_schedule,
    get_schedule_for_update,
    load_schedules,
    persist_review,
    save_schedule,
    storage_errors,
)
from ..domain.ledger import ReviewLedger
from ..domain.logic import compute_next
from ..exceptions import ConcurrentReviewError
from ..utils.time import ms_to_iso, now_ms
from .session import (
    ReviewSession,
    resolve_quality,
    validate_card_id,
    validate_quality,
    validate_response_time,
)

logger = structlog.get_logger()


def _with_retries(operation, log_context, func):
    for attempt in range(1, REVIEW_WRITE_ATTEMPTS + 1):
        try:
            return func()
        except ConcurrentReviewError:
            logger.warning("review_write_conflict",
                operation=operation,
                attempt=attempt,
                **log_context,
            )
            if attempt == REVIEW_WRITE_ATTEMPTS:
                raise


def _stored_state(user_id, study_set_id, card_id):
    sched = get_schedule(user_id, study_set_id, card_id)
    if sched is None:
        # The review that owns this key has not committed its schedule yet
        raise ConcurrentReviewError(f"schedule for card {card_id} is not visible yet")
    return sched.to_state()


def record_review(user_id, card_id, correct, quality=None, response_time_ms=None,
                  study_set_id="", idempotency_key=None, now=None):
    """
    Apply one review to the stored schedule of ``(user, study set, card)``.

    Returns ``(state, was_idempotent)``. A repeated idempotency key returns the
    stored state without applying the review again.
    """
    card_id = str(validate_card_id(card_id))
    response_time_ms = validate_response_time(response_time_ms)
    if quality is not None:
        quality = validate_quality(quality)
    reviewed_ms = now_ms() if now is None else now

    logger.info("review_received",
        user_id=str(user_id),
        study_set_id=study_set_id,
        card_id=card_id,
        correct=bool(correct),
        quality=quality,
        idempotency_key=idempotency_key,
    )

    def attempt():
        with storage_errors("record_review"), transaction.atomic():
            # Fast path: return stored result if same idempotency_key
            if get_existing_idempotent(user_id, study_set_id, card_id, idempotency_key):
                logger.info("idempotent_reuse", user_id=str(user_id), card_id=card_id)
                return _stored_state(user_id, study_set_id, card_id), True

            # Serialize schedule update per (user, study set, card)
            sched = get_schedule_for_update(user_id, study_set_id, card_id)
            prior = sched.to_state() if sched else None
            grade = resolve_quality(prior, correct, quality, response_time_ms)

            _, was_idempotent = persist_review(
                user_id, study_set_id, card_id, grade, bool(correct), reviewed_ms,
                response_time_ms=response_time_ms, idem_key=idempotency_key,
            )
            if was_idempotent:
                return _stored_state(user_id, study_set_id, card_id), True

            state = compute_next(
                prior, grade, correct, reviewed_ms,
                card_id=card_id, response_time_ms=response_time_ms,
            )
            save_schedule(sched, user_id, study_set_id, card_id, state)
            return state, False

    state, was_idempotent = _with_retries(
        "record_review", {"user_id": str(user_id), "card_id": card_id}, attempt
    )

    logger.info("review_scheduled",
        user_id=str(user_id),
        study_set_id=study_set_id,
        card_id=card_id,
        interval_days=state.interval_days,
        repetitions=state.repetitions,
        ease_factor=state.ease_factor,
        next_review_utc=ms_to_iso(state.next_review_ms),
        idempotent=was_idempotent,
    )
    return state, was_idempotent


def override_last_quality(user_id, card_id, quality, study_set_id=""):
    """
    Re-grade the latest review of a card and rebuild its schedule by replay.

    Returns the rebuilt state, or None when the card has no review history.
    """
    card_id = str(validate_card_id(card_id))
    quality = validate_quality(quality)

    def attempt():
        with storage_errors("override_last_quality"), transaction.atomic():
            sched = get_schedule_for_update(user_id, study_set_id, card_id)
            rows = card_history(user_id, study_set_id, card_id)
            ledger = ReviewLedger(row.to_entry() for row in rows)

            position = ledger.last_position(card_id)
            if position is None:
                return None
            state = ledger.override_last_quality(card_id, quality)

            last = rows[position]
            last.quality = quality
            last.save(update_fields=["quality"])
            save_schedule(sched, user_id, study_set_id, card_id, state)
            return state

    state = _with_retries(
        "override_last_quality", {"user_id": str(user_id), "card_id": card_id}, attempt
    )

    if state is None:
        logger.info("override_nothing_to_override", user_id=str(user_id), card_id=card_id)
    else:
        logger.info("review_quality_overridden",
            user_id=str(user_id),
            study_set_id=study_set_id,
            card_id=card_id,
            quality=quality,
            interval_days=state.interval_days,
            next_review_utc=ms_to_iso(state.next_review_ms),
        )
    return state


class DatabaseReviewSession(ReviewSession):
    """
    Review session backed by the CardSchedule and ReviewLog tables.

    Card ids are stored as text, so states come back keyed by ``str(card_id)``.
    """

    def __init__(self, user_id, study_set_id="", clock=now_ms):
        super().__init__(study_set_id=study_set_id or "", clock=clock)
        self.user_id = user_id

    def record_answer(self, card_id, correct, quality=None, response_time_ms=None,
                      idempotency_key=None):
        state, _ = record_review(
            self.user_id, card_id, correct, quality, response_time_ms,
            study_set_id=self.study_set_id, idempotency_key=idempotency_key,
            now=self.clock(),
        )
        return state

    def override_last_quality(self, card_id, quality):
        return override_last_quality(
            self.user_id, card_id, quality, study_set_id=self.study_set_id
        )

    def get_states(self):
        with storage_errors("load_schedules"):
            return load_schedules(self.user_id, self.study_set_id)

    def get_state(self, card_id):
        with storage_errors("load_schedule"):
            sched = get_schedule(self.user_id, self.study_set_id, str(card_id))
        return sched.to_state() if sched else None

    def get_history(self, card_id):
        with storage_errors("load_history"):
            rows = card_history(self.user_id, self.study_set_id, str(card_id))
        return [row.to_entry() for row in rows]

    def clear_all(self):
        with storage_errors("clear_all"):
            schedules, logs = delete_scope(self.user_id, self.study_set_id)
        logger.info("review_data_cleared",
            user_id=str(self.user_id),
            study_set_id=self.study_set_id,
            schedules=schedules,
            reviews=logs,
        )
