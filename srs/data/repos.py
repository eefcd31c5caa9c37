from contextlib import contextmanager

import structlog
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F

from ..exceptions import ConcurrentReviewError, StorageError
from ..utils.time import ms_to_datetime
from .models import CardSchedule, ReviewLog

logger = structlog.get_logger()


@contextmanager
def storage_errors(operation):
    """
    Surface database failures as retryable StorageError. A value the column
    cannot hold is a permanent failure.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.error("storage_failure", operation=operation, error=str(exc))
        raise StorageError(f"{operation} failed: {exc}") from exc
    except OverflowError as exc:
        logger.error("storage_overflow", operation=operation, error=str(exc))
        raise StorageError(f"{operation} failed: {exc}", retryable=False) from exc


def scope_filter(user_id, study_set_id):
    return {"user_id": user_id, "study_set_id": study_set_id or ""}


def get_schedule_for_update(user_id, study_set_id, card_id):
    """
    Fetch the schedule row and lock it until the surrounding transaction ends.
    Returns None for a card never reviewed.
    """
    return (CardSchedule.objects
            .select_for_update()
            .filter(card_id=card_id, **scope_filter(user_id, study_set_id))
            .first())


def get_schedule(user_id, study_set_id, card_id):
    return CardSchedule.objects.filter(
        card_id=card_id, **scope_filter(user_id, study_set_id)
    ).first()


def save_schedule(sched, user_id, study_set_id, card_id, state):
    """
    Write ``state`` for the card with a compare-and-swap on ``version``.

    ``sched`` is the row read earlier in this transaction, or None when the card
    had no row. Raises ConcurrentReviewError if another writer got there first.
    """
    fields = CardSchedule.fields_from_state(state)

    if sched is None:
        try:
            with transaction.atomic():
                return CardSchedule.objects.create(
                    card_id=card_id, version=1,
                    **scope_filter(user_id, study_set_id), **fields
                )
        except IntegrityError as exc:
            raise ConcurrentReviewError(
                f"schedule for card {card_id} was created concurrently"
            ) from exc

    updated = (CardSchedule.objects
               .filter(pk=sched.pk, version=sched.version)
               .update(version=F("version") + 1, **fields))
    if updated == 0:
        raise ConcurrentReviewError(f"schedule for card {card_id} changed concurrently")
    sched.refresh_from_db()
    return sched


def load_schedules(user_id, study_set_id):
    qs = CardSchedule.objects.filter(**scope_filter(user_id, study_set_id))
    return {row.card_id: row.to_state() for row in qs}


def get_existing_idempotent(user_id, study_set_id, card_id, idem_key):
    if not idem_key:
        return None
    return ReviewLog.objects.filter(
        card_id=card_id, idempotency_key=idem_key, **scope_filter(user_id, study_set_id)
    ).first()


def persist_review(user_id, study_set_id, card_id, quality, correct, reviewed_ms,
                   response_time_ms=None, idem_key=None):
    """
    Insert a ReviewLog; if a concurrent duplicate slips in, return the existing one.
    """
    try:
        with transaction.atomic():
            return ReviewLog.objects.create(
                card_id=card_id, quality=quality, correct=correct,
                response_time_ms=response_time_ms, idempotency_key=idem_key or None,
                reviewed_at=ms_to_datetime(reviewed_ms),
                **scope_filter(user_id, study_set_id)
            ), False
    except IntegrityError:
        # Duplicate idempotency key safeguard
        existing = get_existing_idempotent(user_id, study_set_id, card_id, idem_key)
        if existing is None:
            raise
        return existing, True


def card_history(user_id, study_set_id, card_id):
    """Review rows for one card, oldest first; same-instant rows in insert order."""
    return list(
        ReviewLog.objects
        .filter(card_id=card_id, **scope_filter(user_id, study_set_id))
        .order_by("reviewed_at", "id")
    )


def delete_scope(user_id, study_set_id):
    with transaction.atomic():
        logs, _ = ReviewLog.objects.filter(**scope_filter(user_id, study_set_id)).delete()
        schedules, _ = CardSchedule.objects.filter(
            **scope_filter(user_id, study_set_id)
        ).delete()
    return schedules, logs
