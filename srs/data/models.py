from django.db import models
from django.utils import timezone

from ..config import DEFAULT_EASE_FACTOR
from ..domain.state import ReviewEntry, ScheduleState
from ..utils.time import datetime_to_ms


class CardSchedule(models.Model):
    user_id = models.UUIDField()
    study_set_id = models.CharField(max_length=64, blank=True, default="")
    card_id = models.CharField(max_length=64)
    ease_factor = models.FloatField(default=DEFAULT_EASE_FACTOR)
    interval_days = models.BigIntegerField(default=0)
    repetitions = models.PositiveIntegerField(default=0)
    next_review_ms = models.BigIntegerField(default=0)  # epoch ms, UTC
    last_answered_correct = models.BooleanField(default=False)
    total_reviews = models.PositiveIntegerField(default=0)
    correct_reviews = models.PositiveIntegerField(default=0)
    avg_response_time_ms = models.FloatField(null=True, blank=True)
    last_reviewed_ms = models.BigIntegerField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "srs_card_schedule"
        unique_together = (("user_id", "study_set_id", "card_id"),)
        indexes = [
            models.Index(
                fields=["user_id", "study_set_id", "next_review_ms"],
                name="srs_sched_user_next_idx",
            ),
        ]

    def to_state(self):
        return ScheduleState(
            card_id=self.card_id,
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            repetitions=self.repetitions,
            next_review_ms=self.next_review_ms,
            last_answered_correct=self.last_answered_correct,
            total_reviews=self.total_reviews,
            correct_reviews=self.correct_reviews,
            avg_response_time_ms=self.avg_response_time_ms,
            last_reviewed_ms=self.last_reviewed_ms,
        )

    @staticmethod
    def fields_from_state(state):
        return {
            "ease_factor": state.ease_factor,
            "interval_days": state.interval_days,
            "repetitions": state.repetitions,
            "next_review_ms": state.next_review_ms,
            "last_answered_correct": state.last_answered_correct,
            "total_reviews": state.total_reviews,
            "correct_reviews": state.correct_reviews,
            "avg_response_time_ms": state.avg_response_time_ms,
            "last_reviewed_ms": state.last_reviewed_ms,
        }


class ReviewLog(models.Model):
    user_id = models.UUIDField()
    study_set_id = models.CharField(max_length=64, blank=True, default="")
    card_id = models.CharField(max_length=64)
    quality = models.SmallIntegerField()
    correct = models.BooleanField()
    response_time_ms = models.FloatField(null=True, blank=True)
    idempotency_key = models.CharField(max_length=64, null=True, blank=True)
    reviewed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "srs_review_log"
        unique_together = (("user_id", "study_set_id", "card_id", "idempotency_key"),)
        indexes = [
            models.Index(
                fields=["user_id", "study_set_id", "card_id", "reviewed_at"],
                name="srs_log_user_card_idx",
            ),
        ]

    def to_entry(self):
        return ReviewEntry(
            card_id=self.card_id,
            quality=self.quality,
            correct=self.correct,
            timestamp_ms=datetime_to_ms(self.reviewed_at),
            response_time_ms=self.response_time_ms,
        )
