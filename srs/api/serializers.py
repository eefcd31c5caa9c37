from rest_framework import serializers

from ..utils.time import ms_to_iso

class ReviewInSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    card_id = serializers.CharField(max_length=64)
    study_set_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    correct = serializers.BooleanField()
    quality = serializers.IntegerField(min_value=0, max_value=5, required=False, allow_null=True)
    response_time_ms = serializers.FloatField(min_value=0, required=False, allow_null=True)
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_blank=True)

class OverrideInSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    card_id = serializers.CharField(max_length=64)
    study_set_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    quality = serializers.IntegerField(min_value=0, max_value=5)

class ScopeQuerySerializer(serializers.Serializer):
    study_set_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")

class DueQuerySerializer(ScopeQuerySerializer):
    until = serializers.DateTimeField(required=False)  # ISO-8601
    limit = serializers.IntegerField(min_value=1, max_value=500, required=False)

class ScheduleStateSerializer(serializers.Serializer):
    card_id = serializers.CharField()
    ease_factor = serializers.FloatField()
    interval_days = serializers.IntegerField()
    repetitions = serializers.IntegerField()
    next_review_ms = serializers.IntegerField()
    next_review_utc = serializers.SerializerMethodField()
    last_answered_correct = serializers.BooleanField()
    total_reviews = serializers.IntegerField()
    correct_reviews = serializers.IntegerField()
    avg_response_time_ms = serializers.FloatField(allow_null=True)
    last_reviewed_ms = serializers.IntegerField(allow_null=True)

    def get_next_review_utc(self, state):
        return ms_to_iso(state.next_review_ms)

class ReviewEntrySerializer(serializers.Serializer):
    card_id = serializers.CharField()
    quality = serializers.IntegerField()
    correct = serializers.BooleanField()
    timestamp_ms = serializers.IntegerField()
    response_time_ms = serializers.FloatField(allow_null=True)

class ReviewStatsSerializer(serializers.Serializer):
    total_reviewed = serializers.IntegerField()
    mastered = serializers.IntegerField()
    learning = serializers.IntegerField()
    struggling = serializers.IntegerField()
    due_now = serializers.IntegerField()
    average_ease_factor = serializers.FloatField()
