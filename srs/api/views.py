from rest_framework import views, status
from rest_framework.response import Response
import structlog
import uuid
from ..config import DEFAULT_DUE_LIMIT
from ..domain.enums import QUALITY_LABELS
from ..services.reviews import DatabaseReviewSession, override_last_quality, record_review
from ..utils.time import datetime_to_ms, ms_to_iso
from .serializers import (
    DueQuerySerializer,
    OverrideInSerializer,
    ReviewEntrySerializer,
    ReviewInSerializer,
    ReviewStatsSerializer,
    ScheduleStateSerializer,
    ScopeQuerySerializer,
)

base_logger = structlog.get_logger()


def request_logger():
    # Create a unique request_id
    return base_logger.bind(request_id=str(uuid.uuid4()))


def scope_params(request):
    qs = ScopeQuerySerializer(data=request.query_params)
    qs.is_valid(raise_exception=True)
    return qs.validated_data["study_set_id"]


class ReviewView(views.APIView):
    def post(self, request):
        logger = request_logger()

        s = ReviewInSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        state, was_idem = record_review(
            data["user_id"],
            data["card_id"],
            data["correct"],
            quality=data.get("quality"),
            response_time_ms=data.get("response_time_ms"),
            study_set_id=data["study_set_id"],
            idempotency_key=data.get("idempotency_key") or None,
        )
        status_code = status.HTTP_200_OK if was_idem else status.HTTP_201_CREATED

        logger.info(
            "review_api_response",
            user_id=str(data["user_id"]),
            card_id=data["card_id"],
            correct=data["correct"],
            idempotent=was_idem,
            interval_days=state.interval_days,
            next_review_utc=ms_to_iso(state.next_review_ms),
            status=status_code,
        )

        return Response(
            {
                "schedule": ScheduleStateSerializer(state).data,
                "idempotent": was_idem,
            },
            status=status_code,
        )


class OverrideQualityView(views.APIView):
    def post(self, request):
        logger = request_logger()

        s = OverrideInSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        state = override_last_quality(
            data["user_id"], data["card_id"], data["quality"], study_set_id=data["study_set_id"]
        )
        if state is None:
            logger.info("override_api_response", card_id=data["card_id"], status=404)
            return Response(
                {"error": "nothing to override"}, status=status.HTTP_404_NOT_FOUND
            )

        logger.info(
            "override_api_response",
            user_id=str(data["user_id"]),
            card_id=data["card_id"],
            quality=data["quality"],
            interval_days=state.interval_days,
            status=200,
        )
        return Response(
            {
                "schedule": ScheduleStateSerializer(state).data,
                "quality_label": QUALITY_LABELS[data["quality"]],
            }
        )


class DueCardsView(views.APIView):
    def get(self, request, user_id):
        logger = request_logger()

        qs = DueQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        study_set_id = qs.validated_data["study_set_id"]
        until = qs.validated_data.get("until")
        limit = qs.validated_data.get("limit", DEFAULT_DUE_LIMIT)

        session = DatabaseReviewSession(user_id, study_set_id)
        until_ms = datetime_to_ms(until) if until else session.clock()
        result = session.get_due_cards(until_ms, limit=limit)

        logger.info(
            "due_cards_api_response",
            user_id=str(user_id),
            study_set_id=study_set_id,
            until_utc=ms_to_iso(until_ms),
            card_count=len(result.due_cards),
        )

        return Response(
            {
                "user_id": str(user_id),
                "study_set_id": study_set_id,
                "until_utc": ms_to_iso(until_ms),
                "card_ids": result.due_cards,
                "stats": ReviewStatsSerializer(result.stats).data,
            }
        )


class StatsView(views.APIView):
    def get(self, request, user_id):
        study_set_id = scope_params(request)
        stats = DatabaseReviewSession(user_id, study_set_id).get_stats()
        request_logger().info("stats_api_response", user_id=str(user_id), **stats.to_dict())
        return Response(ReviewStatsSerializer(stats).data)


class FailedCardsView(views.APIView):
    def get(self, request, user_id):
        study_set_id = scope_params(request)
        failed = DatabaseReviewSession(user_id, study_set_id).get_failed_cards()
        return Response(
            {
                "user_id": str(user_id),
                "cards": ScheduleStateSerializer(failed, many=True).data,
            }
        )


class CardScheduleView(views.APIView):
    def get(self, request, user_id, card_id):
        study_set_id = scope_params(request)
        session = DatabaseReviewSession(user_id, study_set_id)
        state = session.get_state(card_id)
        if state is None:
            return Response(
                {"error": "card has not been reviewed"}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(
            {
                "schedule": ScheduleStateSerializer(state).data,
                "history": ReviewEntrySerializer(session.get_history(card_id), many=True).data,
            }
        )


class ProgressView(views.APIView):
    def delete(self, request, user_id):
        study_set_id = scope_params(request)
        DatabaseReviewSession(user_id, study_set_id).clear_all()
        request_logger().info("progress_cleared", user_id=str(user_id), study_set_id=study_set_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
