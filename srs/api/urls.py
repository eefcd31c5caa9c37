from django.urls import path
from .views import (
    CardScheduleView,
    DueCardsView,
    FailedCardsView,
    OverrideQualityView,
    ProgressView,
    ReviewView,
    StatsView,
)

urlpatterns = [
    path("reviews", ReviewView.as_view(), name="review"),
    path("reviews/override", OverrideQualityView.as_view(), name="review-override"),
    path("users/<uuid:user_id>/due-cards", DueCardsView.as_view(), name="due-cards"),
    path("users/<uuid:user_id>/stats", StatsView.as_view(), name="stats"),
    path("users/<uuid:user_id>/failed-cards", FailedCardsView.as_view(), name="failed-cards"),
    path("users/<uuid:user_id>/cards/<str:card_id>", CardScheduleView.as_view(), name="card-schedule"),
    path("users/<uuid:user_id>/progress", ProgressView.as_view(), name="progress"),
]
