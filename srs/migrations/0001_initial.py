import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CardSchedule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.UUIDField()),
                ("study_set_id", models.CharField(blank=True, default="", max_length=64)),
                ("card_id", models.CharField(max_length=64)),
                ("ease_factor", models.FloatField(default=2.5)),
                ("interval_days", models.BigIntegerField(default=0)),
                ("repetitions", models.PositiveIntegerField(default=0)),
                ("next_review_ms", models.BigIntegerField(default=0)),
                ("last_answered_correct", models.BooleanField(default=False)),
                ("total_reviews", models.PositiveIntegerField(default=0)),
                ("correct_reviews", models.PositiveIntegerField(default=0)),
                ("avg_response_time_ms", models.FloatField(blank=True, null=True)),
                ("last_reviewed_ms", models.BigIntegerField(blank=True, null=True)),
                ("version", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "srs_card_schedule",
                "indexes": [
                    models.Index(
                        fields=["user_id", "study_set_id", "next_review_ms"],
                        name="srs_sched_user_next_idx",
                    )
                ],
                "unique_together": {("user_id", "study_set_id", "card_id")},
            },
        ),
        migrations.CreateModel(
            name="ReviewLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.UUIDField()),
                ("study_set_id", models.CharField(blank=True, default="", max_length=64)),
                ("card_id", models.CharField(max_length=64)),
                ("quality", models.SmallIntegerField()),
                ("correct", models.BooleanField()),
                ("response_time_ms", models.FloatField(blank=True, null=True)),
                ("idempotency_key", models.CharField(blank=True, max_length=64, null=True)),
                ("reviewed_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "srs_review_log",
                "indexes": [
                    models.Index(
                        fields=["user_id", "study_set_id", "card_id", "reviewed_at"],
                        name="srs_log_user_card_idx",
                    )
                ],
                "unique_together": {("user_id", "study_set_id", "card_id", "idempotency_key")},
            },
        ),
    ]
