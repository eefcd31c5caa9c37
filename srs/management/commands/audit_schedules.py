from django.core.management.base import BaseCommand
from django.db import transaction

from srs.data.models import CardSchedule
from srs.data.repos import card_history, get_schedule_for_update, save_schedule
from srs.domain.logic import replay


class Command(BaseCommand):
    help = "Replay review history and report schedules that drifted from it"

    def add_arguments(self, parser):
        parser.add_argument("--user", help="Only audit this user id")
        parser.add_argument("--study-set", dest="study_set", help="Only audit this study set")
        parser.add_argument(
            "--fix", action="store_true", help="Rewrite drifted schedules from history"
        )

    def handle(self, *args, **options):
        rows = CardSchedule.objects.order_by("user_id", "study_set_id", "card_id")
        if options.get("user"):
            rows = rows.filter(user_id=options["user"])
        if options.get("study_set") is not None:
            rows = rows.filter(study_set_id=options["study_set"])

        checked = drifted = 0
        for row in rows.iterator():
            checked += 1
            history = card_history(row.user_id, row.study_set_id, row.card_id)
            expected = replay(entry.to_entry() for entry in history)
            stored = row.to_state()
            if expected == stored:
                continue

            drifted += 1
            label = f"{row.user_id}/{row.study_set_id or '-'}/{row.card_id}"
            if expected is None:
                self.stdout.write(self.style.WARNING(f"{label}: schedule has no review history"))
                continue

            self.stdout.write(self.style.WARNING(
                f"{label}: stored interval={stored.interval_days} reps={stored.repetitions} "
                f"ease={stored.ease_factor}, replay gives interval={expected.interval_days} "
                f"reps={expected.repetitions} ease={expected.ease_factor}"
            ))
            if options.get("fix"):
                with transaction.atomic():
                    locked = get_schedule_for_update(row.user_id, row.study_set_id, row.card_id)
                    save_schedule(locked, row.user_id, row.study_set_id, row.card_id, expected)
                self.stdout.write(self.style.SUCCESS(f"{label}: rewritten from history"))

        self.stdout.write(
            self.style.SUCCESS(f"Audited {checked} schedules, {drifted} drifted from history")
        )
