from .data.models import CardSchedule, ReviewLog  # noqa: F401
