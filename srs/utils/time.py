import time
from datetime import datetime, timedelta, timezone as dt_tz

EPOCH = datetime(1970, 1, 1, tzinfo=dt_tz.utc)
ONE_MS = timedelta(milliseconds=1)

def now_ms():
    return time.time_ns() // 1_000_000

def ms_to_datetime(ms):
    return EPOCH + timedelta(milliseconds=ms)

def datetime_to_ms(dt):
    return (dt - EPOCH) // ONE_MS

def ms_to_iso(ms):
    """ISO-8601 UTC string for display; None past what ``datetime`` can hold."""
    try:
        return ms_to_datetime(ms).isoformat()
    except OverflowError:
        return None
