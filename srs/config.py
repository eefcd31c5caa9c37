DAY_MS = 24 * 3600 * 1000

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
LAPSE_INTERVAL_DAYS = 1

# Exponential smoothing of response latency
RESPONSE_TIME_NEW_WEIGHT = 0.3
RESPONSE_TIME_OLD_WEIGHT = 0.7
DEFAULT_RESPONSE_TIME_MS = 15000  # 15 seconds as baseline

MASTERED_REPETITIONS = 3

STORAGE_KEY = "studydeck_spaced_repetition"
DEFAULT_DUE_LIMIT = 50
REVIEW_WRITE_ATTEMPTS = 3
