class ReviewError(Exception):
    """Base class for review scheduling errors."""


class ReviewValidationError(ReviewError, ValueError):
    """A review event was rejected before reaching the scheduler."""


class InvalidQualityError(ReviewValidationError):
    def __init__(self, quality):
        self.quality = quality
        super().__init__(f"quality must be an integer between 0 and 5, got {quality!r}")


class StorageError(ReviewError):
    """
    The backing store failed to read or write.

    ``retryable`` tells the caller whether repeating the operation may succeed.
    """

    def __init__(self, message, retryable=True):
        super().__init__(message)
        self.retryable = retryable


class ConcurrentReviewError(StorageError):
    """Another write to the same card won the race."""
