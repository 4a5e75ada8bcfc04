"""Review pipeline errors."""


class ReviewError(Exception):
    """Base exception for review pipeline operations."""


class AuthorizationInProgressError(ReviewError):
    """Raised when a batch operation is requested while another awaits approval."""


class NoPendingAuthorizationError(ReviewError):
    """Raised when an authorization result arrives with nothing outstanding."""


class InvariantViolation(ReviewError):
    """Raised when a caller breaks the pipeline's usage contract."""
