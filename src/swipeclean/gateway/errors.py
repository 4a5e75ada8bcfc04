"""Gateway errors."""


class GatewayError(Exception):
    """Base exception for destructive operation failures."""


class UnknownAuthorizationError(GatewayError):
    """Raised when an authorization token is not outstanding."""
