"""Destructive operation gateway package."""

from .errors import GatewayError, UnknownAuthorizationError
from .filesystem import FilesystemGateway
from .models import (
    AuthorizationOutcome,
    DestructiveGateway,
    Done,
    GatewayResult,
    Intent,
    PendingAuthorization,
    TrashEntry,
    TrashIndex,
)

__all__ = [
    "GatewayError",
    "UnknownAuthorizationError",
    "FilesystemGateway",
    "AuthorizationOutcome",
    "DestructiveGateway",
    "Done",
    "GatewayResult",
    "Intent",
    "PendingAuthorization",
    "TrashEntry",
    "TrashIndex",
]
