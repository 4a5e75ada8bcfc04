"""Review pipeline package."""

from .authorization import AuthorizationHandshake, DeletionCoordinator
from .buffer import LookaheadBuffer
from .errors import (
    AuthorizationInProgressError,
    InvariantViolation,
    NoPendingAuthorizationError,
    ReviewError,
)
from .factory import CollectionServices, build_pipeline, build_services
from .history import UndoHistory
from .models import (
    EMPTY,
    LOADING,
    AuthorizationStatus,
    DecisionRecord,
    Empty,
    Loading,
    Ready,
    ReviewState,
)
from .pending import PendingDeleteSet
from .pipeline import ReviewPipeline
from .system_trash import SystemTrashReview

__all__ = [
    "AuthorizationHandshake",
    "DeletionCoordinator",
    "LookaheadBuffer",
    "AuthorizationInProgressError",
    "InvariantViolation",
    "NoPendingAuthorizationError",
    "ReviewError",
    "CollectionServices",
    "build_pipeline",
    "build_services",
    "UndoHistory",
    "EMPTY",
    "LOADING",
    "AuthorizationStatus",
    "DecisionRecord",
    "Empty",
    "Loading",
    "Ready",
    "ReviewState",
    "PendingDeleteSet",
    "ReviewPipeline",
    "SystemTrashReview",
]
