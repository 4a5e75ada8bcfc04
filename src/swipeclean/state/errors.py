"""State management errors."""


class StateError(Exception):
    """Base exception for durable state operations."""


class LedgerWriteError(StateError):
    """Raised when the trash ledger cannot persist a change."""
