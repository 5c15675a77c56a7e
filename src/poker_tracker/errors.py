"""Error types shared across the application."""


class PokerTrackerError(Exception):
    """Base error for the poker tracker."""


class InvalidArgumentError(PokerTrackerError, ValueError):
    """Raised when an operation receives bad input."""


class SessionNotFoundError(InvalidArgumentError):
    """Raised when a completed session id is unknown."""


class InvalidStateError(PokerTrackerError):
    """Raised when the live tracker is in a state that forbids the operation."""


class AnalysisError(PokerTrackerError):
    """Raised when the analysis model call fails or returns a bad payload."""


class StorageError(PokerTrackerError):
    """Raised when the persistent store cannot be read or written."""


class StorageWarning(UserWarning):
    """Emitted when a write-through fails but in-memory state stays valid."""
