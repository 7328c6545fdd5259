"""Core exception classes for the Market Watch pattern engine."""
from concurrent.futures import Future


class MarketWatchError(Exception):
    """Base exception for pattern and level operations."""

    pass


class ThesisError(MarketWatchError):
    """Base exception for thesis operations."""

    pass


class ComponentNotFoundError(ThesisError):
    """Raised when a component name does not belong to the thesis schema."""

    def __init__(self, name: str, family: str) -> None:
        self.name = name
        self.family = family
        super().__init__(f"Component not found: {name!r} is not part of the {family} thesis")


class UnknownPatternFamilyError(ThesisError):
    """Raised when a thesis is requested for an unknown pattern family."""

    pass


class InvalidEvidenceError(ThesisError):
    """Raised when an evidence update carries invalid values."""

    pass


class PatternNotFoundError(MarketWatchError):
    """Raised when a pattern id is unknown to the repository."""

    pass


class PersistenceError(MarketWatchError):
    """Raised when the persistence collaborator fails."""

    pass


class PersistenceTimeoutError(PersistenceError):
    """Raised when a persistence call exceeds its timeout.

    The abandoned call is not cancelled. pending holds its future so a lock
    holder can wait for it to settle before letting the next writer in.
    """

    def __init__(self, message: str, pending: Future | None = None) -> None:
        self.pending = pending
        super().__init__(message)
