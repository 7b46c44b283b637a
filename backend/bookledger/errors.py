# Overview: Exception hierarchy shared by the ledger services and routes.

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all bookstore ledger errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class FetchFailure(LedgerError):
    """
    An event store could not be read.

    Always aborts the whole snapshot or report; a partial balance is never
    returned in its place.
    """

    def __init__(self, store_name: str, message: str | None = None):
        super().__init__(message or f"Failed to read store '{store_name}'", {"store": store_name})
        self.store_name = store_name


class InvariantViolation(LedgerError):
    """A mutation was rejected before anything was written."""
    pass


class NotFound(LedgerError):
    """A referenced record does not exist in the caller's account."""
    pass


class ClassificationAmbiguity(LedgerError):
    """
    A record cannot be assigned to exactly one classification rule.

    The aggregator skips such records and logs them; it never guesses.
    """

    def __init__(self, store_name: str, record_id: int | None, message: str):
        super().__init__(message, {"store": store_name, "record_id": record_id})
        self.store_name = store_name
        self.record_id = record_id
