"""Exceptions raised by the conflict and availability engine."""

from __future__ import annotations


class RentalEngineError(Exception):
    """Base class for engine errors."""


class InvalidConflictRequest(RentalEngineError):
    """A conflict check was requested with bad input.

    Carries every violated constraint, not just the first one found.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class BookingStoreError(RentalEngineError):
    """The booking store could not be read."""


class MalformedOrderRecord(BookingStoreError):
    """A stored order record could not be decoded."""

    def __init__(self, order_id: object, reason: str) -> None:
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"order {order_id}: {reason}")


class CatalogUnavailable(RentalEngineError):
    """Product metadata could not be fetched. Never fatal to a conflict check."""
