"""Exception types raised by the inventory core."""

from __future__ import annotations


class StockroomError(Exception):
    """Base class for all stockroom errors."""


class ValidationError(StockroomError, ValueError):
    """Input rejected before any state was changed."""


class InvalidQuantity(ValidationError):
    """A movement amount was not a positive integer."""


class NotFoundError(StockroomError, LookupError):
    """An item, department or record id is not present."""


class InvalidBackupFormat(StockroomError, ValueError):
    """A restore payload is missing its required collections."""
