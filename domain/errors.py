"""
Domain: error taxonomy.

Every failure the back office reports to an operator is one of these. The API
layer maps them onto HTTP status codes; services raise them and never return
error flags.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional


class StationError(Exception):
    """Base class for all back-office errors."""

    status_code: int = 500


class ValidationError(StationError):
    """A required field is missing or a value is out of range."""

    status_code = 400


class InvalidReadingOrder(ValidationError):
    """Raised when a meter reading goes backwards."""

    def __init__(self, previous_reading: Decimal, current_reading: Decimal):
        self.previous_reading = previous_reading
        self.current_reading = current_reading
        super().__init__(
            f"Current reading {current_reading} cannot be less than previous reading {previous_reading}"
        )


class StaleReading(StationError):
    """Raised when the nozzle meter moved since the submission was prepared."""

    status_code = 409

    def __init__(self, nozzle_id: str, expected: Decimal, actual: Decimal):
        self.nozzle_id = nozzle_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Nozzle {nozzle_id} last reading is {actual}, submission assumed {expected}. "
            "Reload the nozzle and submit again."
        )


class InsufficientStock(StationError):
    """Raised when a tank does not hold enough fuel to cover a sale."""

    status_code = 409

    def __init__(self, tank_id: str, available: Decimal, required: Decimal):
        self.tank_id = tank_id
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient stock in tank {tank_id}. "
            f"Available: {available}, Required: {required}"
        )


class NotFound(StationError):
    """Raised when a referenced document does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class Conflict(StationError):
    """Raised when a document is created with an id that is already taken."""

    status_code = 409

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document {document_id} already exists in {collection}")


class PersistenceError(StationError):
    """Raised when the underlying document store call fails."""

    status_code = 502


class ConfigurationError(StationError):
    """Raised at startup when static configuration is unusable."""

    status_code = 500


__all__ = [
    "StationError",
    "ValidationError",
    "InvalidReadingOrder",
    "StaleReading",
    "InsufficientStock",
    "NotFound",
    "Conflict",
    "PersistenceError",
    "ConfigurationError",
]
