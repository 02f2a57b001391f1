"""
Error taxonomy for the availability engine.

Store errors are translated into these at the store boundary; the HTTP layer
maps them to status codes in main.py. A bulk operation where every target is
already in the desired state is not an error: it comes back as a BulkResult
with applied == 0 and an info notice.
"""
from __future__ import annotations

from typing import Optional


class AvailabilityError(Exception):
    status_code = 400
    retryable = False

    def __init__(self, message: str, *, venue_id: Optional[str] = None):
        super().__init__(message)
        self.message  = message
        self.venue_id = venue_id


class ConfigurationMissing(AvailabilityError):
    """Weekly schedule absent or malformed for a date. Callers treat as closed."""


class StoreUnavailable(AvailabilityError):
    """The blockout table does not exist yet (not-yet-provisioned deployment)."""
    status_code = 503


class TransientStoreError(AvailabilityError):
    status_code = 503
    retryable = True


class Unauthenticated(AvailabilityError):
    status_code = 401


class OperationInProgress(AvailabilityError):
    status_code = 409


class VenueNotFound(AvailabilityError):
    status_code = 404


class BlockoutNotFound(AvailabilityError):
    status_code = 404


class InvalidBlockout(AvailabilityError):
    status_code = 422
