"""Typed failures raised by the gateway, store and controller."""
from typing import Optional


class PriceMonitorError(Exception):
    """Base class for all price monitor errors."""


class SyncError(PriceMonitorError):
    """A remote workflow call did not succeed."""

    action = "sync"
    soft = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.action} failed (HTTP {self.status_code}): {self.message}"
        return f"{self.action} failed: {self.message}"


class EnrollFailed(SyncError):
    action = "enroll"


class FetchFailed(SyncError):
    action = "fetch"


class ApproveFailed(SyncError):
    action = "approve"

    def __init__(self, product_id: str, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.product_id = product_id


class DeleteSyncFailed(SyncError):
    """Local deletion already committed; only the remote sync failed."""

    action = "delete"
    soft = True

    def __init__(self, ids: list[str], message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.ids = ids
        # Number of records actually removed locally, set by the controller
        self.removed: Optional[int] = None


class MalformedPersistedState(PriceMonitorError):
    """The durable slot holds data that cannot be decoded into products."""


class StateWriteFailed(PriceMonitorError):
    """The durable slot rejected a write; memory keeps its previous state."""


class MalformedFetchItem(PriceMonitorError):
    """A single row of the fetch feed cannot be mapped to a product."""


class UnknownProduct(PriceMonitorError, KeyError):
    """No product with the given id in the store."""

    def __init__(self, product_id: str):
        super().__init__(product_id)
        self.product_id = product_id

    def __str__(self) -> str:
        return f"Unknown product: {self.product_id}"
