"""Reconciliation controller: operator actions against the store and the gateway."""
import logging
import math
import uuid
from typing import Iterable, Optional

from price_monitor.errors import ApproveFailed, DeleteSyncFailed, EnrollFailed, FetchFailed
from price_monitor.fetch.client import SyncGateway
from price_monitor.fetch.endpoints import approval_price
from price_monitor.jobs.notifications import ERROR, SUCCESS, WARNING, NotificationLog
from price_monitor.parse.models import Decision, ProductRecord, Status
from price_monitor.store.defaults import INITIAL_PRODUCTS
from price_monitor.store.products import ProductStore
from price_monitor.store.selection import SelectionManager
from price_monitor.store.slot import DurableSlot

logger = logging.getLogger(__name__)

PROVISIONAL_COMPETITOR_NAME = "Pending Search..."
PROVISIONAL_REASONING = "AI analysis initiated..."


class ReconciliationController:
    """Applies operator actions optimistically and settles them with the platform.

    Per action:
      add      - enroll first, insert locally only on success
      approve  - mark APPROVED, call, restore prior status on failure
      delete   - remove locally, call, keep the removal even on failure
      refresh  - fetch, replace the collection only on success

    Each local mutation and its persist happen without an await in between;
    only the remote call suspends.
    """

    def __init__(
        self,
        store: ProductStore,
        gateway: SyncGateway,
        selection: Optional[SelectionManager] = None,
        notifications: Optional[NotificationLog] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.selection = selection or SelectionManager()
        self.notifications = notifications or NotificationLog()
        self.store.on_remove(self.selection.discard_many)

    async def add(self, name: str, my_price: float, floor_price: float) -> ProductRecord:
        """Enroll a product and, once accepted, show it as a provisional record."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Product name is required")
        if not all(math.isfinite(p) and p >= 0 for p in (my_price, floor_price)):
            raise ValueError("Prices must be finite and non-negative")

        try:
            await self.gateway.enroll(name, my_price, floor_price)
        except EnrollFailed as e:
            self.notifications.post("add", ERROR, f"Failed to trigger workflow: {e.message}", e.status_code)
            raise

        record = ProductRecord(
            id=str(uuid.uuid4()),
            name=name,
            my_price=my_price,
            floor_price=floor_price,
            competitor_price=0,
            competitor_name=PROVISIONAL_COMPETITOR_NAME,
            decision=Decision.HOLD,
            reasoning=PROVISIONAL_REASONING,
            status=Status.PENDING,
        )
        self.store.upsert_one(record, prepend=True)
        self.notifications.post("add", SUCCESS, "Workflow Initiated! Product added to dashboard.")
        return record

    async def approve(self, product_id: str) -> ProductRecord:
        """Approve the current decision for product_id.

        Raises UnknownProduct if the id is not in the store.
        """
        record = self.store.get(product_id)
        previous_status = record.status
        new_price = approval_price(record)

        approved = record.with_status(Status.APPROVED)
        self.store.upsert_one(approved)

        try:
            await self.gateway.approve(product_id, new_price)
        except ApproveFailed as e:
            self._revert_status(product_id, previous_status)
            self.notifications.post("approve", ERROR, "Failed to approve. Reverting status.", e.status_code)
            raise

        self.notifications.post("approve", SUCCESS, f"Approved {record.name}")
        return approved

    def _revert_status(self, product_id: str, status: Status) -> None:
        """Restore only the status field of the record as it currently stands."""
        if product_id not in self.store:
            logger.info(f"Product {product_id} removed before approve settled, nothing to revert")
            return
        current = self.store.get(product_id)
        self.store.upsert_one(current.with_status(status))
        logger.info(f"Reverted {product_id} to {status.value}")

    async def delete_selected(self, ids: Optional[Iterable[str]] = None) -> int:
        """Delete ids (default: the current selection) locally, then sync.

        The local deletion stands even if the sync fails; in that case
        DeleteSyncFailed (a soft failure) is raised. The selection is always
        cleared.
        """
        target = sorted(set(ids) if ids is not None else self.selection.selected())
        if not target:
            self.selection.select_none()
            return 0

        removed = self.store.remove_many(target)
        try:
            await self.gateway.bulk_delete(target)
        except DeleteSyncFailed as e:
            e.removed = len(removed)
            self.notifications.post(
                "delete",
                WARNING,
                "Deleted from dashboard, but failed to sync with the workflow platform.",
                e.status_code,
            )
            raise
        else:
            self.notifications.post("delete", SUCCESS, f"Successfully deleted {len(removed)} products!")
        finally:
            self.selection.select_none()
        return len(removed)

    async def refresh(self) -> list[ProductRecord]:
        """Replace the collection with the platform's current view."""
        try:
            records = await self.gateway.fetch()
        except FetchFailed as e:
            self.notifications.post("refresh", ERROR, "Failed to fetch updates.", e.status_code)
            raise

        self.store.replace_all(records)
        # Drop selections for rows the platform no longer returns
        self.selection.discard_many(self.selection.selected() - set(self.store.ids()))
        self.notifications.post("refresh", SUCCESS, "Dashboard updated with real-time data!")
        return self.store.records()


def create_controller(
    slot: Optional[DurableSlot] = None,
    gateway: Optional[SyncGateway] = None,
    defaults: Iterable[ProductRecord] = INITIAL_PRODUCTS,
) -> ReconciliationController:
    """Build a controller over a freshly loaded store."""
    store = ProductStore(slot or DurableSlot())
    store.load(defaults)
    return ReconciliationController(store, gateway or SyncGateway())
