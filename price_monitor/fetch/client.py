"""HTTP gateway to the pricing workflow platform."""
import logging
from typing import Any, Optional

import httpx

from price_monitor.config import config
from price_monitor.errors import ApproveFailed, DeleteSyncFailed, EnrollFailed, FetchFailed
from price_monitor.fetch.endpoints import approve_params, delete_payload, enroll_payload
from price_monitor.parse.mapping import map_fetch_items
from price_monitor.parse.models import ProductRecord

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull a message out of an error response body if it has one."""
    try:
        body = response.json()
    except ValueError:
        return "Unknown error"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return "Unknown error"


class SyncGateway:
    """Issues the four workflow calls. Each call is a single attempt.

    Transport errors and non-2xx responses are converted to the typed
    failures in price_monitor.errors; nothing else escapes.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        enroll_url: Optional[str] = None,
        fetch_url: Optional[str] = None,
        approve_url: Optional[str] = None,
        delete_url: Optional[str] = None,
    ):
        self.client = client or httpx.AsyncClient(timeout=config.TIMEOUT)
        self.enroll_url = enroll_url or config.ENROLL_URL
        self.fetch_url = fetch_url or config.FETCH_URL
        self.approve_url = approve_url or config.APPROVE_URL
        self.delete_url = delete_url or config.DELETE_URL

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def enroll(self, name: str, my_price: float, floor_price: float) -> None:
        """Submit a product to the decision workflow."""
        payload = enroll_payload(name, my_price, floor_price)
        logger.debug(f"Enrolling {name!r}")
        try:
            response = await self.client.post(self.enroll_url, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Network error enrolling {name!r}: {e}")
            raise EnrollFailed(f"Network error: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.warning(f"Enroll rejected for {name!r}: HTTP {response.status_code} {message}")
            raise EnrollFailed(message, status_code=response.status_code)

    async def fetch(self) -> list[ProductRecord]:
        """Fetch the authority's current view, dropping malformed rows."""
        try:
            response = await self.client.get(self.fetch_url)
        except httpx.RequestError as e:
            logger.error(f"Network error fetching products: {e}")
            raise FetchFailed(f"Network error: {e}") from e

        if not response.is_success:
            logger.warning(f"Fetch rejected: HTTP {response.status_code}")
            raise FetchFailed(_error_message(response), status_code=response.status_code)

        try:
            data: Any = response.json()
        except ValueError as e:
            raise FetchFailed("Response is not JSON", status_code=response.status_code) from e
        if not isinstance(data, list):
            raise FetchFailed(
                f"Expected a JSON array, got {type(data).__name__}",
                status_code=response.status_code,
            )

        records = map_fetch_items(data)
        logger.info(f"Fetched {len(records)} products ({len(data) - len(records)} dropped)")
        return records

    async def approve(self, product_id: str, new_price: float) -> None:
        """Confirm a decision; new_price becomes the listed price."""
        params = approve_params(product_id, new_price)
        try:
            response = await self.client.get(self.approve_url, params=params)
        except httpx.RequestError as e:
            logger.error(f"Network error approving {product_id}: {e}")
            raise ApproveFailed(product_id, f"Network error: {e}") from e

        if not response.is_success:
            logger.warning(f"Approve rejected for {product_id}: HTTP {response.status_code}")
            raise ApproveFailed(product_id, f"API error: {response.status_code}", status_code=response.status_code)
        logger.info(f"Approve successful for {product_id}")

    async def bulk_delete(self, ids: list[str]) -> None:
        """Ask the platform to drop ids. Best effort."""
        try:
            response = await self.client.post(self.delete_url, json=delete_payload(ids))
        except httpx.RequestError as e:
            logger.error(f"Network error deleting {len(ids)} products: {e}")
            raise DeleteSyncFailed(ids, f"Network error: {e}") from e

        if not response.is_success:
            logger.warning(f"Delete sync rejected for {len(ids)} products: HTTP {response.status_code}")
            raise DeleteSyncFailed(ids, f"API error: {response.status_code}", status_code=response.status_code)
