"""Map workflow feed rows to ProductRecords."""
import logging
from typing import Any

from pydantic import ValidationError

from price_monitor.errors import MalformedFetchItem
from price_monitor.parse.models import Decision, ProductRecord, Status

logger = logging.getLogger(__name__)

# Defaults for optional feed fields
DEFAULT_COMPETITOR_PRICE = 0
DEFAULT_COMPETITOR_NAME = "Online Market"
DEFAULT_DECISION = Decision.HOLD
DEFAULT_REASONING = "Waiting for analysis..."
DEFAULT_STATUS = Status.PENDING


def _map_decision(value: Any) -> Decision:
    if value is None:
        return DEFAULT_DECISION
    try:
        return Decision(str(value).upper())
    except ValueError:
        logger.debug(f"Unknown ai_strategy {value!r}, using {DEFAULT_DECISION.value}")
        return DEFAULT_DECISION


def _map_status(value: Any) -> Status:
    """Status arrives as a list of labels (first one wins) or a plain string."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if not value:
        return DEFAULT_STATUS
    try:
        return Status(str(value).upper())
    except ValueError:
        logger.debug(f"Unknown status {value!r}, using {DEFAULT_STATUS.value}")
        return DEFAULT_STATUS


def map_fetch_item(item: Any) -> ProductRecord:
    """Map one feed row. Raises MalformedFetchItem when the row is unusable."""
    if not isinstance(item, dict):
        raise MalformedFetchItem(f"Expected an object, got {type(item).__name__}")
    if item.get("id") in (None, "") or not item.get("product_name"):
        raise MalformedFetchItem(f"Missing id or product_name: {item!r}")

    competitor_price = item.get("competitor_price")
    reasoning = item.get("latest_intel")
    try:
        return ProductRecord(
            id=str(item["id"]),
            name=item["product_name"],
            my_price=item.get("my_price"),
            floor_price=item.get("min_price"),
            competitor_price=DEFAULT_COMPETITOR_PRICE if competitor_price is None else competitor_price,
            competitor_name=DEFAULT_COMPETITOR_NAME,
            decision=_map_decision(item.get("ai_strategy")),
            reasoning=DEFAULT_REASONING if reasoning is None else reasoning,
            status=_map_status(item.get("status")),
        )
    except ValidationError as e:
        raise MalformedFetchItem(f"Invalid row {item.get('id')!r}: {e.errors()[0]['msg']}") from e


def map_fetch_items(items: list[Any]) -> list[ProductRecord]:
    """Map a whole feed, dropping malformed rows and duplicate ids."""
    records: list[ProductRecord] = []
    seen: set[str] = set()
    for index, item in enumerate(items):
        try:
            record = map_fetch_item(item)
        except MalformedFetchItem as e:
            logger.warning(f"Dropping feed row {index}: {e}")
            continue
        if record.id in seen:
            logger.warning(f"Dropping feed row {index}: duplicate id {record.id}")
            continue
        seen.add(record.id)
        records.append(record)
    return records
