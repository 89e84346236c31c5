"""Payload and query builders for the workflow endpoints."""
from price_monitor.parse.models import Decision, ProductRecord


def wire_number(value: float) -> int | float:
    """Send whole amounts as integers (129000, not 129000.0)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def enroll_payload(name: str, my_price: float, floor_price: float) -> dict:
    """Body for the enroll workflow, which loops over a products array."""
    return {
        "products": [
            {
                "product_name": name,
                "my_price": wire_number(my_price),
                "min_price": wire_number(floor_price),
            }
        ]
    }


def approve_params(product_id: str, new_price: float) -> dict[str, str]:
    """Query parameters for the approve workflow."""
    return {
        "action": "done",
        "new_price": str(wire_number(new_price)),
        "product_id": product_id,
    }


def delete_payload(ids: list[str]) -> dict:
    return {"ids": list(ids)}


def approval_price(record: ProductRecord) -> float:
    """Price sent on approval: competitor price for MATCH_PRICE, otherwise unchanged."""
    if record.decision == Decision.MATCH_PRICE:
        return record.competitor_price
    return record.my_price
