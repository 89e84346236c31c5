"""Derived values the dashboard shows next to each product."""
from typing import Iterable, Optional

from price_monitor.fetch.endpoints import approval_price
from price_monitor.parse.models import Decision, ProductRecord, Status

DECISION_LABELS = {
    Decision.MATCH_PRICE: "Match Price",
    Decision.BUNDLE_OFFER: "Bundle Offer",
    Decision.HOLD: "Hold",
}


def _group_indian(digits: str) -> str:
    """Group digits the Indian way: last three, then pairs (1,29,000)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_price(value: float) -> str:
    """Format as whole rupees, e.g. 129000 -> '₹1,29,000'."""
    amount = round(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(amount)))}"


def profit_impact(my_price: float, new_price: float) -> Optional[float]:
    """Percent change from my_price to new_price; None when either is unknown."""
    if not my_price or not new_price:
        return None
    return (new_price - my_price) / my_price * 100


def decision_label(decision: Decision) -> str:
    return DECISION_LABELS[decision]


def summary(records: Iterable[ProductRecord]) -> dict[str, int]:
    records = list(records)
    return {
        "total": len(records),
        "pending": sum(1 for r in records if r.status == Status.PENDING),
        "approved": sum(1 for r in records if r.status == Status.APPROVED),
        "rejected": sum(1 for r in records if r.status == Status.REJECTED),
    }


def product_view(record: ProductRecord, selected: bool = False) -> dict:
    """Record plus the derived values shown on its card."""
    impact = profit_impact(record.my_price, record.competitor_price)
    return {
        **record.model_dump(mode="json"),
        "selected": selected,
        "decision_label": decision_label(record.decision),
        "my_price_display": format_price(record.my_price),
        "floor_price_display": format_price(record.floor_price),
        "competitor_price_display": format_price(record.competitor_price),
        "profit_impact": None if impact is None else round(impact, 1),
        "approval_price": approval_price(record),
        "below_floor": bool(record.competitor_price) and record.competitor_price < record.floor_price,
    }
