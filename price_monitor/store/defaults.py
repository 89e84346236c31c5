"""Starter products shown when no state has been persisted yet."""
from price_monitor.parse.models import Decision, ProductRecord, Status

INITIAL_PRODUCTS: tuple[ProductRecord, ...] = (
    ProductRecord(
        id="1",
        name="Samsung Galaxy S24 Ultra (Titanium Gray)",
        my_price=115000,
        floor_price=110000,
        competitor_price=98000,
        competitor_name="Amazon",
        decision=Decision.BUNDLE_OFFER,
        reasoning=(
            "Competitor price (₹98,000) is below our floor (₹110,000). "
            "Cannot match price without loss. Recommend value bundle to compete."
        ),
        status=Status.PENDING,
    ),
    ProductRecord(
        id="2",
        name="iPhone 15 Pro",
        my_price=134900,
        floor_price=125000,
        competitor_price=129000,
        competitor_name="Flipkart",
        decision=Decision.MATCH_PRICE,
        reasoning=(
            "Competitor is selling at ₹129,000. Above our floor (₹125,000). "
            "Recommended price cut to match and win the Buy Box."
        ),
        status=Status.PENDING,
    ),
    ProductRecord(
        id="3",
        name="MacBook Pro 14 M3",
        my_price=169900,
        floor_price=160000,
        competitor_price=175000,
        competitor_name="Croma",
        decision=Decision.HOLD,
        reasoning="We are currently the cheapest option (₹169k vs ₹175k). Hold price to maximize margin.",
        status=Status.APPROVED,
    ),
)
