"""Data models for monitored products."""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class Decision(str, Enum):
    """Pricing recommendation assigned by the remote decision workflow."""

    MATCH_PRICE = "MATCH_PRICE"
    BUNDLE_OFFER = "BUNDLE_OFFER"
    HOLD = "HOLD"


class Status(str, Enum):
    """Operator review status of a recommendation."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ProductRecord(BaseModel):
    """One monitored product and its pricing decision."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Remote id, or a local uuid pending confirmation")
    name: str = Field(..., min_length=1)
    my_price: float = Field(..., ge=0, description="Current listed price")
    floor_price: float = Field(..., ge=0, description="Minimum acceptable price")
    competitor_price: float = Field(default=0, description="0 means unknown")
    competitor_name: str = Field(default="Online Market")
    decision: Decision = Field(default=Decision.HOLD)
    reasoning: str = Field(default="")
    status: Status = Field(default=Status.PENDING)

    def with_status(self, status: Status) -> "ProductRecord":
        """Return a copy carrying a different status."""
        return self.model_copy(update={"status": status})
