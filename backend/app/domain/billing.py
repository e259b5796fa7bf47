"""
Billing Domain Models

Checkout requests and subscription management requests handled through
Stripe.

Author: Academia
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict


PAYMENT_TYPES = (
    "order",
    "video",
    "program",
    "professor_subscription",
    "event_ticket",
    "platform_subscription",
)
SUBSCRIPTION_PAYMENT_TYPES = ("platform_subscription", "professor_subscription")

MAX_CHECKOUT_ITEMS = 100
MAX_ITEM_QUANTITY = 1000


class CheckoutItem(BaseModel):
    id: str
    name: str
    price: float = Field(..., ge=0, description="Unit price in major currency units")
    quantity: int = Field(..., ge=1, le=MAX_ITEM_QUANTITY)
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @property
    def unit_amount_cents(self) -> int:
        return int(round(self.price * 100))


class CheckoutRequest(BaseModel):
    payment_type: str
    items: List[CheckoutItem]
    success_url: str
    cancel_url: str
    metadata: Dict[str, str] = Field(default_factory=dict)
    price_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def is_subscription(self) -> bool:
        return self.payment_type in SUBSCRIPTION_PAYMENT_TYPES

    @property
    def total_amount(self) -> float:
        return round(sum(item.price * item.quantity for item in self.items), 2)


class CheckoutSessionResult(BaseModel):
    session_id: str = Field(..., alias="sessionId")
    url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ManageSubscriptionRequest(BaseModel):
    action: Optional[str] = None
    subscription_type: Optional[str] = None
    professor_id: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancellation_feedback: Optional[str] = None
    request_refund: bool = False

    model_config = ConfigDict(extra="ignore")
