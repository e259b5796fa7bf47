"""
Order Domain Models

Represents the order-validation request, the server-side validated line
items and the result returned to the client.

Author: Academia
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from decimal import Decimal, ROUND_HALF_UP


CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convert a DB/JSON number to a 2-decimal Decimal"""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderItemRequest(BaseModel):
    """
    Cart line sent by the client

    Exactly one of product_id / event_ticket_type_id is expected. Prices are
    never accepted from the client.
    """

    product_id: Optional[str] = Field(None, description="Shop product ID")
    event_ticket_type_id: Optional[str] = Field(None, description="Event ticket type ID")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    selected_size: Optional[str] = Field(None, description="Selected size for apparel")

    model_config = ConfigDict(extra="ignore")


class ShippingInfo(BaseModel):
    """Buyer contact and delivery information"""

    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class OrderRequest(BaseModel):
    items: List[OrderItemRequest]
    shipping_info: ShippingInfo


class ValidatedItem(BaseModel):
    """
    Line item after server-side re-pricing

    Fields:
        product_id: Set for shop products
        event_ticket_type_id: Set for event tickets
        product_name: Product name, or "<event title> - <ticket type>" for tickets
        quantity: Units ordered
        unit_price: Authoritative price (member or standard)
        details: Extra line data ({"size": ...} or {"event_ticket": true})
    """

    product_id: Optional[str] = None
    event_ticket_type_id: Optional[str] = None
    product_name: str
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_product(self) -> bool:
        return self.product_id is not None

    @property
    def is_event_ticket(self) -> bool:
        return self.event_ticket_type_id is not None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    def to_dict(self) -> dict:
        data = self.model_dump(exclude_none=True)
        data["unit_price"] = float(self.unit_price)
        return data


class StockReservation(BaseModel):
    product_id: str
    quantity: int


class OrderResult(BaseModel):
    """Outcome of a successful order validation"""

    order_id: str
    total_amount: Decimal
    is_member_order: bool = False
    validated_items: List[ValidatedItem] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "order_id": self.order_id,
            "total_amount": float(self.total_amount),
            "validated_items": [item.to_dict() for item in self.validated_items],
        }
