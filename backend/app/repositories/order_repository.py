"""
Order Repository - Data Access Layer for Orders

Handles writes of orders, their line items, stock reservations and pending
event attendees, plus the payment-time transitions.

Author: Academia
"""
import logging
from typing import List, Optional, Dict, Any

from supabase import Client

from app.core.database import first_row
from app.domain.order import ShippingInfo, ValidatedItem, StockReservation


logger = logging.getLogger(__name__)


class OrderRepository:
    """
    Repository for Order data access

    All table and RPC access for orders is centralized here.
    """

    def __init__(self, sb: Client):
        self.sb = sb

    def create_order(
        self,
        user_id: str,
        total_amount: float,
        is_member_order: bool,
        shipping: ShippingInfo
    ) -> Dict[str, Any]:
        """
        Insert a pending order

        Returns:
            The inserted order row (includes its id)
        """
        response = self.sb.table("orders").insert({
            "user_id": user_id,
            "total_amount": total_amount,
            "is_member_order": is_member_order,
            "shipping_name": shipping.name,
            "shipping_email": shipping.email,
            "shipping_phone": shipping.phone or "",
            "shipping_address": shipping.address or "",
            "notes": shipping.notes or "",
            "status": "pending",
        }).execute()

        order = first_row(response)
        if not order:
            raise RuntimeError("Order insert returned no row")
        return order

    def insert_order_items(self, order_id: str, items: List[ValidatedItem]) -> None:
        rows = [
            {
                "order_id": order_id,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": float(item.unit_price),
                "details": item.details,
            }
            for item in items
        ]
        if rows:
            self.sb.table("order_items").insert(rows).execute()

    def reserve_stock(self, order_id: str, reservation: StockReservation) -> bool:
        """Atomically reserve stock (``reserve_stock`` RPC); False when refused"""
        response = self.sb.rpc("reserve_stock", {
            "p_product_id": reservation.product_id,
            "p_order_id": order_id,
            "p_quantity": reservation.quantity,
        }).execute()
        return bool(response.data)

    def insert_pending_attendees(self, order_id: str, items: List[ValidatedItem]) -> None:
        rows = [
            {
                "order_id": order_id,
                "event_ticket_type_id": item.event_ticket_type_id,
                "quantity": item.quantity,
            }
            for item in items
        ]
        if rows:
            self.sb.table("pending_event_attendees").insert(rows).execute()

    def delete_order(self, order_id: str) -> None:
        self.sb.table("orders").delete().eq("id", order_id).execute()

    def get_order_items(self, order_id: str) -> List[Dict[str, Any]]:
        response = (
            self.sb.table("order_items")
            .select("product_id, quantity")
            .eq("order_id", order_id)
            .execute()
        )
        return response.data or []

    def mark_paid(self, order_id: str, payment_intent_id: Optional[str]) -> None:
        self.sb.table("orders").update({
            "status": "paid",
            "stripe_payment_intent_id": payment_intent_id,
        }).eq("id", order_id).execute()

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Dict[str, Any]]:
        response = (
            self.sb.table("orders")
            .select("id")
            .eq("stripe_payment_intent_id", payment_intent_id)
            .limit(1)
            .execute()
        )
        return first_row(response)

    def cancel(self, order_id: str) -> None:
        self.sb.table("orders").update({"status": "cancelled"}).eq("id", order_id).execute()

    def release_stock_reservation(self, order_id: str) -> None:
        self.sb.rpc("release_stock_reservation", {"p_order_id": order_id}).execute()

    def convert_pending_attendees(self, order_id: str) -> None:
        self.sb.rpc("convert_pending_to_actual_attendees", {"p_order_id": order_id}).execute()
