"""
Catalog Repository - Data Access Layer for sellable items

Authoritative prices and availability for shop products and event ticket
types. Order validation never trusts client prices; it reads them here.

Author: Academia
"""
import logging
from typing import Optional, Dict, Any

from supabase import Client

from app.core.database import first_row


logger = logging.getLogger(__name__)


class CatalogRepository:
    """
    Repository for products and event ticket types

    ``products.stock`` semantics: a negative value means stock is not
    tracked (unlimited); zero or more means tracked.
    """

    def __init__(self, sb: Client):
        self.sb = sb

    def find_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        """
        Find a product with its pricing and stock

        Returns:
            dict with id, name, price, member_price, stock or None
        """
        response = (
            self.sb.table("products")
            .select("id, name, price, member_price, stock")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        return first_row(response)

    def get_available_stock(self, product_id: str) -> int:
        """Stock minus active reservations (``get_available_stock`` RPC)"""
        response = self.sb.rpc("get_available_stock", {"p_product_id": product_id}).execute()
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else 0
        return int(data or 0)

    def find_event_ticket_type(self, ticket_type_id: str) -> Optional[Dict[str, Any]]:
        """
        Find an event ticket type with its ticket type name and event title

        Returns:
            dict with id, price, member_price, quantity_available,
            quantity_sold, ticket_types {name}, events {title} or None
        """
        response = (
            self.sb.table("event_ticket_types")
            .select(
                "id, price, member_price, quantity_available, quantity_sold, "
                "ticket_types (name), events (title)"
            )
            .eq("id", ticket_type_id)
            .limit(1)
            .execute()
        )
        return first_row(response)

    def decrement_stock(self, product_id: str, quantity: int) -> None:
        """Consume stock for a paid order line; untracked products are left alone"""
        response = (
            self.sb.table("products")
            .select("stock")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        product = first_row(response)
        if not product or product.get("stock") is None or product["stock"] < 0:
            return

        self.sb.table("products").update(
            {"stock": product["stock"] - quantity}
        ).eq("id", product_id).execute()
