"""
Order Validation Service
Re-prices a cart server-side and creates the pending order

Author: Academia
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from app.core.exceptions import ServiceError, ValidationFailed
from app.core.validators import Validator, is_number
from app.domain.order import (
    OrderRequest,
    OrderResult,
    StockReservation,
    ValidatedItem,
    to_money,
)
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.profile_repository import ProfileRepository


logger = logging.getLogger(__name__)


class OrderValidationService:
    """
    Service for validating carts and creating orders

    Handles:
    - Payload validation (items, shipping info)
    - Member vs standard pricing from the caller's platform subscription
    - Stock and ticket availability checks
    - Order, line item, stock reservation and pending attendee writes
    - Compensation: deleting the order when a later write fails

    The write sequence is not a transaction. If anything fails after the
    order row exists, the order is deleted on a best-effort basis and the
    original error is re-raised.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        catalog: CatalogRepository,
        orders: OrderRepository
    ):
        self.profiles = profiles
        self.catalog = catalog
        self.orders = orders

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def parse_request(payload: Any) -> OrderRequest:
        """
        Validate the raw JSON body

        Raises:
            ValidationFailed with every problem found
        """
        if not isinstance(payload, dict):
            raise ValidationFailed(["Request body must be a JSON object"])

        items = payload.get("items")
        shipping = payload.get("shipping_info")

        validator = Validator()
        validator.array(items, "items").array_min_length(items, 1, "items")

        if isinstance(items, list):
            for index, item in enumerate(items):
                if not isinstance(item, dict):
                    validator.custom(False, f"items[{index}] must be an object")
                    continue
                quantity = item.get("quantity")
                validator.custom(
                    is_number(quantity) and float(quantity).is_integer() and quantity >= 1,
                    f"items[{index}].quantity must be a positive integer"
                )
                for id_field in ("product_id", "event_ticket_type_id"):
                    if item.get(id_field) is not None:
                        validator.string(item[id_field], f"items[{index}].{id_field}")
                size = item.get("selected_size")
                validator.custom(
                    size is None or isinstance(size, str) or is_number(size),
                    f"items[{index}].selected_size must be a string"
                )

        if not isinstance(shipping, dict):
            validator.custom(False, "shipping_info is required")
        else:
            validator.required(shipping.get("name"), "shipping_info.name")
            validator.required(shipping.get("email"), "shipping_info.email")
            validator.email(shipping.get("email"), "shipping_info.email")
            for optional in ("name", "phone", "address", "notes"):
                value = shipping.get(optional)
                if value not in (None, ""):
                    validator.string(value, f"shipping_info.{optional}")

        result = validator.get_result()
        if not result.valid:
            raise ValidationFailed(result.errors)

        try:
            return OrderRequest(
                items=[OrderValidationService._normalize_item(item) for item in items],
                shipping_info=shipping
            )
        except ValidationError as e:
            raise ValidationFailed([f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()])

    @staticmethod
    def _normalize_item(item: Dict[str, Any]) -> Dict[str, Any]:
        normalized = {**item, "quantity": int(item["quantity"])}
        size = item.get("selected_size")
        # numeric sizes (shoes, kids apparel) are stored as labels
        if is_number(size):
            normalized["selected_size"] = str(int(size)) if float(size).is_integer() else str(size)
        return normalized

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def is_member(self, user_id: str) -> bool:
        profile = self.profiles.find_by_id(user_id)
        return bool(profile and profile.is_member())

    def _price_product(self, item, is_member: bool) -> Tuple[ValidatedItem, List[StockReservation]]:
        product = self.catalog.find_product(item.product_id)
        if not product:
            raise ServiceError(f"Product {item.product_id} not found")

        stock = product.get("stock")
        tracked = stock is not None and stock >= 0

        if tracked:
            available = self.catalog.get_available_stock(product["id"])
            if available < item.quantity:
                raise ServiceError(
                    f"Insufficient stock for product {product['name']}. Only {available} available."
                )

        price = product.get("member_price") if is_member else product.get("price")
        if price is None:
            price = product.get("price")

        validated = ValidatedItem(
            product_id=str(product["id"]),
            product_name=product["name"],
            quantity=item.quantity,
            unit_price=to_money(price),
            details={"size": item.selected_size} if item.selected_size else {},
        )
        reservations = [StockReservation(product_id=str(product["id"]), quantity=item.quantity)] if tracked else []
        return validated, reservations

    def _price_ticket(self, item, is_member: bool) -> ValidatedItem:
        ticket_type = self.catalog.find_event_ticket_type(item.event_ticket_type_id)
        if not ticket_type:
            raise ServiceError(f"Event ticket type {item.event_ticket_type_id} not found")

        if ticket_type.get("quantity_available") is not None:
            available = ticket_type["quantity_available"] - (ticket_type.get("quantity_sold") or 0)
            if available < item.quantity:
                raise ServiceError(f"Insufficient tickets available. Only {available} left.")

        member_price = ticket_type.get("member_price")
        if is_member and member_price is not None and member_price > 0:
            price = member_price
        else:
            price = ticket_type.get("price")

        event_title = (ticket_type.get("events") or {}).get("title", "")
        ticket_name = (ticket_type.get("ticket_types") or {}).get("name", "")

        return ValidatedItem(
            event_ticket_type_id=str(ticket_type["id"]),
            product_name=f"{event_title} - {ticket_name}",
            quantity=item.quantity,
            unit_price=to_money(price),
            details={"event_ticket": True},
        )

    def price_items(
        self,
        request: OrderRequest,
        is_member: bool
    ) -> Tuple[List[ValidatedItem], List[StockReservation], Decimal]:
        """
        Re-fetch authoritative price and availability for every line

        Returns:
            (validated items, stock reservations, total amount)

        Raises:
            ServiceError on the first unknown or unavailable item
        """
        validated_items: List[ValidatedItem] = []
        reservations: List[StockReservation] = []

        for item in request.items:
            if item.product_id:
                validated, item_reservations = self._price_product(item, is_member)
                validated_items.append(validated)
                reservations.extend(item_reservations)
            elif item.event_ticket_type_id:
                validated_items.append(self._price_ticket(item, is_member))
            else:
                raise ServiceError("Each item must have either product_id or event_ticket_type_id")

        total = to_money(sum((item.line_total for item in validated_items), Decimal("0")))
        return validated_items, reservations, total

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _compensate(self, order_id: str, error: Exception) -> None:
        logger.warning(f"Order {order_id} creation failed ({error}); deleting order")
        try:
            self.orders.delete_order(order_id)
        except Exception as delete_error:
            logger.error(f"Compensating delete of order {order_id} failed: {delete_error}")

    def persist(
        self,
        user_id: str,
        request: OrderRequest,
        validated_items: List[ValidatedItem],
        reservations: List[StockReservation],
        total: Decimal,
        is_member: bool
    ) -> str:
        """Write order, items, reservations and attendees; returns the order id"""
        order = self.orders.create_order(
            user_id=user_id,
            total_amount=float(total),
            is_member_order=is_member,
            shipping=request.shipping_info
        )
        order_id = str(order["id"])

        try:
            self.orders.insert_order_items(order_id, [i for i in validated_items if i.is_product])

            for reservation in reservations:
                if not self.orders.reserve_stock(order_id, reservation):
                    raise ServiceError("Failed to reserve stock. Please try again.")

            self.orders.insert_pending_attendees(order_id, [i for i in validated_items if i.is_event_ticket])

        except Exception as e:
            self._compensate(order_id, e)
            raise

        return order_id

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def create_order(self, user_id: str, payload: Any) -> OrderResult:
        """
        Validate a cart and create a pending order for user_id

        Returns:
            OrderResult with the new order id, total and validated items
        """
        request = self.parse_request(payload)
        is_member = self.is_member(user_id)

        validated_items, reservations, total = self.price_items(request, is_member)

        if any(item.is_product for item in validated_items) and not request.shipping_info.address:
            raise ServiceError("Shipping address is required for physical products")

        order_id = self.persist(user_id, request, validated_items, reservations, total, is_member)

        logger.info(
            f"Order {order_id} created for user {user_id}: "
            f"{len(validated_items)} items, total {total} (member={is_member})"
        )

        return OrderResult(
            order_id=order_id,
            total_amount=total,
            is_member_order=is_member,
            validated_items=validated_items
        )
