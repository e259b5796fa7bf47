"""
Checkout Service
Creates Stripe Checkout sessions for one-off payments and subscriptions

Author: Academia
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from pydantic import ValidationError

from app.connectors.stripe_connector import StripeConnector
from app.core.exceptions import ValidationFailed
from app.core.validators import Validator, is_number, is_valid_url
from app.domain.billing import (
    MAX_CHECKOUT_ITEMS,
    MAX_ITEM_QUANTITY,
    PAYMENT_TYPES,
    CheckoutRequest,
    CheckoutSessionResult,
)
from app.repositories.billing_repository import BillingRepository
from app.repositories.profile_repository import ProfileRepository


logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=24)


def validate_checkout_payload(payload: Any) -> List[str]:
    """Return every validation error of a raw checkout body"""
    if not isinstance(payload, dict):
        return ["Request body must be a JSON object"]

    validator = Validator()

    payment_type = payload.get("payment_type")
    if not payment_type:
        validator.custom(False, "payment_type is required")
    else:
        validator.custom(payment_type in PAYMENT_TYPES, "Invalid payment_type")

    items = payload.get("items")
    if not isinstance(items, list):
        validator.custom(False, "items must be an array")
    else:
        validator.custom(len(items) > 0, "items array cannot be empty")
        validator.custom(len(items) <= MAX_CHECKOUT_ITEMS, f"items array cannot exceed {MAX_CHECKOUT_ITEMS} items")

        for index, item in enumerate(items):
            if not isinstance(item, dict):
                validator.custom(False, f"Item {index}: must be an object")
                continue
            validator.custom(
                isinstance(item.get("id"), str) and bool(item.get("id")),
                f"Item {index}: id is required and must be a string"
            )
            validator.custom(
                isinstance(item.get("name"), str) and bool(item.get("name")),
                f"Item {index}: name is required and must be a string"
            )
            price = item.get("price")
            validator.custom(is_number(price) and price >= 0, f"Item {index}: price must be a non-negative number")
            quantity = item.get("quantity")
            validator.custom(
                is_number(quantity) and float(quantity).is_integer() and 1 <= quantity <= MAX_ITEM_QUANTITY,
                f"Item {index}: quantity must be between 1 and {MAX_ITEM_QUANTITY}"
            )

    for url_field in ("success_url", "cancel_url"):
        value = payload.get(url_field)
        if not value or not isinstance(value, str):
            validator.custom(False, f"{url_field} is required and must be a string")
        else:
            validator.custom(is_valid_url(value), f"{url_field} must be a valid URL")

    return validator.get_result().errors


class CheckoutService:

    def __init__(
        self,
        stripe_connector: StripeConnector,
        billing: BillingRepository,
        profiles: ProfileRepository,
        currency: str = "eur"
    ):
        self.stripe = stripe_connector
        self.billing = billing
        self.profiles = profiles
        self.currency = currency

    def get_or_create_customer(self, user_id: str, email: str = None) -> str:
        """Reuse the user's Stripe customer or create and remember one"""
        customer_id = self.billing.find_stripe_customer_id(user_id)
        if customer_id:
            return customer_id

        profile = self.profiles.find_by_id(user_id)
        customer_id = self.stripe.create_customer(
            email=(profile.email if profile else None) or email,
            name=profile.full_name if profile else None,
            user_id=user_id
        )
        self.billing.save_stripe_customer(user_id, customer_id)
        return customer_id

    def _price_data(self, item, recurring: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "currency": self.currency,
            "unit_amount": item.unit_amount_cents,
            "product_data": {"name": item.name, "metadata": item.metadata},
        }
        if recurring:
            data["recurring"] = {"interval": "month"}
        return data

    def build_line_items(self, request: CheckoutRequest) -> List[Dict[str, Any]]:
        if request.is_subscription:
            if request.price_id:
                return [{"price": request.price_id, "quantity": 1}]
            return [{"price_data": self._price_data(request.items[0], recurring=True), "quantity": 1}]

        return [
            {"price_data": self._price_data(item), "quantity": item.quantity}
            for item in request.items
        ]

    def create_session(self, user_id: str, email: str, payload: Any) -> CheckoutSessionResult:
        errors = validate_checkout_payload(payload)
        if errors:
            raise ValidationFailed(errors)

        try:
            request = CheckoutRequest(**payload)
        except ValidationError as e:
            raise ValidationFailed([f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()])

        customer_id = self.get_or_create_customer(user_id, email)

        metadata = {"user_id": user_id, "payment_type": request.payment_type, **request.metadata}

        session = self.stripe.create_checkout_session(
            customer_id=customer_id,
            mode="subscription" if request.is_subscription else "payment",
            line_items=self.build_line_items(request),
            success_url=request.success_url,
            cancel_url=request.cancel_url,
            metadata=metadata,
            subscription_metadata=metadata if request.is_subscription else None
        )

        self.billing.record_checkout_session({
            "user_id": user_id,
            "stripe_session_id": session["id"],
            "payment_type": request.payment_type,
            "target_id": request.metadata.get("target_id"),
            "amount": request.total_amount,
            "currency": self.currency,
            "status": "pending",
            "metadata": request.metadata,
            "expires_at": (datetime.now(timezone.utc) + SESSION_TTL).isoformat(),
        })

        logger.info(f"Checkout session {session['id']} ({request.payment_type}) created for user {user_id}")
        return CheckoutSessionResult(session_id=session["id"], url=session.get("url"))
