"""
Stripe Connector
Thin wrapper over the official Stripe SDK used by checkout, webhooks and
subscription management

Author: Academia
"""
import json
import logging
from typing import Any, Dict, List, Optional

import stripe

from app.core.config import settings
from app.core.exceptions import ConfigurationError, ServiceError


logger = logging.getLogger(__name__)


def to_plain(obj: Any) -> Dict[str, Any]:
    """Convert a StripeObject into plain dicts/lists"""
    if obj is None:
        return {}
    if isinstance(obj, dict) and not isinstance(obj, stripe.StripeObject):
        return obj
    return json.loads(str(obj))


class StripeConnector:
    """
    Stripe API access

    Handles:
    - Customers and checkout sessions
    - Subscription retrieval, update and cancellation
    - Refunds of the latest subscription invoice
    - Webhook signature verification
    """

    def __init__(self, secret_key: str = None, webhook_secret: str = None):
        self.secret_key = secret_key or settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

        if not self.secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY not configured")

        stripe.api_key = self.secret_key

    # ------------------------------------------------------------------
    # Customers / checkout
    # ------------------------------------------------------------------

    def create_customer(self, email: Optional[str], name: Optional[str], user_id: str) -> str:
        customer = stripe.Customer.create(
            email=email,
            name=name,
            metadata={"user_id": user_id},
        )
        logger.info(f"Created Stripe customer {customer.id} for user {user_id}")
        return customer.id

    def create_checkout_session(
        self,
        customer_id: str,
        mode: str,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        subscription_metadata: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = dict(
            customer=customer_id,
            payment_method_types=["card"],
            line_items=line_items,
            mode=mode,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        if subscription_metadata is not None:
            params["subscription_data"] = {"metadata": subscription_metadata}

        session = stripe.checkout.Session.create(**params)
        return {"id": session.id, "url": session.url}

    # ------------------------------------------------------------------
    # Subscriptions / refunds
    # ------------------------------------------------------------------

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return to_plain(stripe.Subscription.retrieve(subscription_id))

    def set_cancel_at_period_end(self, subscription_id: str, cancel: bool) -> None:
        stripe.Subscription.modify(subscription_id, cancel_at_period_end=cancel)

    def cancel_subscription(self, subscription_id: str) -> None:
        stripe.Subscription.cancel(subscription_id)

    def refund_latest_invoice(self, subscription_id: str) -> Optional[Dict[str, Any]]:
        """
        Refund the payment of a subscription's latest invoice

        Returns:
            {"id", "amount"} of the refund (amount in cents) or None when
            there is no paid invoice to refund
        """
        subscription = self.retrieve_subscription(subscription_id)
        latest_invoice = subscription.get("latest_invoice")
        if not latest_invoice:
            return None

        if isinstance(latest_invoice, str):
            invoice = to_plain(stripe.Invoice.retrieve(latest_invoice))
        else:
            invoice = latest_invoice

        payment_intent = invoice.get("payment_intent")
        if not payment_intent:
            return None
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        refund = stripe.Refund.create(payment_intent=payment_intent, reason="requested_by_customer")
        logger.info(f"Refund {refund.id} created for subscription {subscription_id}")
        return {"id": refund.id, "amount": refund.amount}

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook signature and return the event as a plain dict

        Raises:
            ServiceError (400) when the signature does not match
        """
        if not self.webhook_secret:
            raise ConfigurationError("Stripe configuration missing")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Invalid Stripe webhook signature: {e}")
            raise ServiceError("Invalid signature")
        except ValueError as e:
            raise ServiceError(f"Invalid payload: {e}")

        return json.loads(payload)
