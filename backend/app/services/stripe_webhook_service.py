"""
Stripe Webhook Service
Applies Stripe payment and subscription events to the platform tables

Author: Academia
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.connectors.stripe_connector import StripeConnector
from app.core.exceptions import ServiceError
from app.repositories.billing_repository import BillingRepository
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.profile_repository import ProfileRepository
from app.repositories.video_repository import VideoRepository


logger = logging.getLogger(__name__)

ACTIVE_SUBSCRIPTION_STATES = ("active", "trialing")


def _id_of(value: Any) -> Optional[str]:
    """Stripe expandable field: either an id string or an object with id"""
    if isinstance(value, dict):
        return value.get("id")
    return value


def _timestamp(seconds: Optional[int]) -> Optional[str]:
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def _first_price(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return (items[0].get("price") or {}) if items else {}


def _period(subscription: Dict[str, Any], field: str) -> Optional[int]:
    """current_period_* moved from the subscription to its items in newer API versions"""
    if subscription.get(field) is not None:
        return subscription[field]
    items = (subscription.get("items") or {}).get("data") or []
    return items[0].get(field) if items else None


class StripeWebhookService:

    def __init__(
        self,
        stripe_connector: StripeConnector,
        billing: BillingRepository,
        orders: OrderRepository,
        catalog: CatalogRepository,
        profiles: ProfileRepository,
        videos: VideoRepository
    ):
        self.stripe = stripe_connector
        self.billing = billing
        self.orders = orders
        self.catalog = catalog
        self.profiles = profiles
        self.videos = videos

        self._handlers = {
            "checkout.session.completed": self.handle_checkout_completed,
            "payment_intent.succeeded": self.handle_payment_succeeded,
            "payment_intent.payment_failed": self.handle_payment_failed,
            "customer.subscription.created": self.handle_subscription_change,
            "customer.subscription.updated": self.handle_subscription_change,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "invoice.payment_succeeded": self.handle_invoice_payment_succeeded,
            "invoice.payment_failed": self.handle_invoice_payment_failed,
        }

    def process(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify and dispatch one webhook delivery"""
        if not signature:
            raise ServiceError("No stripe signature")

        event = self.stripe.verify_webhook(payload, signature)
        event_type = event.get("type")
        logger.info(f"Received webhook: {event_type}")

        handler = self._handlers.get(event_type)
        if handler:
            handler(event["data"]["object"])
        else:
            logger.debug(f"Ignoring webhook event {event_type}")

        return {"received": True}

    # ------------------------------------------------------------------
    # Checkout / payments
    # ------------------------------------------------------------------

    def handle_checkout_completed(self, session: Dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        user_id = metadata.get("user_id")
        payment_type = metadata.get("payment_type")

        if not user_id or not payment_type:
            logger.error(f"Missing metadata in checkout session {session.get('id')}")
            return

        self.billing.complete_checkout_session(session["id"])

        if session.get("mode") == "subscription" and session.get("subscription"):
            subscription = self.stripe.retrieve_subscription(_id_of(session["subscription"]))
            self.handle_subscription_change(subscription)
            return

        payment_intent_id = _id_of(session.get("payment_intent"))
        amount = (session.get("amount_total") or 0) / 100
        payment_row = {
            "user_id": user_id,
            "stripe_payment_intent_id": payment_intent_id,
            "stripe_customer_id": _id_of(session.get("customer")),
            "amount": amount,
            "currency": session.get("currency") or "eur",
            "status": "succeeded",
            "payment_type": payment_type,
            "metadata": metadata,
        }

        if payment_type == "order":
            order_id = metadata.get("order_id")
            if not order_id:
                return

            self.orders.mark_paid(order_id, payment_intent_id)

            for item in self.orders.get_order_items(order_id):
                if item.get("product_id"):
                    self.catalog.decrement_stock(item["product_id"], item["quantity"])

            self.orders.release_stock_reservation(order_id)
            self.orders.convert_pending_attendees(order_id)

            if payment_intent_id:
                self.billing.record_payment({**payment_row, "order_id": order_id})

            logger.info(f"Order {order_id} paid: stock updated, reservations released, attendees created")

        elif payment_type == "video":
            video_id = metadata.get("video_id")
            if not video_id or not payment_intent_id:
                return

            purchase = self.videos.create_video_purchase(user_id, video_id, amount)
            if purchase:
                self.billing.record_payment({**payment_row, "video_purchase_id": purchase["id"]})
            logger.info(f"Video {video_id} purchased by user {user_id}")

    def handle_payment_succeeded(self, payment_intent: Dict[str, Any]) -> None:
        self.billing.set_payment_status(payment_intent["id"], "succeeded")

    def handle_payment_failed(self, payment_intent: Dict[str, Any]) -> None:
        self.billing.set_payment_status(payment_intent["id"], "failed")

        order = self.orders.find_by_payment_intent(payment_intent["id"])
        if order:
            self.orders.cancel(order["id"])
            self.orders.release_stock_reservation(order["id"])
            logger.info(f"Order {order['id']} cancelled due to payment failure, reservations released")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def handle_subscription_change(self, subscription: Dict[str, Any]) -> None:
        metadata = subscription.get("metadata") or {}
        user_id = metadata.get("user_id")
        payment_type = metadata.get("payment_type")
        professor_id = metadata.get("professor_id")

        if not user_id:
            logger.error(f"Missing user_id in subscription {subscription.get('id')} metadata")
            return

        status = "active" if subscription.get("status") in ACTIVE_SUBSCRIPTION_STATES else "cancelled"
        price = _first_price(subscription)
        price_paid = (price.get("unit_amount") or 0) / 100
        period_end = _timestamp(_period(subscription, "current_period_end"))

        if payment_type == "platform_subscription":
            self.profiles.update(user_id, {
                "platform_subscription_status": status,
                "platform_subscription_expires_at": period_end,
                "stripe_subscription_id": subscription["id"],
                "stripe_price_id": price.get("id"),
                "platform_subscription_price_paid": price_paid,
                "subscription_cancel_at_period_end": bool(subscription.get("cancel_at_period_end")),
            })
            logger.info(f"Updated platform subscription for user {user_id}: {status} at {price_paid}/month")

        elif payment_type == "professor_subscription" and professor_id:
            existing = self.billing.find_professor_subscription(
                user_id, professor_id, stripe_subscription_id=subscription["id"]
            )
            if existing:
                self.billing.update_professor_subscription(existing["id"], {
                    "status": status,
                    "expires_at": period_end,
                })
            else:
                self.billing.insert_professor_subscription({
                    "user_id": user_id,
                    "professor_id": professor_id,
                    "stripe_subscription_id": subscription["id"],
                    "price_paid": price_paid,
                    "status": status,
                    "started_at": _timestamp(_period(subscription, "current_period_start")),
                    "expires_at": period_end,
                })
            logger.info(f"Updated professor subscription for user {user_id}: {status} at {price_paid}/month")

    def handle_subscription_deleted(self, subscription: Dict[str, Any]) -> None:
        metadata = subscription.get("metadata") or {}
        user_id = metadata.get("user_id")
        payment_type = metadata.get("payment_type")
        professor_id = metadata.get("professor_id")

        if not user_id:
            logger.error(f"Missing user_id in subscription {subscription.get('id')} metadata")
            return

        if payment_type == "platform_subscription":
            self.profiles.update(user_id, {
                "platform_subscription_status": "cancelled",
                "stripe_subscription_id": None,
                "stripe_price_id": None,
                "subscription_cancel_at_period_end": False,
            })
            logger.info(f"Cancelled platform subscription for user {user_id}")

        elif payment_type == "professor_subscription" and professor_id:
            self.billing.update_professor_subscriptions(
                user_id,
                professor_id,
                {"status": "cancelled", "updated_at": datetime.now(timezone.utc).isoformat()},
                stripe_subscription_id=subscription["id"]
            )
            logger.info(f"Cancelled professor subscription for user {user_id}")

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def handle_invoice_payment_succeeded(self, invoice: Dict[str, Any]) -> None:
        subscription_id = _id_of(invoice.get("subscription"))
        if subscription_id:
            logger.info(f"Invoice payment succeeded for subscription {subscription_id}")

    def handle_invoice_payment_failed(self, invoice: Dict[str, Any]) -> None:
        subscription_id = _id_of(invoice.get("subscription"))
        if not subscription_id:
            return

        user_id = (invoice.get("customer_metadata") or {}).get("user_id")
        if user_id:
            self.billing.notify(
                user_id,
                title="Payment Failed",
                message="Your subscription payment failed. Please update your payment method.",
                type_="payment_failed",
                priority="high"
            )

        logger.info(f"Invoice payment failed for subscription {subscription_id}")
