"""
Subscription Service
Cancels (optionally with a withdrawal-period refund) and reactivates
platform and professor subscriptions

Author: Academia
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.connectors.stripe_connector import StripeConnector
from app.core.exceptions import NotFoundError, ServiceError
from app.domain.billing import ManageSubscriptionRequest
from app.repositories.billing_repository import BillingRepository
from app.repositories.profile_repository import ProfileRepository


logger = logging.getLogger(__name__)

PLATFORM = "platform"
PROFESSOR = "professor"


class RefundNotAvailable(ServiceError):
    """Withdrawal period passed or the right was waived by using the subscription"""

    def __init__(self, waiver_reason: Optional[str]):
        message = (
            "You have used benefits from this subscription, which waives your right to a refund "
            "according to EU consumer law."
            if waiver_reason
            else "The 14-day withdrawal period has passed."
        )
        super().__init__("Refund not available")
        self.reason = waiver_reason or "outside_withdrawal_period"
        self.detail_message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason, "message": self.detail_message}


class SubscriptionService:

    def __init__(
        self,
        stripe_connector: StripeConnector,
        billing: BillingRepository,
        profiles: ProfileRepository
    ):
        self.stripe = stripe_connector
        self.billing = billing
        self.profiles = profiles

    def _stripe_subscription_id(self, user_id: str, request: ManageSubscriptionRequest) -> Optional[str]:
        if request.subscription_type == PLATFORM:
            profile = self.profiles.get_fields(user_id, "stripe_subscription_id")
            return (profile or {}).get("stripe_subscription_id")

        row = self.billing.find_professor_subscription(
            user_id, request.professor_id, columns="stripe_subscription_id", active_only=True
        )
        return (row or {}).get("stripe_subscription_id")

    def _refund_amount(self, user_id: str, request: ManageSubscriptionRequest) -> float:
        if request.subscription_type == PLATFORM:
            return self.billing.calculate_platform_refund(user_id)
        return self.billing.calculate_professor_refund(user_id, request.professor_id)

    def _waiver_reason(self, user_id: str, request: ManageSubscriptionRequest) -> Optional[str]:
        if request.subscription_type == PLATFORM:
            row = self.profiles.get_fields(
                user_id, "platform_withdrawal_right_waived, platform_withdrawal_waiver_reason"
            ) or {}
            return row.get("platform_withdrawal_waiver_reason") if row.get("platform_withdrawal_right_waived") else None

        row = self.billing.find_professor_subscription(
            user_id, request.professor_id,
            columns="withdrawal_right_waived, withdrawal_waiver_reason",
            active_only=True
        ) or {}
        return row.get("withdrawal_waiver_reason") if row.get("withdrawal_right_waived") else None

    def _refund_and_cancel(self, user_id: str, subscription_id: str, request: ManageSubscriptionRequest) -> Optional[str]:
        """
        Refund the latest invoice and cancel immediately

        Returns:
            The refund id, or None when Stripe failed (logged, not raised)
        """
        try:
            refund = self.stripe.refund_latest_invoice(subscription_id)
            refund_id = None

            if refund:
                refund_id = refund["id"]
                target_id = None
                if request.subscription_type == PROFESSOR:
                    row = self.billing.find_professor_subscription(
                        user_id, request.professor_id, active_only=True
                    )
                    target_id = (row or {}).get("id")

                self.billing.record_refund({
                    "user_id": user_id,
                    "subscription_type": request.subscription_type,
                    "subscription_id": target_id,
                    "amount": refund["amount"] / 100,
                    "reason": request.cancellation_reason or "withdrawal_period",
                    "user_feedback": request.cancellation_feedback,
                    "status": "completed",
                    "stripe_refund_id": refund_id,
                })

            self.stripe.cancel_subscription(subscription_id)
            return refund_id

        except Exception as e:
            logger.error(f"Error processing refund for subscription {subscription_id}: {e}")
            return None

    def cancel(self, user_id: str, subscription_id: str, request: ManageSubscriptionRequest) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        refund_id = None

        if request.request_refund:
            if self._refund_amount(user_id, request) <= 0:
                raise RefundNotAvailable(self._waiver_reason(user_id, request))
            refund_id = self._refund_and_cancel(user_id, subscription_id, request)
        else:
            self.stripe.set_cancel_at_period_end(subscription_id, True)

        if request.subscription_type == PLATFORM:
            self.profiles.update(user_id, {
                "subscription_cancel_at_period_end": not request.request_refund,
                "platform_cancellation_reason": request.cancellation_reason,
                "platform_cancellation_feedback": request.cancellation_feedback,
                "platform_cancelled_at": now,
            })
        else:
            self.billing.update_professor_subscriptions(
                user_id,
                request.professor_id,
                {
                    "cancel_at_period_end": not request.request_refund,
                    "cancellation_reason": request.cancellation_reason,
                    "cancellation_feedback": request.cancellation_feedback,
                    "cancelled_at": now,
                },
                active_only=True
            )

        refund_processed = refund_id is not None
        logger.info(f"Subscription {subscription_id} cancelled for user {user_id} (refund={refund_processed})")

        return {
            "success": True,
            "message": (
                "Subscription cancelled and refund processed"
                if refund_processed
                else "Subscription will be cancelled at the end of the billing period"
            ),
            "refund_processed": refund_processed,
            "refund_id": refund_id,
        }

    def reactivate(self, user_id: str, subscription_id: str, request: ManageSubscriptionRequest) -> Dict[str, Any]:
        self.stripe.set_cancel_at_period_end(subscription_id, False)

        if request.subscription_type == PLATFORM:
            self.profiles.update(user_id, {"subscription_cancel_at_period_end": False})

        logger.info(f"Subscription {subscription_id} reactivated for user {user_id}")
        return {"success": True, "message": "Subscription has been reactivated"}

    def manage(self, user_id: str, request: ManageSubscriptionRequest) -> Dict[str, Any]:
        if not request.action or not request.subscription_type:
            raise ServiceError("Missing required fields")

        if request.subscription_type not in (PLATFORM, PROFESSOR):
            raise ServiceError("Invalid subscription_type")

        if request.subscription_type == PROFESSOR and not request.professor_id:
            raise ServiceError("professor_id is required for professor subscriptions")

        subscription_id = self._stripe_subscription_id(user_id, request)
        if not subscription_id:
            raise NotFoundError("No active subscription found")

        if request.action == "cancel":
            return self.cancel(user_id, subscription_id, request)
        if request.action == "reactivate":
            return self.reactivate(user_id, subscription_id, request)

        raise ServiceError("Invalid action")
