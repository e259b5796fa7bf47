"""
Billing Repository - Stripe bookkeeping tables

Tables: stripe_customers, stripe_checkout_sessions, stripe_payments,
professor_subscriptions, subscription_refunds, notifications.

Author: Academia
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from supabase import Client

from app.core.database import first_row


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BillingRepository:

    def __init__(self, sb: Client):
        self.sb = sb

    # ------------------------------------------------------------------
    # Customers and checkout sessions
    # ------------------------------------------------------------------

    def find_stripe_customer_id(self, user_id: str) -> Optional[str]:
        response = (
            self.sb.table("stripe_customers")
            .select("stripe_customer_id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        row = first_row(response)
        return row["stripe_customer_id"] if row else None

    def save_stripe_customer(self, user_id: str, stripe_customer_id: str) -> None:
        self.sb.table("stripe_customers").insert({
            "user_id": user_id,
            "stripe_customer_id": stripe_customer_id,
        }).execute()

    def record_checkout_session(self, row: Dict[str, Any]) -> None:
        self.sb.table("stripe_checkout_sessions").insert(row).execute()

    def complete_checkout_session(self, session_id: str) -> None:
        self.sb.table("stripe_checkout_sessions").update(
            {"status": "completed"}
        ).eq("stripe_session_id", session_id).execute()

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def record_payment(self, row: Dict[str, Any]) -> None:
        self.sb.table("stripe_payments").insert(row).execute()

    def set_payment_status(self, payment_intent_id: str, status: str) -> None:
        self.sb.table("stripe_payments").update(
            {"status": status}
        ).eq("stripe_payment_intent_id", payment_intent_id).execute()

    # ------------------------------------------------------------------
    # Professor subscriptions
    # ------------------------------------------------------------------

    def find_professor_subscription(
        self,
        user_id: str,
        professor_id: str,
        columns: str = "id",
        stripe_subscription_id: Optional[str] = None,
        active_only: bool = False
    ) -> Optional[Dict[str, Any]]:
        query = (
            self.sb.table("professor_subscriptions")
            .select(columns)
            .eq("user_id", user_id)
            .eq("professor_id", professor_id)
        )
        if stripe_subscription_id:
            query = query.eq("stripe_subscription_id", stripe_subscription_id)
        if active_only:
            query = query.eq("status", "active")
        return first_row(query.limit(1).execute())

    def insert_professor_subscription(self, row: Dict[str, Any]) -> None:
        self.sb.table("professor_subscriptions").insert(row).execute()

    def update_professor_subscription(self, subscription_row_id: Any, fields: Dict[str, Any]) -> None:
        self.sb.table("professor_subscriptions").update(fields).eq("id", subscription_row_id).execute()

    def update_professor_subscriptions(
        self,
        user_id: str,
        professor_id: str,
        fields: Dict[str, Any],
        stripe_subscription_id: Optional[str] = None,
        active_only: bool = False
    ) -> None:
        query = (
            self.sb.table("professor_subscriptions")
            .update(fields)
            .eq("user_id", user_id)
            .eq("professor_id", professor_id)
        )
        if stripe_subscription_id:
            query = query.eq("stripe_subscription_id", stripe_subscription_id)
        if active_only:
            query = query.eq("status", "active")
        query.execute()

    # ------------------------------------------------------------------
    # Refunds and notifications
    # ------------------------------------------------------------------

    def calculate_platform_refund(self, user_id: str) -> float:
        response = self.sb.rpc("calculate_platform_refund_amount", {"user_id_param": user_id}).execute()
        return float(response.data or 0)

    def calculate_professor_refund(self, user_id: str, professor_id: str) -> float:
        response = self.sb.rpc("calculate_professor_refund_amount", {
            "user_id_param": user_id,
            "professor_id_param": professor_id,
        }).execute()
        return float(response.data or 0)

    def record_refund(self, row: Dict[str, Any]) -> None:
        data = dict(row)
        data.setdefault("processed_at", _now_iso())
        self.sb.table("subscription_refunds").insert(data).execute()

    def notify(self, user_id: str, title: str, message: str, type_: str, priority: str = "normal") -> None:
        self.sb.table("notifications").insert({
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": type_,
            "priority": priority,
        }).execute()
