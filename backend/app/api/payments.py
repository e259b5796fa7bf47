"""
Payments API Endpoints
Stripe checkout sessions, webhook receiver and subscription management

Author: Academia
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, Request
from supabase import Client

from app.connectors.stripe_connector import StripeConnector
from app.core.auth import AuthenticatedUser, get_current_user
from app.core.config import settings
from app.core.database import get_supabase
from app.core.exceptions import ServiceError
from app.core.rate_limit import rate_limit
from app.domain.billing import ManageSubscriptionRequest
from app.repositories.billing_repository import BillingRepository
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.profile_repository import ProfileRepository
from app.repositories.video_repository import VideoRepository
from app.services.checkout_service import CheckoutService
from app.services.stripe_webhook_service import StripeWebhookService
from app.services.subscription_service import SubscriptionService


logger = logging.getLogger(__name__)

router = APIRouter()

checkout_rate_limit = rate_limit(
    "checkout",
    max_requests=settings.CHECKOUT_RATE_LIMIT_MAX,
    window_seconds=settings.CHECKOUT_RATE_LIMIT_WINDOW_SECONDS
)


def get_stripe_connector() -> StripeConnector:
    return StripeConnector()


def get_checkout_service(
    sb: Client = Depends(get_supabase),
    stripe_connector: StripeConnector = Depends(get_stripe_connector)
) -> CheckoutService:
    return CheckoutService(
        stripe_connector,
        BillingRepository(sb),
        ProfileRepository(sb),
        currency=settings.STRIPE_CURRENCY
    )


def get_webhook_service(
    sb: Client = Depends(get_supabase),
    stripe_connector: StripeConnector = Depends(get_stripe_connector)
) -> StripeWebhookService:
    return StripeWebhookService(
        stripe_connector,
        billing=BillingRepository(sb),
        orders=OrderRepository(sb),
        catalog=CatalogRepository(sb),
        profiles=ProfileRepository(sb),
        videos=VideoRepository(sb)
    )


def get_subscription_service(
    sb: Client = Depends(get_supabase),
    stripe_connector: StripeConnector = Depends(get_stripe_connector)
) -> SubscriptionService:
    return SubscriptionService(stripe_connector, BillingRepository(sb), ProfileRepository(sb))


@router.post("/checkout/session")
async def create_checkout_session(
    payload: Any = Body(None),
    user: AuthenticatedUser = Depends(checkout_rate_limit),
    service: CheckoutService = Depends(get_checkout_service)
):
    """
    Create a Stripe Checkout session

    Body:
        payment_type, items [{id, name, price, quantity, metadata?}],
        success_url, cancel_url, metadata?, price_id?

    Returns:
        sessionId, url
    """
    try:
        result = service.create_session(user.id, user.email, payload)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Checkout session error for user {user.id}: {e}")
        raise ServiceError(str(e) or "Failed to create checkout session")
    return result.to_dict()


@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    service: StripeWebhookService = Depends(get_webhook_service)
):
    """Receive Stripe events (signature verified against STRIPE_WEBHOOK_SECRET)"""
    payload = await request.body()
    try:
        return service.process(payload, stripe_signature)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Webhook processing error: {e}")
        raise ServiceError(str(e) or "Webhook processing failed")


@router.post("/subscriptions/manage")
async def manage_subscription(
    data: ManageSubscriptionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service)
):
    """
    Cancel or reactivate a platform/professor subscription

    Body:
        action: cancel | reactivate
        subscription_type: platform | professor
        professor_id, cancellation_reason, cancellation_feedback, request_refund
    """
    try:
        return service.manage(user.id, data)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Subscription {data.action} error for user {user.id}: {e}")
        raise ServiceError(str(e) or "Failed to manage subscription")
