"""
Orders API Endpoints
Server-side cart validation and order creation

Author: Academia
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from supabase import Client

from app.core.auth import AuthenticatedUser
from app.core.config import settings
from app.core.database import get_supabase
from app.core.exceptions import ServiceError
from app.core.rate_limit import rate_limit
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.profile_repository import ProfileRepository
from app.services.order_validation_service import OrderValidationService


logger = logging.getLogger(__name__)

router = APIRouter()

order_rate_limit = rate_limit(
    "order",
    max_requests=settings.ORDER_RATE_LIMIT_MAX,
    window_seconds=settings.ORDER_RATE_LIMIT_WINDOW_SECONDS
)


def get_order_validation_service(sb: Client = Depends(get_supabase)) -> OrderValidationService:
    return OrderValidationService(
        profiles=ProfileRepository(sb),
        catalog=CatalogRepository(sb),
        orders=OrderRepository(sb)
    )


@router.post("/validate")
async def validate_and_create_order(
    payload: Any = Body(None),
    user: AuthenticatedUser = Depends(order_rate_limit),
    service: OrderValidationService = Depends(get_order_validation_service)
):
    """
    Validate a cart and create a pending order

    Body:
        items: [{product_id | event_ticket_type_id, quantity, selected_size?}]
        shipping_info: {name, email, phone?, address?, notes?}

    Returns:
        success, order_id, total_amount, validated_items
    """
    try:
        result = service.create_order(user.id, payload)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Order validation error for user {user.id}: {e}")
        raise ServiceError(str(e) or "Failed to create order")

    return result.to_dict()
