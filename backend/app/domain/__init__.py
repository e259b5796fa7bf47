"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: Academia
"""
from app.domain.order import OrderItemRequest, ShippingInfo, OrderRequest, ValidatedItem, OrderResult
from app.domain.profile import Profile
from app.domain.video import Video, VideoUploadResult, VideoToken
from app.domain.billing import CheckoutItem, CheckoutRequest, ManageSubscriptionRequest
from app.domain.rate_limit import RateLimitDecision

__all__ = [
    'OrderItemRequest', 'ShippingInfo', 'OrderRequest', 'ValidatedItem', 'OrderResult',
    'Profile',
    'Video', 'VideoUploadResult', 'VideoToken',
    'CheckoutItem', 'CheckoutRequest', 'ManageSubscriptionRequest',
    'RateLimitDecision',
]
