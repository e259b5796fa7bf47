"""
Repository Layer - Data Access

This layer handles all Supabase table and RPC access and returns plain rows
or domain models. Repositories abstract PostgREST details from business logic.

Author: Academia
"""
from app.repositories.profile_repository import ProfileRepository
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.rate_limit_repository import RateLimitRepository
from app.repositories.video_repository import VideoRepository
from app.repositories.billing_repository import BillingRepository

__all__ = [
    'ProfileRepository',
    'CatalogRepository',
    'OrderRepository',
    'RateLimitRepository',
    'VideoRepository',
    'BillingRepository',
]
