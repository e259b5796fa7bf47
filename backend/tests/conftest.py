"""
Pytest fixtures and configuration for Academia Backend tests

This file provides shared fixtures that can be used across all test modules.
Nothing here talks to Supabase, Cloudflare or Stripe: clients and
repositories are replaced with mocks.

Author: Academia
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from app.domain.profile import Profile


@pytest.fixture
def mock_supabase():
    """
    Provides a MagicMock standing in for the Supabase client

    Query builder calls return the same mock, so any chain ending in
    ``execute()`` can be configured with ``query_result``.
    """
    sb = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "gte", "order", "limit", "insert", "update", "delete"):
        getattr(query, method).return_value = query
    sb.table.return_value = query
    sb.query = query
    return sb


def query_result(sb, data):
    """Make every ``sb.table(...)...execute()`` chain return data"""
    sb.query.execute.return_value = MagicMock(data=data)


@pytest.fixture
def set_query_result():
    return query_result


@pytest.fixture
def member_profile():
    """Profile with an active, unexpired platform subscription"""
    return Profile(
        id="user-1",
        email="member@example.com",
        full_name="Ada Member",
        role="student",
        platform_subscription_status="active",
        platform_subscription_expires_at=datetime.now(timezone.utc) + timedelta(days=10),
    )


@pytest.fixture
def standard_profile():
    return Profile(id="user-1", email="student@example.com", full_name="Sam Student", role="student")


@pytest.fixture
def sample_order_payload():
    """
    Provides a cart with one tracked product and one event ticket
    """
    return {
        "items": [
            {"product_id": "prod-1", "quantity": 2, "selected_size": "M"},
            {"event_ticket_type_id": "ticket-1", "quantity": 1},
        ],
        "shipping_info": {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "+34 600 000 000",
            "address": "Calle Mayor 1, Madrid",
            "notes": "Leave at reception",
        },
    }


@pytest.fixture
def sample_checkout_payload():
    return {
        "payment_type": "order",
        "items": [
            {"id": "prod-1", "name": "Training T-shirt", "price": 19.99, "quantity": 2},
            {"id": "prod-2", "name": "Water bottle", "price": 7.5, "quantity": 1},
        ],
        "success_url": "https://academia.example.com/checkout/success",
        "cancel_url": "https://academia.example.com/checkout/cancel",
        "metadata": {"order_id": "order-1", "target_id": "order-1"},
    }


@pytest.fixture
def authenticated_user():
    from app.core.auth import AuthenticatedUser
    return AuthenticatedUser(id="user-1", email="ada@example.com")


@pytest.fixture
def client(mock_supabase, authenticated_user):
    """
    Provides a TestClient with Supabase and the bearer-token check overridden

    Tests add their own service overrides through ``app.dependency_overrides``;
    every override is cleared after the test.
    """
    from fastapi.testclient import TestClient

    from app.core.auth import get_current_user
    from app.core.database import get_supabase
    from app.main import app

    app.dependency_overrides[get_supabase] = lambda: mock_supabase
    app.dependency_overrides[get_current_user] = lambda: authenticated_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
