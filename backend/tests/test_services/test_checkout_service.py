"""
Unit tests for CheckoutService and checkout payload validation

Author: Academia
"""
import pytest
from unittest.mock import MagicMock

from app.connectors.stripe_connector import StripeConnector
from app.core.exceptions import ValidationFailed
from app.domain.profile import Profile
from app.repositories.billing_repository import BillingRepository
from app.repositories.profile_repository import ProfileRepository
from app.services.checkout_service import CheckoutService, validate_checkout_payload


@pytest.fixture
def stripe_connector():
    mock = MagicMock(spec=StripeConnector)
    mock.create_customer.return_value = "cus_new"
    mock.create_checkout_session.return_value = {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}
    return mock


@pytest.fixture
def billing():
    repo = MagicMock(spec=BillingRepository)
    repo.find_stripe_customer_id.return_value = "cus_existing"
    return repo


@pytest.fixture
def profiles():
    repo = MagicMock(spec=ProfileRepository)
    repo.find_by_id.return_value = Profile(id="user-1", email="ada@example.com", full_name="Ada Lovelace")
    return repo


@pytest.fixture
def service(stripe_connector, billing, profiles):
    return CheckoutService(stripe_connector, billing, profiles, currency="eur")


class TestValidateCheckoutPayload:

    def test_valid_payload(self, sample_checkout_payload):
        assert validate_checkout_payload(sample_checkout_payload) == []

    def test_invalid_payment_type_and_urls(self, sample_checkout_payload):
        sample_checkout_payload["payment_type"] = "donation"
        sample_checkout_payload["success_url"] = "not a url"
        del sample_checkout_payload["cancel_url"]

        errors = validate_checkout_payload(sample_checkout_payload)

        assert errors == [
            "Invalid payment_type",
            "success_url must be a valid URL",
            "cancel_url is required and must be a string",
        ]

    def test_item_errors_are_indexed(self, sample_checkout_payload):
        sample_checkout_payload["items"][1] = {"id": 7, "name": "", "price": -1, "quantity": 1001}

        errors = validate_checkout_payload(sample_checkout_payload)

        assert errors == [
            "Item 1: id is required and must be a string",
            "Item 1: name is required and must be a string",
            "Item 1: price must be a non-negative number",
            "Item 1: quantity must be between 1 and 1000",
        ]

    def test_empty_and_oversized_item_lists(self, sample_checkout_payload):
        sample_checkout_payload["items"] = []
        assert "items array cannot be empty" in validate_checkout_payload(sample_checkout_payload)

        sample_checkout_payload["items"] = [
            {"id": str(i), "name": "x", "price": 1, "quantity": 1} for i in range(101)
        ]
        assert "items array cannot exceed 100 items" in validate_checkout_payload(sample_checkout_payload)


class TestCheckoutService:

    def test_payment_session_one_line_per_item(self, service, stripe_connector, billing, sample_checkout_payload):
        # Act
        result = service.create_session("user-1", "ada@example.com", sample_checkout_payload)

        # Assert
        assert result.to_dict() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

        kwargs = stripe_connector.create_checkout_session.call_args.kwargs
        assert kwargs["customer_id"] == "cus_existing"
        assert kwargs["mode"] == "payment"
        assert kwargs["subscription_metadata"] is None
        assert kwargs["metadata"] == {
            "user_id": "user-1",
            "payment_type": "order",
            "order_id": "order-1",
            "target_id": "order-1",
        }
        assert kwargs["line_items"] == [
            {
                "price_data": {
                    "currency": "eur",
                    "unit_amount": 1999,
                    "product_data": {"name": "Training T-shirt", "metadata": {}},
                },
                "quantity": 2,
            },
            {
                "price_data": {
                    "currency": "eur",
                    "unit_amount": 750,
                    "product_data": {"name": "Water bottle", "metadata": {}},
                },
                "quantity": 1,
            },
        ]

        recorded = billing.record_checkout_session.call_args[0][0]
        assert recorded["stripe_session_id"] == "cs_test_1"
        assert recorded["status"] == "pending"
        assert recorded["amount"] == 47.48
        assert recorded["target_id"] == "order-1"
        stripe_connector.create_customer.assert_not_called()

    def test_subscription_with_price_id(self, service, stripe_connector, sample_checkout_payload):
        sample_checkout_payload["payment_type"] = "platform_subscription"
        sample_checkout_payload["price_id"] = "price_monthly"

        service.create_session("user-1", "ada@example.com", sample_checkout_payload)

        kwargs = stripe_connector.create_checkout_session.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["line_items"] == [{"price": "price_monthly", "quantity": 1}]
        assert kwargs["subscription_metadata"]["payment_type"] == "platform_subscription"

    def test_subscription_without_price_id_uses_first_item(self, service, stripe_connector, sample_checkout_payload):
        sample_checkout_payload["payment_type"] = "professor_subscription"

        service.create_session("user-1", "ada@example.com", sample_checkout_payload)

        (line,) = stripe_connector.create_checkout_session.call_args.kwargs["line_items"]
        assert line["quantity"] == 1
        assert line["price_data"]["unit_amount"] == 1999
        assert line["price_data"]["recurring"] == {"interval": "month"}

    def test_creates_customer_when_missing(self, service, stripe_connector, billing, sample_checkout_payload):
        billing.find_stripe_customer_id.return_value = None

        service.create_session("user-1", "fallback@example.com", sample_checkout_payload)

        stripe_connector.create_customer.assert_called_once_with(
            email="ada@example.com", name="Ada Lovelace", user_id="user-1"
        )
        billing.save_stripe_customer.assert_called_once_with("user-1", "cus_new")
        assert stripe_connector.create_checkout_session.call_args.kwargs["customer_id"] == "cus_new"

    def test_invalid_payload_never_reaches_stripe(self, service, stripe_connector):
        with pytest.raises(ValidationFailed) as exc:
            service.create_session("user-1", None, {"payment_type": "order"})

        assert exc.value.status_code == 400
        assert "items must be an array" in exc.value.details
        stripe_connector.create_checkout_session.assert_not_called()

    def test_non_string_metadata_rejected(self, service, stripe_connector, sample_checkout_payload):
        sample_checkout_payload["metadata"] = {"order_id": {"nested": True}}

        with pytest.raises(ValidationFailed):
            service.create_session("user-1", None, sample_checkout_payload)

        stripe_connector.create_checkout_session.assert_not_called()
