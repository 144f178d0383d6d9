"""End-to-end tests: real OvhApiClient (ovh SDK) and OrderWorkflow against the FastAPI mock API."""

import pytest
from fastapi.testclient import TestClient

from mock_services import mock_ovh_api
from server_order.clients import OvhApiClient
from server_order.config import ApiCredentials, get_profile
from server_order.errors import ApiError, NoPaymentMethodError
from server_order.retry import CheckoutRetryPolicy
from server_order.workflow import OrderWorkflow, WorkflowState
from tests.fakes import RecordingSleep, route_sdk_to_app


@pytest.fixture
def api_client(monkeypatch):
    mock_ovh_api.reset()
    route_sdk_to_app(monkeypatch, mock_ovh_api.app)
    credentials = ApiCredentials(
        endpoint="ovh-us",
        application_key="app-key",
        application_secret="app-secret",
        consumer_key="consumer-key",
    )
    with OvhApiClient(credentials) as client:
        yield client


def _workflow(client, description=None, options=None):
    profile = get_profile("rise-full")
    if description is not None:
        profile.description = description
    if options is not None:
        profile.options = options
    sleep = RecordingSleep()
    return OrderWorkflow(client, profile, retry_policy=CheckoutRetryPolicy(sleep=sleep)), sleep


class TestMockApiWorkflow:

    def test_order_is_created_and_paid(self, api_client):
        workflow, sleep = _workflow(api_client)

        receipt = workflow.run()

        order = mock_ovh_api.ORDERS[int(receipt.order_id)]
        assert order["paid"] is True
        assert order["paymentMethod"] == {"id": 1001, "type": "credit"}
        assert order["cartId"] == receipt.cart_id

        cart = mock_ovh_api.CARTS[receipt.cart_id]
        item = cart["items"][receipt.item_id]
        assert item["planCode"] == "24rise01-us"
        assert item["configuration"] == {
            "dedicated_os": "none_64.en",
            "region": "united_states",
            "dedicated_datacenter": "hil",
        }
        assert len(item["options"]) == 4
        assert sleep.delays == []

    def test_flaky_checkout_is_retried(self, api_client):
        workflow, sleep = _workflow(api_client, description="FLAKY-CHECKOUT order")

        receipt = workflow.run()

        assert mock_ovh_api.CARTS[receipt.cart_id]["checkoutAttempts"] == 3
        assert sleep.delays == [2, 4]
        assert workflow.state == WorkflowState.PAID

    def test_no_payment_method(self, api_client):
        workflow, _ = _workflow(api_client, description="NO-PAYMENT order")

        with pytest.raises(NoPaymentMethodError):
            workflow.run()

        assert all(not order["paid"] for order in mock_ovh_api.ORDERS.values())

    def test_rejected_option(self, api_client):
        workflow, _ = _workflow(api_client, options=["ram-unavailable-24rise-us"])

        with pytest.raises(ApiError) as exc_info:
            workflow.run()

        assert exc_info.value.status_code == 400
        assert exc_info.value.step == "add option ram-unavailable-24rise-us"
        assert mock_ovh_api.ORDERS == {}

    def test_unsigned_call_is_refused(self):
        mock_ovh_api.reset()
        response = TestClient(mock_ovh_api.app).post("/1.0/order/cart", json={"ovhSubsidiary": "US"})
        assert response.status_code == 401
        assert response.json() == {"message": "This call has not been granted"}
