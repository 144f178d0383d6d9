"""Tests for response validation at the API boundary."""

import pytest

from server_order.errors import ResponseShapeError
from server_order.models import (
    INT64_MAX,
    AvailablePaymentMethods,
    CartCreated,
    CartItemCreated,
    OrderCreated,
    PaymentMethod,
    PayRequest,
    parse_response,
)


class TestCartItemCreated:

    @pytest.mark.parametrize("raw, expected", [
        (42, 42),
        ("12345", 12345),
        ("-7", -7),
        (str(INT64_MAX), INT64_MAX),
    ])
    def test_parses_integer_forms(self, raw, expected):
        assert parse_response(CartItemCreated, {"itemId": raw}, "add item").itemId == expected

    @pytest.mark.parametrize("raw", ["abc", "12.5", " 42", "", True, 4.2, None, [1], str(INT64_MAX + 1)])
    def test_rejects_malformed_values(self, raw):
        with pytest.raises(ResponseShapeError) as exc_info:
            parse_response(CartItemCreated, {"itemId": raw}, "add item")
        assert "add item" in str(exc_info.value)
        assert exc_info.value.step is None


class TestOrderCreated:

    @pytest.mark.parametrize("raw, expected", [
        ("o-9", "o-9"),
        (123456789, "123456789"),
        (5.0, "5"),
        (1e20, "100000000000000000000"),
    ])
    def test_stringifies_scalars(self, raw, expected):
        assert parse_response(OrderCreated, {"orderId": raw}, "checkout").orderId == expected

    @pytest.mark.parametrize("payload", [{}, {"orderId": None}, {"orderId": ""}, {"orderId": {"id": 1}}, None])
    def test_rejects_missing_or_structured(self, payload):
        with pytest.raises(ResponseShapeError):
            parse_response(OrderCreated, payload, "checkout")

    @pytest.mark.parametrize("raw", [1.5, float("inf"), float("nan")])
    def test_rejects_fractional_numbers(self, raw):
        with pytest.raises(ResponseShapeError):
            parse_response(OrderCreated, {"orderId": raw}, "checkout")


class TestPaymentMethods:

    def test_keeps_original_id_representation(self):
        methods = parse_response(
            AvailablePaymentMethods,
            [{"id": 17, "type": "credit"}, {"id": "B2", "type": "ovh-account", "extra": "ignored"}],
            "payment methods",
        ).root

        assert methods[0].id == 17 and isinstance(methods[0].id, int)
        assert methods[1].id == "B2"

    def test_pay_request_echoes_id(self):
        method = PaymentMethod(id=17, type="credit")
        assert PayRequest(paymentMethod=method.as_ref()).model_dump() == {
            "paymentMethod": {"id": 17, "type": "credit"}
        }

    def test_rejects_non_list(self):
        with pytest.raises(ResponseShapeError):
            parse_response(AvailablePaymentMethods, {"id": 1, "type": "credit"}, "payment methods")

    def test_empty_list_is_valid_shape(self):
        assert parse_response(AvailablePaymentMethods, [], "payment methods").root == []


class TestCartCreated:

    def test_requires_string_cart_id(self):
        with pytest.raises(ResponseShapeError):
            parse_response(CartCreated, {"cartId": 12}, "create cart")

    def test_ignores_extra_fields(self):
        cart = parse_response(CartCreated, {"cartId": "c-1", "readOnly": False}, "create cart")
        assert cart.cartId == "c-1"
