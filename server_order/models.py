"""
models.py — Data Models for the Cart/Order API

This module defines the request and response payloads exchanged with the commerce API.
It uses Pydantic models so every response is validated at the boundary: a field that is
missing or not convertible to its declared type becomes a `ResponseShapeError` instead of
surfacing later as an unrelated crash.

Identifier conversion happens here, once:
    - CartItemCreated.itemId: integer or numeric string -> int (signed 64-bit range)
    - OrderCreated.orderId: any JSON scalar -> str
    - PaymentMethod.id: kept in its original representation (int or str)
"""

import re
from typing import Any, List, Type, TypeVar, Union

from pydantic import BaseModel, Field, RootModel, StrictInt, StrictStr, ValidationError, field_validator

from .errors import ResponseShapeError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INTEGER = re.compile(r"[+-]?[0-9]+")

ModelT = TypeVar("ModelT", bound=BaseModel)


# --- Requests ---

class CartCreateRequest(BaseModel):
    """
    Payload for creating a new cart.

    Attributes:
        ovhSubsidiary (str): Subsidiary the cart is opened for (e.g. 'US', 'FR').
        description (str): Human-readable cart description.
        expire (str): RFC 3339 timestamp after which the cart is discarded.
    """
    ovhSubsidiary: str
    description: str
    expire: str


class ServerItemRequest(BaseModel):
    """Payload for adding the bare-metal server line to a cart."""
    duration: str
    planCode: str
    pricingMode: str
    quantity: int = Field(..., gt=0)


class ConfigurationRequest(BaseModel):
    """A required attribute of the cart item (operating system, region, datacenter...)."""
    label: str
    value: str


class OptionRequest(BaseModel):
    """Payload for attaching a priced option to the server item."""
    duration: str
    itemId: int
    planCode: str
    pricingMode: str
    quantity: int = Field(..., gt=0)


class PaymentMethodRef(BaseModel):
    """
    Reference to the payment method used in the pay call.

    `id` keeps the representation the API delivered so it is echoed back unchanged.
    """
    id: Union[StrictInt, StrictStr]
    type: str


class PayRequest(BaseModel):
    paymentMethod: PaymentMethodRef


# --- Responses ---

class CartCreated(BaseModel):
    cartId: StrictStr = Field(..., min_length=1)


class CartItemCreated(BaseModel):
    """
    Response of the add-item call.

    Attributes:
        itemId (int): Item identifier. The API may deliver it as a JSON number or as a
            numeric string to preserve precision; both are parsed to a 64-bit integer.
    """
    itemId: int

    @field_validator("itemId", mode="before")
    @classmethod
    def parse_item_id(cls, value: Any) -> int:
        # bool is a subclass of int
        if isinstance(value, bool):
            raise ValueError(f"itemId must be an integer, got {value!r}")
        if isinstance(value, int):
            number = value
        elif isinstance(value, str) and _INTEGER.fullmatch(value):
            number = int(value)
        else:
            raise ValueError(f"itemId is not a well-formed integer: {value!r}")
        if not INT64_MIN <= number <= INT64_MAX:
            raise ValueError(f"itemId {value!r} is out of the 64-bit integer range")
        return number


class OrderCreated(BaseModel):
    """
    Response of the checkout call.

    Attributes:
        orderId (str): Order identifier, stringified uniformly whatever JSON scalar type
            the API used, so it can be placed in later request paths.
    """
    orderId: str

    @field_validator("orderId", mode="before")
    @classmethod
    def stringify_order_id(cls, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            # JSON numbers may arrive as floats (1e20); only whole numbers are identifiers
            if not value.is_integer():
                raise ValueError(f"orderId must be a whole number, got {value!r}")
            return str(int(value))
        if isinstance(value, str) and value:
            return value
        raise ValueError(f"orderId must be a non-empty JSON scalar, got {value!r}")


class PaymentMethod(BaseModel):
    """
    An available way to pay for an order.

    Attributes:
        id (int | str): Payment method identifier in its original representation.
        type (str): Tag such as 'credit' or 'ovh-account'.
    """
    id: Union[StrictInt, StrictStr]
    type: StrictStr = Field(..., min_length=1)

    def as_ref(self) -> PaymentMethodRef:
        return PaymentMethodRef(id=self.id, type=self.type)


class AvailablePaymentMethods(RootModel[List[PaymentMethod]]):
    """Ordered list of payment methods, as returned by the API."""


def parse_response(model: Type[ModelT], payload: Any, context: str) -> ModelT:
    """
    Validates a decoded JSON response against a model.

    Args:
        model: The Pydantic model describing the expected response.
        payload: The decoded JSON value returned by the API client.
        context (str): Short description of the call, used in the error message.

    Returns:
        An instance of `model`.

    Raises:
        ResponseShapeError: If the payload does not match the model.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'response'}: {err['msg']}"
            for err in e.errors()
        )
        raise ResponseShapeError(f"unexpected response from {context}: {problems}") from e
