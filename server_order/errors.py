"""
errors.py — Error Taxonomy for the Order Workflow

Every failure the workflow can report is an `OrderError`. The subclasses let the
driver (and an operator reading the output) tell apart "the API rejected us"
from "the API's contract changed" from "there is nothing to pay with".

Hierarchy:
    OrderError
    ├── ApiError                     transport or HTTP error from the commerce API
    ├── ResponseShapeError           response field missing or of the wrong type
    ├── NoPaymentMethodError         order has no available payment method
    ├── CheckoutRetryExhaustedError  checkout failed on every attempt
    └── ConfigurationError           credentials or profile unusable at startup
"""

from typing import Optional


class OrderError(Exception):
    """
    Base class for all order workflow errors.

    Attributes:
        message (str): Human-readable description of the cause.
        step (str | None): Workflow step that failed. Filled in by the workflow
            engine when the error passes through a step.
    """

    def __init__(self, message: str, *, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self):
        return self.message


class ApiError(OrderError):
    """
    The remote call itself failed: network error, timeout, or a 4xx/5xx answer.

    Attributes:
        status_code (int | None): HTTP status, None for transport failures.
        method (str | None): HTTP method of the failed call.
        path (str | None): API path of the failed call.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None,
                 method: Optional[str] = None, path: Optional[str] = None,
                 step: Optional[str] = None):
        super().__init__(message, step=step)
        self.status_code = status_code
        self.method = method
        self.path = path

    def __str__(self):
        where = f"{self.method} {self.path}" if self.method else "API call"
        if self.status_code is not None:
            return f"{where} returned HTTP {self.status_code}: {self.message}"
        return f"{where} failed: {self.message}"


class ResponseShapeError(OrderError):
    """A response field is missing or cannot be converted to its expected type."""


class NoPaymentMethodError(OrderError):
    """The order was created but the API offers no payment method for it."""

    def __init__(self, order_id: str, *, step: Optional[str] = None):
        super().__init__(f"no available payment methods found for order {order_id}", step=step)
        self.order_id = order_id


class CheckoutRetryExhaustedError(OrderError):
    """
    Checkout failed on every attempt.

    Only the attempt count is reported; the cause of each attempt was already
    logged by the retry loop.
    """

    def __init__(self, attempts: int, *, step: Optional[str] = None):
        super().__init__(f"order validation failed after {attempts} attempts", step=step)
        self.attempts = attempts


class ConfigurationError(OrderError):
    """Startup-time problem: missing credentials or an invalid order profile."""
