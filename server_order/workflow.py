"""
workflow.py — Core Orchestration Logic for Server Orders

This module contains the main workflow logic for ordering a dedicated server.
It drives every call against the commerce API in the correct sequence and threads the
identifiers returned by one step into the next.

Workflow Overview:
1. Create a cart and assign it to the authenticated account
2. Add the server item and apply its configuration entries
3. Attach the priced options
4. Check the cart out into an order (retried with exponential backoff)
5. Fetch the available payment methods and pay with the first one

Error handling:
    Every step is fatal on failure except checkout, which is retried by the
    CheckoutRetryPolicy. Nothing is compensated: an aborted run leaves its cart behind
    on the remote side, where it expires on its own.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol

from .config import OrderProfile
from .errors import NoPaymentMethodError, OrderError
from .models import (
    AvailablePaymentMethods,
    CartCreated,
    CartCreateRequest,
    CartItemCreated,
    ConfigurationRequest,
    OptionRequest,
    OrderCreated,
    PaymentMethod,
    PayRequest,
    ServerItemRequest,
    parse_response,
)
from .retry import CheckoutRetryPolicy

log = logging.getLogger(__name__)


class CommerceApi(Protocol):
    """The transport collaborator: signed calls returning decoded JSON."""

    def post(self, path: str, body: Any = None) -> Any:
        ...

    def get(self, path: str) -> Any:
        ...


class WorkflowState(str, Enum):
    INIT = "Init"
    CART_CREATED = "CartCreated"
    CART_ASSIGNED = "CartAssigned"
    ITEM_ADDED = "ItemAdded"
    ITEM_CONFIGURED = "ItemConfigured"
    OPTIONS_ADDED = "OptionsAdded"
    ORDER_CREATED = "OrderCreated"
    PAYMENT_METHODS_FETCHED = "PaymentMethodsFetched"
    PAID = "Paid"


@dataclass
class OrderReceipt:
    """Identifiers collected by a completed workflow run."""
    cart_id: str
    item_id: int
    order_id: str
    payment_method: PaymentMethod


def add_one_month(moment: datetime) -> datetime:
    """
    Adds one calendar month. A day that does not exist in the target month overflows
    into the following month (Jan 31 -> Mar 3 in a non-leap year).
    """
    carry, month = divmod(moment.month, 12)
    first_of_month = moment.replace(year=moment.year + carry, month=month + 1, day=1)
    return first_of_month + timedelta(days=moment.day - 1)


def cart_expiry(moment: datetime) -> str:
    """
    Cart expiry timestamp: `moment` plus one month, as RFC 3339.

    A naive `moment` is local wall-clock time. It gets its UTC offset only after the
    month is added, so the offset is the one in force on the expiry date.
    """
    expiry = add_one_month(moment).replace(microsecond=0)
    if expiry.tzinfo is None:
        expiry = expiry.astimezone()
    return expiry.isoformat()


def _local_now() -> datetime:
    return datetime.now()


class OrderWorkflow:
    """
    Executes the complete order workflow for one server order.

    The engine keeps the current `state` so that a failure report can name the last
    state that was reached.
    """

    def __init__(self, api: CommerceApi, profile: OrderProfile,
                 retry_policy: Optional[CheckoutRetryPolicy] = None,
                 now: Callable[[], datetime] = _local_now):
        """
        Args:
            api (CommerceApi): Client used for every remote call.
            profile (OrderProfile): Product, configuration and options to order.
            retry_policy (CheckoutRetryPolicy): Backoff applied to the checkout step.
            now (callable): Returns the current (timezone-aware) time, used for the cart expiry.
        """
        self.api = api
        self.profile = profile
        self.retry_policy = retry_policy or CheckoutRetryPolicy()
        self.now = now
        self.state = WorkflowState.INIT
        self._log_prefix = "[Cart: -]"

    def run(self) -> OrderReceipt:
        """
        Runs every step in order and returns the identifiers of the paid order.

        Raises:
            ApiError: If any step other than checkout is rejected by the API.
            ResponseShapeError: If a response does not carry the expected fields.
            CheckoutRetryExhaustedError: If checkout failed on every attempt.
            NoPaymentMethodError: If the order has no available payment method.
        """
        log.info(f"Starte Bestellung von {self.profile.plan_code} ({self.profile.subsidiary}).")

        cart_id = self.create_cart()
        self.assign_cart(cart_id)
        item_id = self.add_server(cart_id)
        for entry in self.profile.configuration:
            self.configure_item(cart_id, item_id, entry)
        self.state = WorkflowState.ITEM_CONFIGURED
        for plan_code in self.profile.options:
            self.add_option(cart_id, item_id, plan_code)
        self.state = WorkflowState.OPTIONS_ADDED

        order_id = self.checkout(cart_id)
        methods = self.fetch_payment_methods(order_id)
        method = self.pay(order_id, methods)

        log.info(f"[Order: {order_id}] Verarbeitung erfolgreich abgeschlossen.")
        return OrderReceipt(cart_id=cart_id, item_id=item_id, order_id=order_id, payment_method=method)

    @contextmanager
    def _step(self, name: str):
        try:
            yield
        except OrderError as e:
            if e.step is None:
                e.step = name
            log.error(f"{self._log_prefix} Schritt '{name}' fehlgeschlagen (Status: {self.state.value}): {e}")
            raise

    # --- Step 1 ---
    def create_cart(self) -> str:
        request = CartCreateRequest(
            ovhSubsidiary=self.profile.subsidiary,
            description=self.profile.description,
            expire=cart_expiry(self.now()),
        )
        with self._step("create cart"):
            response = self.api.post("/order/cart", request.model_dump())
            cart = parse_response(CartCreated, response, "create cart")

        self.state = WorkflowState.CART_CREATED
        self._log_prefix = f"[Cart: {cart.cartId}]"
        log.info(f"{self._log_prefix} Warenkorb angelegt (gültig bis {request.expire}).")
        return cart.cartId

    # --- Step 2 ---
    def assign_cart(self, cart_id: str) -> None:
        with self._step("assign cart"):
            self.api.post(f"/order/cart/{cart_id}/assign")
        self.state = WorkflowState.CART_ASSIGNED
        log.info(f"{self._log_prefix} Warenkorb dem angemeldeten Konto zugewiesen.")

    # --- Step 3 ---
    def add_server(self, cart_id: str) -> int:
        request = ServerItemRequest(
            duration=self.profile.duration,
            planCode=self.profile.plan_code,
            pricingMode=self.profile.pricing_mode,
            quantity=self.profile.quantity,
        )
        with self._step("add server item"):
            response = self.api.post(f"/order/cart/{cart_id}/baremetalServers", request.model_dump())
            item = parse_response(CartItemCreated, response, "add server item")

        self.state = WorkflowState.ITEM_ADDED
        log.info(f"{self._log_prefix} Server {request.planCode} hinzugefügt (Item-ID: {item.itemId}).")
        return item.itemId

    # --- Step 4 ---
    def configure_item(self, cart_id: str, item_id: int, entry: ConfigurationRequest) -> None:
        with self._step(f"configure {entry.label}"):
            self.api.post(f"/order/cart/{cart_id}/item/{item_id}/configuration", entry.model_dump())
        log.info(f"{self._log_prefix} {entry.label} konfiguriert mit Wert {entry.value}.")

    # --- Step 5 ---
    def add_option(self, cart_id: str, item_id: int, plan_code: str) -> None:
        request = OptionRequest(
            duration=self.profile.duration,
            itemId=item_id,
            planCode=plan_code,
            pricingMode=self.profile.pricing_mode,
            quantity=self.profile.quantity,
        )
        with self._step(f"add option {plan_code}"):
            self.api.post(f"/order/cart/{cart_id}/baremetalServers/options", request.model_dump())
        log.info(f"{self._log_prefix} Option {plan_code} hinzugefügt.")

    # --- Step 6 ---
    def checkout(self, cart_id: str) -> str:
        """
        Validates the cart into an order. Transport and API errors are retried according to
        the retry policy; a malformed successful response is not.
        """
        path = f"/order/cart/{cart_id}/checkout"

        def report(attempt: int, error: BaseException, delay: float) -> None:
            log.warning(
                f"{self._log_prefix} Checkout-Versuch {attempt}/{self.retry_policy.max_attempts} "
                f"fehlgeschlagen: {error}. Neuer Versuch in {delay:g}s..."
            )

        with self._step("checkout"):
            response = self.retry_policy.run(lambda: self.api.post(path), on_failure=report)
            order = parse_response(OrderCreated, response, "checkout")

        self.state = WorkflowState.ORDER_CREATED
        log.info(f"{self._log_prefix} Bestellung validiert. Order-ID: {order.orderId}")
        return order.orderId

    # --- Step 7 ---
    def fetch_payment_methods(self, order_id: str) -> List[PaymentMethod]:
        with self._step("fetch payment methods"):
            response = self.api.get(f"/me/order/{order_id}/availablePaymentMethod")
            methods = parse_response(AvailablePaymentMethods, response, "fetch payment methods").root
            if not methods:
                raise NoPaymentMethodError(order_id)

        self.state = WorkflowState.PAYMENT_METHODS_FETCHED
        available = ", ".join(f"{m.type} ({m.id})" for m in methods)
        log.info(f"[Order: {order_id}] Verfügbare Zahlungsmethoden: {available}")
        return methods

    # --- Step 8 ---
    def pay(self, order_id: str, methods: List[PaymentMethod]) -> PaymentMethod:
        """Pays the order with the first available payment method."""
        with self._step("pay order"):
            if not methods:
                raise NoPaymentMethodError(order_id)
            method = methods[0]
            request = PayRequest(paymentMethod=method.as_ref())
            self.api.post(f"/me/order/{order_id}/pay", request.model_dump())

        self.state = WorkflowState.PAID
        log.info(f"[Order: {order_id}] Bestellung bezahlt mit {method.type} ({method.id}).")
        return method
