"""
mock_ovh_api.py — Mock Implementation of the Commerce API (REST)

This module provides a simulated cart/order/payment API for running the order workflow
locally and for the end-to-end tests. It exposes a FastAPI application that mimics the
endpoints and answers used by the workflow, keeping carts and orders in memory.

Simulation Scenarios (selected by markers in the cart description or plan codes):
    • "FLAKY-CHECKOUT" in the description → the first two checkout attempts fail (HTTP 503)
    • "NO-PAYMENT" in the description → the order has no available payment method
    • "UNAVAILABLE" in a plan code → adding the server or option is rejected (HTTP 400)
    • Configuration value "invalid" → configuration is rejected (HTTP 400)
    • Missing authentication headers → HTTP 401

Endpoints (all under /1.0):
    GET  /auth/time
    POST /order/cart
    POST /order/cart/{cartId}/assign
    POST /order/cart/{cartId}/baremetalServers
    POST /order/cart/{cartId}/item/{itemId}/configuration
    POST /order/cart/{cartId}/baremetalServers/options
    POST /order/cart/{cartId}/checkout
    GET  /me/order/{orderId}/availablePaymentMethod
    POST /me/order/{orderId}/pay

Port:
    Default: 8002 (HTTP). The end-to-end tests route the SDK's requests to this app in-process.
"""

import itertools
import logging
import time
import uuid
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI(title="Mock Commerce API")
router = APIRouter(prefix="/1.0")
logging.basicConfig(level=logging.INFO)

FLAKY_CHECKOUT_FAILURES = 2

CARTS: Dict[str, dict] = {}
ORDERS: Dict[int, dict] = {}
_ids = itertools.count(1)


def reset():
    """Drops all carts and orders (used between tests)."""
    global _ids
    CARTS.clear()
    ORDERS.clear()
    _ids = itertools.count(1)


@app.exception_handler(HTTPException)
def api_error_handler(request, exc: HTTPException):
    # Das echte API liefert Fehler als {"message": "..."}
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


def require_credentials(
        application: Optional[str] = Header(None, alias="X-Ovh-Application"),
        consumer: Optional[str] = Header(None, alias="X-Ovh-Consumer"),
        signature: Optional[str] = Header(None, alias="X-Ovh-Signature"),
        timestamp: Optional[str] = Header(None, alias="X-Ovh-Timestamp"),
):
    if not (application and consumer and signature and timestamp):
        raise HTTPException(status_code=401, detail="This call has not been granted")


def _cart(cart_id: str) -> dict:
    cart = CARTS.get(cart_id)
    if cart is None:
        raise HTTPException(status_code=404, detail=f"Cart {cart_id} does not exist")
    return cart


def _order(order_id: int) -> dict:
    order = ORDERS.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} does not exist")
    return order


class CartCreation(BaseModel):
    ovhSubsidiary: str
    description: str = ""
    expire: Optional[str] = None


class ItemCreation(BaseModel):
    duration: str
    planCode: str
    pricingMode: str
    quantity: int


class OptionCreation(ItemCreation):
    itemId: int


class ItemConfiguration(BaseModel):
    label: str
    value: str


class PaymentMethodRef(BaseModel):
    id: Union[int, str]
    type: str


class Payment(BaseModel):
    paymentMethod: PaymentMethodRef


@router.get("/auth/time")
def server_time():
    return int(time.time())


@router.post("/order/cart", dependencies=[Depends(require_credentials)])
def create_cart(request: CartCreation):
    cart_id = str(uuid.uuid4())
    CARTS[cart_id] = {
        "cartId": cart_id,
        "description": request.description,
        "expire": request.expire,
        "assigned": False,
        "items": {},
        "checkoutAttempts": 0,
    }
    logging.info(f"[API] Warenkorb {cart_id} angelegt ({request.ovhSubsidiary}).")
    return {"cartId": cart_id, "description": request.description, "expire": request.expire, "items": []}


@router.post("/order/cart/{cart_id}/assign", dependencies=[Depends(require_credentials)])
def assign_cart(cart_id: str):
    _cart(cart_id)["assigned"] = True
    return None


@router.post("/order/cart/{cart_id}/baremetalServers", dependencies=[Depends(require_credentials)])
def add_server(cart_id: str, request: ItemCreation):
    cart = _cart(cart_id)
    if "UNAVAILABLE" in request.planCode.upper():
        raise HTTPException(status_code=400, detail=f"Plan code {request.planCode} is not available")
    item_id = next(_ids)
    cart["items"][item_id] = {"planCode": request.planCode, "configuration": {}, "options": []}
    logging.info(f"[API] Server {request.planCode} in {cart_id} (Item {item_id}).")
    return {"cartId": cart_id, "itemId": item_id, "settings": {"planCode": request.planCode}}


@router.post("/order/cart/{cart_id}/item/{item_id}/configuration", dependencies=[Depends(require_credentials)])
def configure_item(cart_id: str, item_id: int, request: ItemConfiguration):
    item = _cart(cart_id)["items"].get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item {item_id} does not exist in cart {cart_id}")
    if request.value == "invalid":
        raise HTTPException(status_code=400, detail=f"Invalid value for {request.label}")
    item["configuration"][request.label] = request.value
    return {"id": next(_ids), "label": request.label, "value": request.value}


@router.post("/order/cart/{cart_id}/baremetalServers/options", dependencies=[Depends(require_credentials)])
def add_option(cart_id: str, request: OptionCreation):
    item = _cart(cart_id)["items"].get(request.itemId)
    if item is None:
        raise HTTPException(status_code=400, detail=f"Item {request.itemId} does not exist in cart {cart_id}")
    if "UNAVAILABLE" in request.planCode.upper():
        raise HTTPException(status_code=400, detail=f"Option {request.planCode} is not available")
    item["options"].append(request.planCode)
    return {"cartId": cart_id, "itemId": next(_ids), "settings": {"planCode": request.planCode}}


@router.post("/order/cart/{cart_id}/checkout", dependencies=[Depends(require_credentials)])
def checkout(cart_id: str):
    cart = _cart(cart_id)
    if not cart["assigned"]:
        raise HTTPException(status_code=403, detail="Cart is not assigned to an account")
    cart["checkoutAttempts"] += 1
    if "FLAKY-CHECKOUT" in cart["description"] and cart["checkoutAttempts"] <= FLAKY_CHECKOUT_FAILURES:
        logging.warning(f"[API] Checkout von {cart_id} simuliert fehlgeschlagen.")
        raise HTTPException(status_code=503, detail="Pricing is temporarily locked, please retry")

    order_id = next(_ids)
    ORDERS[order_id] = {"orderId": order_id, "cartId": cart_id, "paid": False, "paymentMethod": None}
    logging.info(f"[API] Warenkorb {cart_id} -> Bestellung {order_id}.")
    return {"orderId": order_id, "url": f"https://example.invalid/order/{order_id}", "prices": {}}


@router.get("/me/order/{order_id}/availablePaymentMethod", dependencies=[Depends(require_credentials)])
def available_payment_methods(order_id: int) -> List[dict]:
    order = _order(order_id)
    if "NO-PAYMENT" in CARTS[order["cartId"]]["description"]:
        return []
    return [
        {"id": 1001, "type": "credit"},
        {"id": 1002, "type": "ovh-account"},
    ]


@router.post("/me/order/{order_id}/pay", dependencies=[Depends(require_credentials)])
def pay(order_id: int, request: Payment):
    order = _order(order_id)
    if order["paid"]:
        raise HTTPException(status_code=400, detail=f"Order {order_id} is already paid")
    order["paid"] = True
    order["paymentMethod"] = request.paymentMethod.model_dump()
    logging.info(f"[API] Bestellung {order_id} bezahlt ({request.paymentMethod.type}).")
    return None


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
