"""Pydantic request/response models for the ordering API.

API schemas are separate from Protean commands (anti-corruption pattern).
Checkout fields are deliberately loose so that missing values reach the
domain validation and come back as a 400 with a readable message.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class CartLine(BaseModel):
    slug: str | None = None
    title: str | None = None
    size: str | None = None
    quantity: int | None = None
    price: int | None = None  # cents; ignored at checkout, prices come from the catalogue
    image: str | None = None
    collection: str | None = None


class ShippingAddressRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country: str | None = None


class CheckoutRequest(BaseModel):
    items: list[CartLine] = Field(default_factory=list)
    shipping_address: ShippingAddressRequest | None = None


class ConfirmPaymentRequest(BaseModel):
    confirmed_by: str | None = None
    expected_revision: int | None = None


class UpdateOrderRequest(BaseModel):
    status: str | None = Field(None, examples=["shipped"])
    tracking_number: str | None = None
    carrier: str | None = None
    note: str | None = None
    expected_revision: int | None = None


class CartAbandonRequest(BaseModel):
    email: str | None = None
    cart_items: list[CartLine] = Field(default_factory=list)
    cart_total: int | None = None  # cents
    user_id: str | None = None


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str


class OrderItemView(BaseModel):
    product_slug: str
    title: str
    size: str
    quantity: int
    unit_price: int
    line_total: int
    image: str | None = None
    collection: str | None = None


class StatusHistoryView(BaseModel):
    status: str
    timestamp: datetime
    note: str | None = None


class OrderView(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    payment_method: str
    total: int
    currency: str
    customer_name: str | None = None
    customer_email: str | None = None
    shipping_address: dict | None = None
    items: list[OrderItemView]
    tracking_number: str | None = None
    carrier: str | None = None
    status_history: list[StatusHistoryView]
    created_at: datetime | None = None
    expires_at: datetime | None = None
    is_expired: bool
    revision: int


class OrderUpdateResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    revision: int


class CartAbandonResponse(BaseModel):
    abandonment_id: str
    created: bool


class StatusResponse(BaseModel):
    status: str = "ok"
