"""Pydantic request/response models for the catalogue API."""

from pydantic import BaseModel, Field


class StockNotificationRequest(BaseModel):
    email: str | None = None
    product_slug: str | None = None
    size: str | None = None
    user_id: str | None = None


class StockNotificationResponse(BaseModel):
    message: str
    subscription_id: str


class UpdateInventoryRequest(BaseModel):
    size_quantities: dict[str, int] = Field(..., examples=[{"S": 4, "M": 0, "L": 2}])


class AdjustInventoryRequest(BaseModel):
    size: str
    adjustment: int
    reason: str | None = None


class InventoryResponse(BaseModel):
    product_slug: str
    size_quantities: dict[str, int]


class AdjustInventoryResponse(BaseModel):
    size: str
    previous_qty: int
    new_qty: int
    change: int
