"""Pydantic response schemas for the payments API."""

from pydantic import BaseModel


class ShortfallSchema(BaseModel):
    product_id: str
    requested: int
    available: int


class AckResponse(BaseModel):
    status: str
    order_id: str | None = None
    shortfalls: list[ShortfallSchema] = []


class ErrorResponse(BaseModel):
    error: str
    message: str
    retryable: bool
