"""Pydantic schemas for the Sunex API."""

from .order import OrderCreate, OrderResponse

__all__ = ["OrderCreate", "OrderResponse"]
