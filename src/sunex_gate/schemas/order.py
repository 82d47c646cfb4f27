"""Pydantic schemas for order placement."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OrderCreate(BaseModel):
    """Order submitted by an authenticated client."""

    model_config = ConfigDict(populate_by_name=True)

    order_type: Literal["buy", "sell"] = Field(..., alias="orderType")
    asset_id: str = Field(..., alias="assetId", min_length=1)
    price: float = Field(..., gt=0)
    amount: float = Field(..., gt=0)


class OrderResponse(BaseModel):
    """Order as recorded by the server."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    client_id: str = Field(..., alias="clientId")
    order_type: Literal["buy", "sell"] = Field(..., alias="orderType")
    asset_id: str = Field(..., alias="assetId")
    price: float
    amount: float
    timestamp: datetime
    status: str = "open"
