# src/sunex_gate/api/v1/endpoints/orders.py
"""Signed order endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from sunex_gate.api.v1.dependencies import SignedRequestDep
from sunex_gate.schemas.order import OrderCreate, OrderResponse
from sunex_gate.services.orders import OrderLedger

router = APIRouter(prefix="/orders", tags=["orders"])


def get_order_ledger(request: Request) -> OrderLedger:
    return request.app.state.orders


OrderLedgerDep = Annotated[OrderLedger, Depends(get_order_ledger)]


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    request: Request,
    verdict: SignedRequestDep,
    ledger: OrderLedgerDep,
) -> OrderResponse | JSONResponse:
    """Record an order from an authenticated client.

    The body is parsed only after the signature gate has accepted the
    request, so unsigned or malformed bodies get the gate's error envelope.

    Args:
        request: Incoming request carrying the signed order body
        verdict: Accepting verdict for this request
        ledger: Process-local order record

    Returns:
        The recorded order, or a 422 error envelope for an invalid order
    """
    try:
        order = OrderCreate.model_validate_json(await request.body())
    except ValidationError:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "invalid order"},
        )
    return ledger.record(verdict.client_id or "", order)


@router.get("", response_model=list[OrderResponse])
async def list_orders(verdict: SignedRequestDep, ledger: OrderLedgerDep) -> list[OrderResponse]:
    """Return the orders the calling client has placed."""
    return ledger.list_orders(verdict.client_id)
