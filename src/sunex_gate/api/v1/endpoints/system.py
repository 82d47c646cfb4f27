"""Health, configuration and echo endpoints."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from sunex_gate.api.v1.dependencies import SignedRequestDep
from sunex_gate.core.settings import Settings
from sunex_gate.utils.canonical import canonical_body

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/config")
async def get_public_config(request: Request) -> dict[str, object]:
    """Return the non-secret parameters a client needs to sign requests.

    Key material is never included.
    """
    app_settings: Settings = request.app.state.settings
    return {
        "app": {"name": app_settings.app_name, "version": app_settings.app_version},
        "protocol": app_settings.public_protocol,
        "signing_ready": request.app.state.verification is not None,
    }


@router.post("/echo")
async def echo(request: Request, verdict: SignedRequestDep) -> dict[str, Any]:
    """Echo the authenticated client id and the canonical body it signed."""
    body = canonical_body(await request.body())
    return {"client": verdict.client_id, "body": json.loads(body)}
