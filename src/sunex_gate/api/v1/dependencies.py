"""Shared API dependencies for signed-request authentication."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse

from sunex_gate.services.verification import (
    ERROR_BAD_SERVER_CONFIG,
    VerificationMiddleware,
    Verdict,
)

logger = logging.getLogger(__name__)


class SignatureRejected(Exception):
    """Raised by the signed-request dependency when a request is refused."""

    def __init__(self, verdict: Verdict) -> None:
        super().__init__(verdict.error)
        self.verdict = verdict


async def signature_rejected_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a rejection as the ``{"error": ...}`` envelope."""
    verdict = exc.verdict if isinstance(exc, SignatureRejected) else None
    if verdict is None:  # pragma: no cover - handler is only registered for SignatureRejected
        return JSONResponse({"error": "verification failure"}, status_code=500)
    return JSONResponse({"error": verdict.error}, status_code=verdict.status_code)


def get_verification_middleware(request: Request) -> VerificationMiddleware | None:
    """Return the gate configured at startup, or None if configuration failed."""
    return getattr(request.app.state, "verification", None)


async def require_signed_request(
    request: Request,
    gate: Annotated[VerificationMiddleware | None, Depends(get_verification_middleware)],
) -> Verdict:
    """Authenticate the current request or abort it with a JSON error.

    Args:
        request: Incoming request; its raw body is read and cached
        gate: Verification middleware built from settings

    Returns:
        The accepting verdict, carrying the authenticated client id

    Raises:
        SignatureRejected: If the request fails any verification step
    """
    if gate is None:
        logger.error("Signed endpoint %s called without a usable signing configuration", request.url.path)
        raise SignatureRejected(
            Verdict.reject(status.HTTP_500_INTERNAL_SERVER_ERROR, ERROR_BAD_SERVER_CONFIG)
        )

    body = await request.body()
    verdict = gate.verify(
        method=request.method,
        path=request.url.path,
        headers=request.headers,
        body=body,
    )
    if not verdict.accepted:
        raise SignatureRejected(verdict)
    return verdict


# Type alias for the authenticated-request dependency
SignedRequestDep = Annotated[Verdict, Depends(require_signed_request)]
