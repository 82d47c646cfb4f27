# src/sunex_gate/main.py
"""Main entry point for the Sunex gateway."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sunex_gate import __version__
from sunex_gate.api.v1 import orders_router, system_router
from sunex_gate.api.v1.dependencies import SignatureRejected, signature_rejected_handler
from sunex_gate.core.settings import Settings, settings
from sunex_gate.services.nonce_cache import NonceCache
from sunex_gate.services.orders import OrderLedger
from sunex_gate.services.signature import ConfigurationError, build_verifier
from sunex_gate.services.verification import VerificationMiddleware

logger = logging.getLogger(__name__)


def configure_logging(app_settings: Settings) -> None:
    """Apply the configured root log level."""
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_verification(
    app_settings: Settings, nonce_cache: NonceCache | None = None
) -> VerificationMiddleware:
    """Build the request gate from settings.

    Raises:
        ConfigurationError: If the signing mode or key material is unusable
    """
    verifier = build_verifier(
        app_settings.signing_mode,
        ed25519_pubkey_b64=app_settings.ed25519_pubkey_b64,
        hmac_key_b64=app_settings.hmac_key_b64,
    )
    cache = nonce_cache or NonceCache(
        ttl_seconds=app_settings.nonce_ttl_seconds,
        max_per_client=app_settings.nonce_max_per_client,
    )
    return VerificationMiddleware(
        verifier,
        cache,
        domain_tag=app_settings.domain_tag,
        skew_seconds=app_settings.skew_seconds,
    )


def create_app(
    app_settings: Settings | None = None,
    *,
    verification: VerificationMiddleware | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    A broken signing configuration is logged and leaves the app running with
    every signed endpoint failing closed.

    Args:
        app_settings: Settings to use; defaults to the environment
        verification: Pre-built gate, mainly for tests

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or settings
    app = FastAPI(
        title=app_settings.app_name,
        description="Signed-request authentication gateway",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=app_settings.cors_allow_credentials,
        allow_methods=app_settings.cors_allow_methods,
        allow_headers=app_settings.cors_allow_headers,
    )
    app.add_exception_handler(SignatureRejected, signature_rejected_handler)

    if verification is None:
        try:
            verification = build_verification(app_settings)
        except ConfigurationError as err:
            logger.error("Request signing is misconfigured, signed endpoints will fail: %s", err)
    else:
        logger.debug("Using injected verification gate")

    app.state.settings = app_settings
    app.state.verification = verification
    app.state.orders = OrderLedger()

    app.include_router(system_router, prefix="/api")
    app.include_router(orders_router, prefix="/api")

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": app_settings.app_name,
            "version": __version__,
            "description": "Signed-request authentication gateway",
            "docs": "/docs",
        }

    return app


configure_logging(settings)
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("sunex_gate.main:app", host="0.0.0.0", port=8080, reload=settings.debug)
