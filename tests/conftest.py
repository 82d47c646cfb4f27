# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sunex_gate.core.settings import Settings
from sunex_gate.main import create_app
from sunex_gate.services.nonce_cache import NonceCache
from sunex_gate.services.signature import (
    build_verifier,
    generate_ed25519_keypair,
    generate_hmac_key,
)
from sunex_gate.services.verification import VerificationMiddleware
from sunex_gate.utils.signing_client import SignedHeaders, sign_request

DOMAIN_TAG = "sunex:api:v1"


class FakeClock:
    """Mutable clock returning epoch milliseconds."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ed25519_keypair() -> tuple[str, str]:
    """Return a fresh (seed_b64, public_key_b64) pair."""
    return generate_ed25519_keypair()


@pytest.fixture()
def hmac_key() -> str:
    return generate_hmac_key()


@pytest.fixture()
def nonce_cache() -> NonceCache:
    return NonceCache(ttl_seconds=600, max_per_client=2048)


@pytest.fixture()
def ed25519_gate(nonce_cache: NonceCache) -> VerificationMiddleware:
    """Gate verifying Ed25519 signatures against the caller's x-client key."""
    return VerificationMiddleware(
        build_verifier("ed25519"),
        nonce_cache,
        domain_tag=DOMAIN_TAG,
        skew_seconds=90,
    )


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(SIGNING_MODE="ed25519", DOMAIN_TAG=DOMAIN_TAG, SKEW_SECS=90)


@pytest.fixture()
def app(test_settings: Settings, ed25519_gate: VerificationMiddleware) -> FastAPI:
    return create_app(test_settings, verification=ed25519_gate)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def signer(ed25519_keypair: tuple[str, str]) -> Callable[..., SignedHeaders]:
    """Return a callable signing requests with the test Ed25519 identity."""
    seed_b64, public_key_b64 = ed25519_keypair

    def _sign(method: str, path: str, body: Any = None, **overrides: Any) -> SignedHeaders:
        overrides.setdefault("domain_tag", DOMAIN_TAG)
        return sign_request(
            method,
            path,
            body,
            seed_b64=seed_b64,
            public_key_b64=public_key_b64,
            **overrides,
        )

    return _sign
