# tests/v1/test_orders_api.py
"""End-to-end tests for signed endpoints through the FastAPI app."""

from __future__ import annotations

import time

from fastapi.testclient import TestClient

from sunex_gate.core.settings import Settings
from sunex_gate.main import create_app
from sunex_gate.services.signature import generate_ed25519_keypair, generate_hmac_key
from sunex_gate.utils.signing_client import sign_request

ORDER = {"orderType": "buy", "assetId": "TOKEN-X", "price": 10, "amount": 2}


def _post(client, signed, path="/api/orders", content=None):
    return client.post(path, content=signed.content if content is None else content, headers=signed.headers)


def test_valid_request_accepted(client, signer):
    signed = signer("POST", "/api/orders", ORDER)
    response = _post(client, signed)
    assert response.status_code == 201
    payload = response.json()
    assert payload["assetId"] == "TOKEN-X"
    assert payload["orderType"] == "buy"
    assert payload["clientId"] == signed.headers["x-client"]
    assert payload["status"] == "open"


def test_replayed_request_rejected(client, signer):
    signed = signer("POST", "/api/orders", ORDER)
    assert _post(client, signed).status_code == 201
    response = _post(client, signed)
    assert response.status_code == 409
    assert response.json() == {"error": "replay"}


def test_stale_request_rejected(client, signer):
    signed = signer("POST", "/api/orders", ORDER, timestamp=int(time.time()) - 1000)
    response = _post(client, signed)
    assert response.status_code == 400
    assert response.json() == {"error": "clock skew"}


def test_tampered_body_rejected(client, signer):
    signed = signer("POST", "/api/orders", ORDER)
    tampered = b'{"orderType":"buy","assetId":"TOKEN-X","price":1,"amount":2}'
    response = _post(client, signed, content=tampered)
    assert response.status_code == 401
    assert response.json() == {"error": "bad signature"}


def test_missing_nonce_rejected(client, signer):
    signed = signer("POST", "/api/orders", ORDER)
    headers = {k: v for k, v in signed.headers.items() if k != "x-nonce"}
    response = client.post("/api/orders", content=signed.content, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "missing headers"}


def test_unsigned_request_rejected(client):
    response = client.get("/api/orders")
    assert response.status_code == 400
    assert response.json() == {"error": "missing headers"}


def test_unsigned_malformed_body_reports_missing_headers(client):
    response = client.post("/api/orders", content=b"{broken")
    assert response.status_code == 400
    assert response.json() == {"error": "missing headers"}


def test_signed_malformed_body_reports_malformed_body(client, signer):
    signed = signer("POST", "/api/orders", ORDER)
    response = _post(client, signed, content=b"{broken")
    assert response.status_code == 400
    assert response.json() == {"error": "malformed body"}


def test_signed_invalid_order_uses_error_envelope(client, signer):
    invalid = {**ORDER, "orderType": "hold"}
    response = _post(client, signer("POST", "/api/orders", invalid))
    assert response.status_code == 422
    assert response.json() == {"error": "invalid order"}


def test_deeply_nested_body_reports_malformed_body(client, signer):
    signed = signer("POST", "/api/orders", ORDER)
    nested = b"[" * 50000 + b"]" * 50000
    response = _post(client, signed, content=nested)
    assert response.status_code == 400
    assert response.json() == {"error": "malformed body"}


def test_list_orders_returns_callers_orders(client, signer):
    assert _post(client, signer("POST", "/api/orders", ORDER)).status_code == 201
    signed = signer("GET", "/api/orders")
    response = client.get("/api/orders", headers=signed.headers)
    assert response.status_code == 200
    orders = response.json()
    assert len(orders) == 1
    assert orders[0]["clientId"] == signed.headers["x-client"]


def test_echo_returns_canonical_body(client, signer):
    body = {"b": [1, {"d": 1, "c": 2}], "a": "x"}
    signed = signer("POST", "/api/echo", body)
    response = _post(client, signed, path="/api/echo")
    assert response.status_code == 200
    assert response.json() == {"client": signed.headers["x-client"], "body": body}


def test_hmac_mode_end_to_end():
    key = generate_hmac_key()
    app = create_app(Settings(SIGNING_MODE="hmac", HMAC_KEY_BASE64=key))
    with TestClient(app) as client:
        good = sign_request(
            "POST", "/api/orders", ORDER, domain_tag="sunex:api:v1", hmac_key_b64=key, client_id="desk-1"
        )
        assert _post(client, good).status_code == 201

        bad = sign_request(
            "POST",
            "/api/orders",
            ORDER,
            domain_tag="sunex:api:v1",
            hmac_key_b64=generate_hmac_key(),
            client_id="desk-1",
        )
        response = _post(client, bad)
        assert response.status_code == 401
        assert response.json() == {"error": "bad signature"}


def test_pinned_ed25519_key_rejects_other_clients(ed25519_keypair):
    _, pinned_public_key = ed25519_keypair
    other_seed, _ = generate_ed25519_keypair()
    app = create_app(Settings(SIGNING_MODE="ed25519", ED25519_PUBKEY_BASE64=pinned_public_key))
    with TestClient(app) as client:
        signed = sign_request("POST", "/api/orders", ORDER, domain_tag="sunex:api:v1", seed_b64=other_seed)
        assert _post(client, signed).status_code == 401


def test_unknown_signing_mode_fails_closed(signer):
    app = create_app(Settings(SIGNING_MODE="rsa"))
    with TestClient(app) as client:
        response = _post(client, signer("POST", "/api/orders", ORDER))
        assert response.status_code == 500
        assert response.json() == {"error": "bad server config"}
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/config").json()["signing_ready"] is False


def test_hmac_without_key_fails_closed(signer):
    app = create_app(Settings(SIGNING_MODE="hmac", HMAC_KEY_BASE64=None))
    with TestClient(app) as client:
        response = _post(client, signer("POST", "/api/orders", ORDER))
        assert response.status_code == 500
