# tests/test_keys_cli.py
"""Tests for the key material and signing helper."""

from __future__ import annotations

import json

from sunex_gate.scripts import keys
from sunex_gate.services.nonce_cache import NonceCache
from sunex_gate.services.signature import build_verifier
from sunex_gate.services.verification import VerificationMiddleware


def test_keygen_ed25519(capsys):
    assert keys.main(["keygen"]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["mode"] == "ed25519"
    assert {"seed_b64", "public_key_b64"} <= output.keys()


def test_keygen_hmac(capsys):
    assert keys.main(["keygen", "--mode", "hmac"]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["mode"] == "hmac"
    assert output["hmac_key_b64"]


def test_sign_produces_verifiable_headers(capsys):
    keys.main(["keygen"])
    seed = json.loads(capsys.readouterr().out)["seed_b64"]

    exit_code = keys.main(
        [
            "sign",
            "--method",
            "POST",
            "--path",
            "/api/orders",
            "--body",
            '{"price": 10, "assetId": "TOKEN-X"}',
            "--seed",
            seed,
            "--domain-tag",
            "sunex:api:v1",
        ]
    )
    assert exit_code == 0
    signed = json.loads(capsys.readouterr().out)
    assert signed["body"] == '{"assetId":"TOKEN-X","price":10}'

    gate = VerificationMiddleware(build_verifier("ed25519"), NonceCache(), domain_tag="sunex:api:v1")
    verdict = gate.verify(
        method="POST",
        path="/api/orders",
        headers=signed["headers"],
        body=signed["body"].encode(),
    )
    assert verdict.accepted


def test_sign_hmac_requires_client(capsys):
    exit_code = keys.main(
        ["sign", "--method", "GET", "--path", "/api/orders", "--hmac-key", "a2V5"]
    )
    assert exit_code == 1
    assert "client_id is required" in capsys.readouterr().err
