"""Client-side request signing utilities.

Produces the ``x-client``, ``x-timestamp``, ``x-nonce`` and ``x-sig`` headers
expected by the verification gate, using the same canonical body hash and
preimage layout the server rebuilds.
"""

from __future__ import annotations

import base64
import secrets
import time
from dataclasses import dataclass, field
from typing import Any

from sunex_gate.services.signature import (
    build_preimage,
    public_key_for_seed,
    sign_ed25519,
    sign_hmac,
)
from sunex_gate.utils.canonical import canonical_body, digest_hex

NONCE_BYTES = 12


def generate_nonce() -> str:
    """Return a fresh random base64 nonce."""
    return base64.b64encode(secrets.token_bytes(NONCE_BYTES)).decode("ascii")


@dataclass(frozen=True)
class SignedHeaders:
    """Headers and canonical body for one signed request."""

    headers: dict[str, str] = field(default_factory=dict)
    body: str = "{}"

    @property
    def content(self) -> bytes:
        return self.body.encode("utf-8")


def sign_request(
    method: str,
    path: str,
    body: Any = None,
    *,
    domain_tag: str,
    seed_b64: str | None = None,
    public_key_b64: str | None = None,
    hmac_key_b64: str | None = None,
    client_id: str | None = None,
    timestamp: int | None = None,
    nonce: str | None = None,
) -> SignedHeaders:
    """Sign a request for the verification gate.

    Exactly one of ``seed_b64`` (Ed25519) or ``hmac_key_b64`` (HMAC) must be
    given. In Ed25519 mode the client id defaults to the base64 public key.

    Args:
        method: HTTP method
        path: Request path as the server will see it
        body: JSON-like body, or None for an empty body
        domain_tag: Signing domain shared with the server
        seed_b64: Base64 32-byte Ed25519 seed
        public_key_b64: Base64 public key; derived from the seed if omitted
        hmac_key_b64: Base64 shared HMAC key
        client_id: Value for ``x-client``; required in HMAC mode
        timestamp: Unix seconds; defaults to now
        nonce: Request nonce; defaults to a random token

    Returns:
        SignedHeaders with the header set and the canonical body to send

    Raises:
        ValueError: If key material is missing, ambiguous or malformed
    """
    if (seed_b64 is None) == (hmac_key_b64 is None):
        raise ValueError("Provide exactly one of seed_b64 or hmac_key_b64")

    ts = int(time.time()) if timestamp is None else int(timestamp)
    request_nonce = nonce or generate_nonce()
    body_str = canonical_body(body)
    preimage = build_preimage(
        domain_tag=domain_tag,
        method=method,
        path=path,
        body_hash_hex=digest_hex(body_str),
        timestamp=ts,
        nonce=request_nonce,
    )

    if seed_b64 is not None:
        signature = sign_ed25519(preimage, seed_b64)
        client = client_id or public_key_b64 or public_key_for_seed(seed_b64)
    else:
        if not client_id:
            raise ValueError("client_id is required for HMAC signing")
        signature = sign_hmac(preimage, hmac_key_b64 or "")
        client = client_id

    return SignedHeaders(
        headers={
            "x-client": client,
            "x-timestamp": str(ts),
            "x-nonce": request_nonce,
            "x-sig": signature,
            "content-type": "application/json",
        },
        body=body_str,
    )
