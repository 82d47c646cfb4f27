"""Preimage construction and signature verification for signed requests."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

logger = logging.getLogger(__name__)

PREIMAGE_SEPARATOR = b"|"
ED25519_KEY_BYTES = 32
ED25519_SIGNATURE_BYTES = 64


class ConfigurationError(ValueError):
    """Raised when the signing configuration cannot produce a verifier."""


class SigningMode(str, Enum):
    """Supported request signing schemes."""

    ED25519 = "ed25519"
    HMAC = "hmac"


def decode_b64(data: str) -> bytes:
    """Decode standard or URL-safe base64, accepting omitted padding.

    Raises:
        ValueError: If the input is not valid base64
    """
    cleaned = data.strip().replace("-", "+").replace("_", "/")
    padding = "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned + padding, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


def encode_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def build_preimage(
    *,
    domain_tag: str,
    method: str,
    path: str,
    body_hash_hex: str,
    timestamp: int | str,
    nonce: str,
) -> bytes:
    """Build the exact byte sequence a client signs.

    Fields are joined with ``|`` in the order domain tag, method (upper-cased),
    path, body hash, timestamp, nonce. Signing clients depend on this layout.
    """
    fields = (domain_tag, method.upper(), path, body_hash_hex, str(timestamp), nonce)
    return PREIMAGE_SEPARATOR.join(field.encode("utf-8") for field in fields)


def verify_ed25519(*, preimage: bytes, signature_b64: str, public_key_b64: str) -> bool:
    """Verify a detached Ed25519 signature.

    Args:
        preimage: Bytes produced by :func:`build_preimage`
        signature_b64: Base64-encoded 64-byte signature
        public_key_b64: Base64-encoded 32-byte public key

    Returns:
        True if the signature is valid; False for bad signatures and for any
        malformed encoding or key length.
    """
    try:
        signature = decode_b64(signature_b64)
        public_key = decode_b64(public_key_b64)
    except ValueError:
        return False
    if len(public_key) != ED25519_KEY_BYTES or len(signature) != ED25519_SIGNATURE_BYTES:
        return False
    try:
        VerifyKey(public_key).verify(preimage, signature)
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False


def verify_hmac(*, preimage: bytes, key_b64: str, signature_b64: str) -> bool:
    """Verify an HMAC-SHA256 tag with a constant-time comparison."""
    try:
        key = decode_b64(key_b64)
        supplied = decode_b64(signature_b64)
    except ValueError:
        return False
    expected = hmac.new(key, preimage, hashlib.sha256).digest()
    return hmac.compare_digest(expected, supplied)


def sign_ed25519(preimage: bytes, seed_b64: str) -> str:
    """Sign a preimage with a base64 Ed25519 seed and return a base64 signature."""
    seed = decode_b64(seed_b64)
    if len(seed) != ED25519_KEY_BYTES:
        raise ValueError("Ed25519 seeds must be 32 bytes")
    return encode_b64(SigningKey(seed).sign(preimage).signature)


def sign_hmac(preimage: bytes, key_b64: str) -> str:
    """Return the base64 HMAC-SHA256 tag of a preimage."""
    return encode_b64(hmac.new(decode_b64(key_b64), preimage, hashlib.sha256).digest())


def public_key_for_seed(seed_b64: str) -> str:
    """Return the base64 public key derived from a base64 Ed25519 seed."""
    seed = decode_b64(seed_b64)
    if len(seed) != ED25519_KEY_BYTES:
        raise ValueError("Ed25519 seeds must be 32 bytes")
    return encode_b64(SigningKey(seed).verify_key.encode())


def generate_ed25519_keypair() -> tuple[str, str]:
    """Generate a new Ed25519 key pair.

    Returns:
        Tuple of (seed_b64, public_key_b64)
    """
    signing_key = SigningKey.generate()
    return encode_b64(signing_key.encode()), encode_b64(signing_key.verify_key.encode())


def generate_hmac_key(num_bytes: int = 32) -> str:
    """Generate a random base64 HMAC key."""
    return encode_b64(secrets.token_bytes(num_bytes))


class SignatureVerifier(Protocol):
    """Strategy verifying a preimage signature for one configured mode."""

    mode: SigningMode

    def verify(self, preimage: bytes, signature_b64: str, client_id: str) -> bool: ...


@dataclass(frozen=True)
class Ed25519Verifier:
    """Ed25519 verification against a pinned key or the caller's own key.

    Without a pinned key the ``x-client`` value is the base64 public key.
    """

    pinned_public_key_b64: str | None = None
    mode: SigningMode = SigningMode.ED25519

    def verify(self, preimage: bytes, signature_b64: str, client_id: str) -> bool:
        public_key_b64 = self.pinned_public_key_b64 or client_id
        return verify_ed25519(
            preimage=preimage,
            signature_b64=signature_b64,
            public_key_b64=public_key_b64,
        )


@dataclass(frozen=True)
class HmacVerifier:
    """HMAC-SHA256 verification with a shared key."""

    key_b64: str
    mode: SigningMode = SigningMode.HMAC

    def verify(self, preimage: bytes, signature_b64: str, client_id: str) -> bool:
        return verify_hmac(preimage=preimage, key_b64=self.key_b64, signature_b64=signature_b64)


def build_verifier(
    mode: str | SigningMode,
    *,
    ed25519_pubkey_b64: str | None = None,
    hmac_key_b64: str | None = None,
) -> SignatureVerifier:
    """Select the verifier for a deployment's signing mode.

    Args:
        mode: ``"ed25519"`` or ``"hmac"`` (case-insensitive)
        ed25519_pubkey_b64: Optional pinned Ed25519 public key
        hmac_key_b64: Shared HMAC key, required in hmac mode

    Raises:
        ConfigurationError: If the mode is unknown or key material is unusable
    """
    try:
        signing_mode = SigningMode(str(getattr(mode, "value", mode)).strip().lower())
    except ValueError as err:
        raise ConfigurationError(f"Unknown signing mode: {mode!r}") from err

    if signing_mode is SigningMode.ED25519:
        if ed25519_pubkey_b64:
            try:
                key_len = len(decode_b64(ed25519_pubkey_b64))
            except ValueError as err:
                raise ConfigurationError("ED25519_PUBKEY_BASE64 is not valid base64") from err
            if key_len != ED25519_KEY_BYTES:
                raise ConfigurationError("ED25519_PUBKEY_BASE64 must decode to 32 bytes")
        else:
            logger.info("No pinned Ed25519 key configured; verifying against x-client keys")
        return Ed25519Verifier(pinned_public_key_b64=ed25519_pubkey_b64 or None)

    if not hmac_key_b64:
        raise ConfigurationError("HMAC_KEY_BASE64 is required when SIGNING_MODE=hmac")
    try:
        decode_b64(hmac_key_b64)
    except ValueError as err:
        raise ConfigurationError("HMAC_KEY_BASE64 is not valid base64") from err
    return HmacVerifier(key_b64=hmac_key_b64)
