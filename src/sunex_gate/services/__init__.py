"""Request authentication services."""

from .nonce_cache import NonceCache
from .orders import OrderLedger
from .signature import (
    ConfigurationError,
    Ed25519Verifier,
    HmacVerifier,
    SignatureVerifier,
    SigningMode,
    build_verifier,
)
from .verification import VerificationMiddleware, Verdict

__all__ = [
    "ConfigurationError",
    "Ed25519Verifier",
    "HmacVerifier",
    "NonceCache",
    "OrderLedger",
    "SignatureVerifier",
    "SigningMode",
    "VerificationMiddleware",
    "Verdict",
    "build_verifier",
]
