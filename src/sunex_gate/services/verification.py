"""Accept/reject decisions for signed inbound requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Final

from fastapi import status

from sunex_gate.services.nonce_cache import NonceCache
from sunex_gate.services.signature import SignatureVerifier, build_preimage
from sunex_gate.utils.canonical import body_digest_hex

logger = logging.getLogger(__name__)

HEADER_CLIENT: Final[str] = "x-client"
HEADER_TIMESTAMP: Final[str] = "x-timestamp"
HEADER_NONCE: Final[str] = "x-nonce"
HEADER_SIGNATURE: Final[str] = "x-sig"

ERROR_MISSING_HEADERS: Final[str] = "missing headers"
ERROR_CLOCK_SKEW: Final[str] = "clock skew"
ERROR_REPLAY: Final[str] = "replay"
ERROR_MALFORMED_BODY: Final[str] = "malformed body"
ERROR_BAD_SIGNATURE: Final[str] = "bad signature"
ERROR_VERIFICATION_FAILURE: Final[str] = "verification failure"
ERROR_BAD_SERVER_CONFIG: Final[str] = "bad server config"

DEFAULT_SKEW_SECONDS: Final[int] = 90


@dataclass(frozen=True)
class Verdict:
    """Outcome of verifying a single request."""

    accepted: bool
    status_code: int
    error: str | None = None
    client_id: str | None = None

    @classmethod
    def accept(cls, client_id: str) -> Verdict:
        return cls(accepted=True, status_code=status.HTTP_200_OK, client_id=client_id)

    @classmethod
    def reject(cls, status_code: int, error: str, client_id: str | None = None) -> Verdict:
        return cls(accepted=False, status_code=status_code, error=error, client_id=client_id)


@dataclass(frozen=True)
class SignedRequest:
    """Authentication fields extracted from one request."""

    method: str
    path: str
    body: bytes
    timestamp: int
    nonce: str
    client_id: str
    signature: str


def _parse_timestamp(raw: str) -> int | None:
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    # zero is treated as absent
    return value or None


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        # plain dicts are not case-insensitive
        for key, candidate in headers.items():
            if key.lower() == name:
                value = candidate
                break
    return (value or "").strip()


class VerificationMiddleware:
    """Gate composing header checks, freshness, replay and signature checks.

    The nonce is consumed before the signature is checked, so a request that
    later fails signature verification has still burned its nonce.
    """

    def __init__(
        self,
        verifier: SignatureVerifier,
        nonce_cache: NonceCache,
        *,
        domain_tag: str,
        skew_seconds: int = DEFAULT_SKEW_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.verifier = verifier
        self.nonce_cache = nonce_cache
        self.domain_tag = domain_tag
        self.skew_seconds = skew_seconds
        self._clock = clock or time.time

    def extract(
        self, *, method: str, path: str, headers: Mapping[str, str], body: bytes | None
    ) -> SignedRequest | None:
        """Pull the signed-request fields out of headers; None if incomplete."""
        client_id = _header(headers, HEADER_CLIENT)
        raw_timestamp = _header(headers, HEADER_TIMESTAMP)
        nonce = _header(headers, HEADER_NONCE)
        signature = _header(headers, HEADER_SIGNATURE)
        timestamp = _parse_timestamp(raw_timestamp) if raw_timestamp else None
        if not client_id or timestamp is None or not nonce or not signature:
            return None
        return SignedRequest(
            method=method,
            path=path,
            body=body or b"",
            timestamp=timestamp,
            nonce=nonce,
            client_id=client_id,
            signature=signature,
        )

    def verify(
        self,
        *,
        method: str,
        path: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> Verdict:
        """Decide whether a request may proceed.

        Args:
            method: HTTP method
            path: Request path exactly as signed (no query string)
            headers: Request headers
            body: Raw request body bytes

        Returns:
            An accepting verdict, or a rejection with status code and message
        """
        try:
            return self._verify(method=method, path=path, headers=headers, body=body)
        except Exception:
            logger.exception("Unexpected error verifying %s %s", method, path)
            return Verdict.reject(status.HTTP_500_INTERNAL_SERVER_ERROR, ERROR_VERIFICATION_FAILURE)

    def _verify(
        self,
        *,
        method: str,
        path: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> Verdict:
        request = self.extract(method=method, path=path, headers=headers, body=body)
        if request is None:
            logger.info("Rejected %s %s: missing headers", method, path)
            return Verdict.reject(status.HTTP_400_BAD_REQUEST, ERROR_MISSING_HEADERS)

        now = int(self._clock())
        if abs(now - request.timestamp) > self.skew_seconds:
            logger.info(
                "Rejected %s %s from %s: clock skew %ds",
                method,
                path,
                request.client_id,
                now - request.timestamp,
            )
            return Verdict.reject(
                status.HTTP_400_BAD_REQUEST, ERROR_CLOCK_SKEW, request.client_id
            )

        if not self.nonce_cache.check_and_store(request.client_id, request.nonce):
            logger.warning("Rejected %s %s from %s: replayed nonce", method, path, request.client_id)
            return Verdict.reject(status.HTTP_409_CONFLICT, ERROR_REPLAY, request.client_id)

        try:
            body_hash_hex = body_digest_hex(request.body)
        except ValueError:
            logger.info("Rejected %s %s from %s: malformed body", method, path, request.client_id)
            return Verdict.reject(
                status.HTTP_400_BAD_REQUEST, ERROR_MALFORMED_BODY, request.client_id
            )

        preimage = build_preimage(
            domain_tag=self.domain_tag,
            method=request.method,
            path=request.path,
            body_hash_hex=body_hash_hex,
            timestamp=request.timestamp,
            nonce=request.nonce,
        )
        if not self.verifier.verify(preimage, request.signature, request.client_id):
            logger.warning(
                "Rejected %s %s from %s: bad %s signature",
                method,
                path,
                request.client_id,
                self.verifier.mode.value,
            )
            return Verdict.reject(
                status.HTTP_401_UNAUTHORIZED, ERROR_BAD_SIGNATURE, request.client_id
            )

        logger.debug("Accepted %s %s from %s", method, path, request.client_id)
        return Verdict.accept(request.client_id)
