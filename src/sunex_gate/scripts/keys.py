# src/sunex_gate/scripts/keys.py
"""
Developer helper for request-signing key material.

Usage:
    python -m sunex_gate.scripts.keys keygen --mode ed25519
    python -m sunex_gate.scripts.keys sign --method POST --path /api/orders \
        --body '{"assetId": "TOKEN-X"}' --seed <base64 seed>
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from sunex_gate.core.settings import settings
from sunex_gate.services.signature import SigningMode, generate_ed25519_keypair, generate_hmac_key
from sunex_gate.utils.signing_client import sign_request


def keygen(mode: str) -> dict[str, str]:
    """Return fresh key material for a signing mode."""
    if mode == SigningMode.HMAC.value:
        return {"mode": mode, "hmac_key_b64": generate_hmac_key()}
    seed_b64, public_key_b64 = generate_ed25519_keypair()
    return {"mode": mode, "seed_b64": seed_b64, "public_key_b64": public_key_b64}


def sign(args: argparse.Namespace) -> dict[str, object]:
    """Return signed headers and body for the requested call."""
    body = json.loads(args.body) if args.body else None
    signed = sign_request(
        args.method,
        args.path,
        body,
        domain_tag=args.domain_tag,
        seed_b64=args.seed,
        hmac_key_b64=args.hmac_key,
        client_id=args.client,
    )
    return {"headers": signed.headers, "body": signed.body}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sunex request-signing helper")
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen_parser = subparsers.add_parser("keygen", help="Generate key material")
    keygen_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SigningMode],
        default=SigningMode.ED25519.value,
    )

    sign_parser = subparsers.add_parser("sign", help="Sign a request")
    sign_parser.add_argument("--method", required=True)
    sign_parser.add_argument("--path", required=True)
    sign_parser.add_argument("--body", default=None, help="JSON request body")
    sign_parser.add_argument("--domain-tag", default=settings.domain_tag)
    sign_parser.add_argument("--client", default=None, help="x-client value (required for HMAC)")
    key_group = sign_parser.add_mutually_exclusive_group(required=True)
    key_group.add_argument("--seed", help="Base64 Ed25519 seed")
    key_group.add_argument("--hmac-key", help="Base64 HMAC key")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        result = keygen(args.mode) if args.command == "keygen" else sign(args)
    except ValueError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
