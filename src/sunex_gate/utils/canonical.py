# src/sunex_gate/utils/canonical.py
"""Canonical JSON encoding and SHA-256 helpers used for request hashing.

The canonical form is used only for hashing, never for transport: object keys
are sorted at every depth, arrays keep their order, and the output is compact
JSON with non-ASCII characters left unescaped. Numbers are written the way
ECMAScript's ``JSON.stringify`` writes them so JavaScript signers produce the
same bytes.
"""

from __future__ import annotations

import hashlib
import json
import math
from decimal import Decimal
from typing import Any

EMPTY_BODY = "{}"


def _format_number(value: float) -> str:
    """Render a finite float using ECMAScript Number::toString rules."""
    if not math.isfinite(value):
        raise ValueError(f"Out of range float values are not JSON compliant: {value!r}")
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    # repr gives the shortest round-tripping digits, same as ECMAScript
    digits_tuple, exponent = Decimal(repr(abs(value))).as_tuple()[1:]
    digits = list(digits_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    text = "".join(str(d) for d in digits)
    k = len(text)
    n = exponent + k

    if k <= n <= 21:
        return sign + text + "0" * (n - k)
    if 0 < n <= 21:
        return sign + text[:n] + "." + text[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * (-n) + text
    e = n - 1
    mantissa = text if k == 1 else text[0] + "." + text[1:]
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def _encode(value: Any) -> str:
    if isinstance(value, dict):
        members = (
            json.dumps(str(key), ensure_ascii=False) + ":" + _encode(value[key])
            for key in sorted(value)
        )
        return "{" + ",".join(members) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(item) for item in value) + "]"
    # bool is an int subclass, so it is checked before numbers
    if value is None or isinstance(value, (bool, str)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonicalize(value: Any) -> str:
    """Return the canonical JSON string for a JSON-like value.

    Args:
        value: Nested dicts, lists, strings, numbers, booleans or None

    Returns:
        Compact JSON with lexicographically sorted keys at every level
    """
    return _encode(value)


def digest_hex(data: bytes | str) -> str:
    """Return the lower-case SHA-256 hex digest of ``data``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def canonical_body(body: Any) -> str:
    """Return the canonical string for a request body.

    Raw bytes are parsed as JSON first. Absent or empty bodies, including an
    empty object, collapse to the ``"{}"`` sentinel.

    Raises:
        ValueError: If raw bytes are not valid UTF-8 JSON, hold non-finite
            numbers, or nest too deeply to process
    """
    if body is None:
        return EMPTY_BODY
    try:
        if isinstance(body, (bytes, bytearray, str)):
            text = body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
            if not text.strip():
                return EMPTY_BODY
            try:
                body = json.loads(text)
            except json.JSONDecodeError as err:
                raise ValueError(f"Body is not valid JSON: {err}") from err
        if body == {}:
            return EMPTY_BODY
        return canonicalize(body)
    except RecursionError as err:
        raise ValueError("Body is nested too deeply") from err


def body_digest_hex(body: Any) -> str:
    """Return the SHA-256 hex digest of the canonical request body."""
    return digest_hex(canonical_body(body))
