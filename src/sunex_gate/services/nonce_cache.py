"""Replay protection backed by a bounded, time-expiring nonce cache."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from threading import Lock
from typing import Final

DEFAULT_TTL_SECONDS: Final[int] = 600
DEFAULT_MAX_PER_CLIENT: Final[int] = 2048


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class NonceCache:
    """Per-client set of recently seen nonces.

    Entries live for ``ttl_seconds`` and each client keeps at most
    ``max_per_client`` of them; the oldest insertions are evicted first.
    Storage is process memory only, so a restart clears replay history.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_per_client: int = DEFAULT_MAX_PER_CLIENT,
        clock: Callable[[], int] | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_per_client <= 0:
            raise ValueError("max_per_client must be positive")
        self._ttl_ms = ttl_seconds * 1000
        self._max_per_client = max_per_client
        self._clock = clock or _wall_clock_ms
        # client_id -> nonce -> inserted_at_ms; clients ordered by latest insert
        self._clients: OrderedDict[str, OrderedDict[str, int]] = OrderedDict()
        self._lock = Lock()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_ms // 1000

    @property
    def max_per_client(self) -> int:
        return self._max_per_client

    def _collect(self, entries: OrderedDict[str, int], now_ms: int) -> None:
        """Drop expired nonces, then evict the oldest while over budget."""
        expired = [nonce for nonce, seen_at in entries.items() if now_ms - seen_at > self._ttl_ms]
        for nonce in expired:
            del entries[nonce]
        while len(entries) > self._max_per_client:
            entries.popitem(last=False)

    def _sweep(self, now_ms: int) -> None:
        """Forget clients whose newest nonce has already expired."""
        while self._clients:
            client_id, entries = next(iter(self._clients.items()))
            if entries and now_ms - next(reversed(entries.values())) <= self._ttl_ms:
                break
            del self._clients[client_id]

    def check_and_store(self, client_id: str, nonce: str) -> bool:
        """Record ``nonce`` for ``client_id`` unless it is still live.

        Args:
            client_id: Partition key, usually the client's public key
            nonce: Client-generated token for a single request

        Returns:
            True if the nonce was unseen (or expired) and is now stored;
            False if it is a replay within the TTL window.
        """
        with self._lock:
            now_ms = self._clock()
            self._sweep(now_ms)
            entries = self._clients.get(client_id)
            if entries is None:
                entries = OrderedDict()
                self._clients[client_id] = entries
            self._collect(entries, now_ms)
            if nonce in entries:
                return False
            entries[nonce] = now_ms
            if len(entries) > self._max_per_client:
                entries.popitem(last=False)
            self._clients.move_to_end(client_id)
            return True

    @property
    def client_count(self) -> int:
        """Number of clients that still hold at least one nonce."""
        with self._lock:
            return len(self._clients)

    def live_count(self, client_id: str) -> int:
        """Return how many nonces are currently stored for a client."""
        with self._lock:
            entries = self._clients.get(client_id)
            return len(entries) if entries is not None else 0

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._clients.values())
