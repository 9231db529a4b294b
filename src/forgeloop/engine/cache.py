"""Response cache for agent completions.

Memoizes (agent, request, context fingerprint) -> (text, files) with a
time-to-live and a size cap. Expiry is lazy: an expired entry is removed
on the lookup that finds it. Overflow evicts the least recently used
entry. The cache is an explicit object injected into the executor, not
process-wide state.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from forgeloop.models.artifact import ArtifactFile

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600.0
DEFAULT_MAX_ENTRIES = 50
CONTEXT_PREFIX_CHARS = 500


def make_cache_key(
    agent_id: str,
    request: str,
    context: str,
    *,
    prefix_chars: int = CONTEXT_PREFIX_CHARS,
) -> str:
    """Stable SHA-256 key over agent id, request and a context prefix.

    Uses canonical JSON (sorted keys, compact separators) so the key does
    not depend on anything but the three values.
    """
    payload = json.dumps(
        {"agent": agent_id, "request": request, "context": context[:prefix_chars]},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """A cached completion."""

    key: str
    text: str
    files: tuple[ArtifactFile, ...]
    created_at: float


class ResponseCache:
    """LRU response cache with lazy TTL expiry.

    Args:
        ttl: Seconds an entry stays valid.
        max_entries: Size cap; the least recently used entry is evicted
            when a new key would exceed it.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for *key*, or None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss: %s", key[:12])
            return None
        if self._clock() - entry.created_at > self._ttl:
            del self._entries[key]
            logger.debug("Cache expired: %s", key[:12])
            return None
        self._entries.move_to_end(key)
        logger.debug("Cache hit: %s", key[:12])
        return entry

    def put(self, key: str, text: str, files: Sequence[ArtifactFile] = ()) -> CacheEntry:
        """Store a completion, evicting the LRU entry if at capacity."""
        if key in self._entries:
            del self._entries[key]
        while len(self._entries) >= self._max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug("Cache evict: %s", evicted_key[:12])
        entry = CacheEntry(key=key, text=text, files=tuple(files), created_at=self._clock())
        self._entries[key] = entry
        logger.debug("Cache put: %s (size=%d)", key[:12], len(self._entries))
        return entry

    def clear(self) -> None:
        """Drop every entry."""
        size = len(self._entries)
        self._entries.clear()
        if size > 0:
            logger.debug("Cache cleared (%d entries)", size)
