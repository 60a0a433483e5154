"""
Short-TTL response cache for read-heavy endpoints.

The UI polls message and branch listings; entries are kept for a few seconds
and dropped by key prefix whenever a write touches the conversation. Each
scope also carries an invalidation counter so a read that raced a write does
not put its stale result back.
"""

import logging
import time
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value store whose entries expire ``ttl`` seconds after being set."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key_prefix: str) -> int:
        """Remove every entry whose key starts with ``key_prefix``."""
        stale = [key for key in self._entries if key.startswith(key_prefix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


CONVERSATION_LIST_KEY = "conversations"
MESSAGE_SCOPE = "message:"


def conversation_key(conversation_id: str, *parts: Any) -> str:
    """Key scoped to one conversation; the trailing colon keeps prefixes exact."""
    return ":".join(["conversation", str(conversation_id), *(str(p) for p in parts)])


def message_key(message_id: int) -> str:
    return f"message:{message_id}"


class Stamp(NamedTuple):
    """Invalidation counters of some scopes, read before a store query."""

    scopes: Tuple[str, ...]
    versions: Tuple[int, ...]


class ResponseCache:
    """Two TTL pools: message reads (short) and listings/details (longer).

    Reads fill the cache through :meth:`stamp` and :meth:`fill`. A write that
    invalidates a scope while a read of it is in flight bumps that scope's
    counter, and the read's result is then returned but not cached.
    """

    def __init__(
        self,
        message_ttl: float = 10.0,
        listing_ttl: float = 30.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.messages = TTLCache(message_ttl, clock)
        self.listings = TTLCache(listing_ttl, clock)
        self._versions: Dict[str, int] = {}
        self._epoch = 0

    def stamp(self, *scopes: str) -> Stamp:
        return Stamp(scopes, self._current(scopes))

    def fill(self, pool: TTLCache, key: str, value: Any, stamp: Stamp) -> bool:
        """Cache ``value`` unless one of the stamped scopes was invalidated since."""
        if self._current(stamp.scopes) != stamp.versions:
            logger.debug("Skipped caching %s: invalidated during the read", key)
            return False
        pool.set(key, value)
        return True

    def _current(self, scopes: Tuple[str, ...]) -> Tuple[int, ...]:
        return (self._epoch, *(self._versions.get(scope, 0) for scope in scopes))

    def _bump(self, scope: str) -> None:
        self._versions[scope] = self._versions.get(scope, 0) + 1

    def invalidate(self, key_prefix: str) -> int:
        # A prefix can cover any scope, so every in-flight read goes stale
        self._epoch += 1
        return self.messages.invalidate(key_prefix) + self.listings.invalidate(key_prefix)

    def invalidate_conversation(self, conversation_id: str) -> None:
        """Drop everything derived from one conversation, and the list view."""
        self._bump(conversation_key(conversation_id))
        self._bump(CONVERSATION_LIST_KEY)
        dropped = self.messages.invalidate(conversation_key(conversation_id) + ":")
        dropped += self.listings.invalidate(conversation_key(conversation_id) + ":")
        dropped += self.listings.invalidate(CONVERSATION_LIST_KEY)
        if dropped:
            logger.debug("Invalidated %d cache entries for conversation %s", dropped, conversation_id)

    def invalidate_message(self, message_id: int) -> None:
        self._bump(message_key(message_id))
        self.messages.discard(message_key(message_id))

    def invalidate_messages(self) -> None:
        """Drop every single-message entry."""
        self._bump(MESSAGE_SCOPE)
        self.messages.invalidate(MESSAGE_SCOPE)

    def clear(self) -> None:
        self._epoch += 1
        self.messages.clear()
        self.listings.clear()
