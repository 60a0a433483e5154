"""Tests for the TTL response cache."""

from jensengpt.services.cache_service import (
    CONVERSATION_LIST_KEY,
    MESSAGE_SCOPE,
    ResponseCache,
    TTLCache,
    conversation_key,
    message_key,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(10, clock)
    cache.set("a", [1, 2])

    clock.now += 9.5
    assert cache.get("a") == [1, 2]

    clock.now += 1
    assert cache.get("a") is None
    assert len(cache) == 0


def test_invalidate_by_prefix():
    cache = TTLCache(30)
    cache.set(conversation_key("c1", "messages"), [])
    cache.set(conversation_key("c1", "branches"), [])
    cache.set(conversation_key("c2", "messages"), [])

    assert cache.invalidate(conversation_key("c1") + ":") == 2
    assert cache.get(conversation_key("c2", "messages")) == []


def test_conversation_key_format():
    assert conversation_key("abc", "branch", "b1", "messages") == "conversation:abc:branch:b1:messages"
    assert message_key(7) == "message:7"


def test_invalidate_conversation_drops_listing_and_scoped_keys():
    cache = ResponseCache()
    cache.listings.set(CONVERSATION_LIST_KEY, ["c1"])
    cache.listings.set(conversation_key("c1", "branches"), ["b1"])
    cache.messages.set(conversation_key("c1", "messages"), ["m1"])
    cache.messages.set(conversation_key("c10", "messages"), ["other"])

    cache.invalidate_conversation("c1")

    assert cache.listings.get(CONVERSATION_LIST_KEY) is None
    assert cache.listings.get(conversation_key("c1", "branches")) is None
    assert cache.messages.get(conversation_key("c1", "messages")) is None
    assert cache.messages.get(conversation_key("c10", "messages")) == ["other"]


def test_invalidate_message_is_exact():
    cache = ResponseCache()
    cache.messages.set(message_key(1), "one")
    cache.messages.set(message_key(10), "ten")

    cache.invalidate_message(1)

    assert cache.messages.get(message_key(1)) is None
    assert cache.messages.get(message_key(10)) == "ten"


def test_pools_have_separate_ttls():
    clock = FakeClock()
    cache = ResponseCache(message_ttl=10, listing_ttl=30, clock=clock)
    cache.messages.set("m", 1)
    cache.listings.set("l", 2)

    clock.now += 15
    assert cache.messages.get("m") is None
    assert cache.listings.get("l") == 2

    cache.clear()
    assert cache.listings.get("l") is None


def test_fill_skips_result_read_before_invalidation():
    cache = ResponseCache()
    key = conversation_key("c1", "messages")

    stamp = cache.stamp(conversation_key("c1"))
    # A write lands between the store read and the fill
    cache.invalidate_conversation("c1")

    assert cache.fill(cache.messages, key, ["old"], stamp) is False
    assert cache.messages.get(key) is None

    fresh = cache.stamp(conversation_key("c1"))
    assert cache.fill(cache.messages, key, ["old", "new"], fresh) is True
    assert cache.messages.get(key) == ["old", "new"]


def test_fill_ignores_writes_to_other_conversations():
    cache = ResponseCache()
    stamp = cache.stamp(conversation_key("c1"))

    cache.invalidate_conversation("c2")

    assert cache.fill(cache.listings, conversation_key("c1", "branches"), ["b1"], stamp) is True


def test_conversation_writes_invalidate_listing_reads():
    cache = ResponseCache()
    stamp = cache.stamp(CONVERSATION_LIST_KEY)

    cache.invalidate_conversation("c9")

    assert cache.fill(cache.listings, CONVERSATION_LIST_KEY, [], stamp) is False


def test_message_fills_race_with_message_invalidation():
    cache = ResponseCache()

    stamp = cache.stamp(MESSAGE_SCOPE, message_key(1))
    cache.invalidate_message(1)
    assert cache.fill(cache.messages, message_key(1), "stale", stamp) is False

    stamp = cache.stamp(MESSAGE_SCOPE, message_key(2))
    cache.invalidate_messages()
    assert cache.fill(cache.messages, message_key(2), "stale", stamp) is False

    stamp = cache.stamp(MESSAGE_SCOPE, message_key(3))
    cache.invalidate("conversation:")
    assert cache.fill(cache.messages, message_key(3), "stale", stamp) is False
    assert len(cache.messages) == 0
