# integrations/tests/test_token_cache.py

from datetime import datetime, timedelta, timezone

from django.core.cache import cache
from django.test import SimpleTestCase

from integrations.token_cache import DjangoTokenCache, InMemoryTokenCache

T0 = datetime(2024, 8, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class InMemoryTokenCacheTests(SimpleTestCase):
    def test_token_is_served_until_expiry(self):
        clock = FakeClock()
        tokens = InMemoryTokenCache(clock=clock)
        tokens.set("k", "abc", T0 + timedelta(minutes=20))

        clock.advance(minutes=19)
        self.assertEqual(tokens.get("k"), "abc")

        clock.advance(minutes=1)
        self.assertIsNone(tokens.get("k"))

    def test_invalidate(self):
        tokens = InMemoryTokenCache(clock=FakeClock())
        tokens.set("k", "abc", T0 + timedelta(minutes=5))
        tokens.invalidate("k")
        tokens.invalidate("missing")
        self.assertIsNone(tokens.get("k"))

    def test_keys_are_independent(self):
        tokens = InMemoryTokenCache(clock=FakeClock())
        tokens.set("a", "1", T0 + timedelta(minutes=5))
        tokens.set("b", "2", T0 + timedelta(minutes=5))
        self.assertEqual((tokens.get("a"), tokens.get("b")), ("1", "2"))


class DjangoTokenCacheTests(SimpleTestCase):
    def setUp(self):
        cache.clear()

    def test_round_trip_and_invalidate(self):
        tokens = DjangoTokenCache(clock=FakeClock())
        tokens.set("k", "abc", T0 + timedelta(minutes=20))
        self.assertEqual(tokens.get("k"), "abc")

        tokens.invalidate("k")
        self.assertIsNone(tokens.get("k"))

    def test_already_expired_token_is_not_stored(self):
        tokens = DjangoTokenCache(clock=FakeClock())
        tokens.set("k", "abc", T0 - timedelta(seconds=1))
        self.assertIsNone(tokens.get("k"))
