import hashlib
from datetime import datetime, timedelta, timezone

from xkube.tokens import (
    ReuseSourceStore,
    ReuseTokenSource,
    StaticTokenSource,
    Token,
    hash_token,
)


class CountingSource:
    def __init__(self, lifetime):
        self.calls = 0
        self.lifetime = lifetime

    def token(self):
        self.calls += 1
        return Token(f"t{self.calls}", datetime.now(timezone.utc) + self.lifetime)


def test_token_validity():
    assert Token("token").is_valid()
    assert not Token("").is_valid()
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    assert not Token("token", past).is_valid()
    soon = datetime.now(timezone.utc) + timedelta(seconds=5)
    assert not Token("token", soon).is_valid()


def test_static_source():
    tok = Token("token")
    assert StaticTokenSource(tok).token() is tok


def test_reuse_source_caches_valid_token():
    src = CountingSource(timedelta(hours=1))
    reuse = ReuseTokenSource(None, src)
    first = reuse.token()
    assert reuse.token() is first
    assert src.calls == 1


def test_reuse_source_refreshes_expired():
    src = CountingSource(timedelta(seconds=-1))
    reuse = ReuseTokenSource(None, src)
    reuse.token()
    reuse.token()
    assert src.calls == 2


def test_hash_token_matches_sha256():
    assert hash_token("abc") == hashlib.sha256(b"abc").hexdigest()


def test_store_reuses_per_refresh_token():
    store = ReuseSourceStore()
    a = store.source_for_refresh_token("x", CountingSource(timedelta(hours=1)))
    b = store.source_for_refresh_token("x", CountingSource(timedelta(hours=1)))
    c = store.source_for_refresh_token("y", CountingSource(timedelta(hours=1)))
    assert a is b
    assert a is not c
    assert len(store) == 2