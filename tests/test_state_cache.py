import hashlib
from dataclasses import dataclass

from xkube.state_cache import DesiredStateCache, DesiredStateCacheManager


@dataclass
class Obj:
    name: str
    uid: str
    manifest: bytes


def raw(res_name, field_value):
    return (
        '{\n\t\t"apiVersion": "api.example.org/v1",\n\t\t"kind": "MyCoolKind",\n'
        f'\t\t"metadata": {{\n\t\t\t"name": "{res_name}"\n\t\t}}\n'
        f'\t\t"spec": {{\n\t\t\t"coolField": "{field_value}"\n\t\t}}\n\t}}'
    ).encode()


def example_hash(res_name, field_value):
    return hashlib.sha256(raw(res_name, field_value)).hexdigest()


def extracted(res_name, field_value):
    return {
        "apiVersion": "api.example.org/v1",
        "kind": "FooKind",
        "metadata": {"name": res_name},
        "spec": {"coolField": field_value},
    }


class MockStateCache:
    def __init__(self, u, digest):
        self.u = u
        self.digest = digest

    def set_state_for(self, obj, state):
        pass

    def get_state_for(self, obj):
        return self.u if self.digest == f"fake-manifest-hash-of-{obj.uid}" else None


def test_state_cache_manager():
    manager = DesiredStateCacheManager()
    manager.store = {
        uid: MockStateCache(
            {"apiVersion": "v1", "kind": "FooKind", "metadata": {"name": f"manifest-of-{uid}"}},
            f"fake-manifest-hash-of-{uid}",
        )
        for uid in ("foo-uid", "bar-uid")
    }
    cached = [Obj("foo-object", "foo-uid", b"manifest-of-foo-uid"),
              Obj("bar-object", "bar-uid", b"manifest-of-bar-uid")]
    uncached = [Obj("baz-object", "baz-uid", b"manifest-of-baz-uid")]
    for mg in uncached:
        assert manager.load_or_new_for_managed(mg).get_state_for(mg) is None
    for mg in cached:
        state = manager.load_or_new_for_managed(mg).get_state_for(mg)
        assert state["metadata"]["name"] == f"manifest-of-{mg.uid}"
    assert len(manager.store) == 3
    for mg in cached:
        manager.remove(mg)
        assert manager.load_or_new_for_managed(mg).get_state_for(mg) is None


def test_get_valid_entry():
    obj = Obj("foo-object", "foo-uid", raw("manifest-of-foo", "foo"))
    cache = DesiredStateCache({}, example_hash("manifest-of-foo", "foo"))
    assert cache.get_state_for(obj) == {}


def test_get_stale_entry():
    obj = Obj("bar-object", "bar-uid", b"manifest-of-bar-uid")
    cache = DesiredStateCache({"apiVersion": "v1", "kind": "BarKind",
                               "metadata": {"name": "manifest-of-bar"}}, "some-non-matching-hash")
    assert cache.get_state_for(obj) is None


def test_get_empty_cache():
    obj = Obj("bar-object", "bar-uid", b"manifest-of-bar-uid")
    assert DesiredStateCache().get_state_for(obj) is None


def test_set_onto_empty_and_stale():
    obj = Obj("bar-object", "bar-uid", raw("manifest-of-bar", "barValue"))
    for cache in (DesiredStateCache(),
                  DesiredStateCache(extracted("manifest-of-stale", "some-stale-value"),
                                    "some-non-matching-hash")):
        cache.set_state_for(obj, extracted("manifest-of-bar", "barValue"))
        assert cache.digest == example_hash("manifest-of-bar", "barValue")
        assert cache.extracted == extracted("manifest-of-bar", "barValue")


def test_set_get():
    obj = Obj("foo-object", "foo-uid", raw("manifest-of-foo", "foo"))
    cache = DesiredStateCache()
    cache.set_state_for(obj, extracted("manifest-of-foo", "foo"))
    assert cache.get_state_for(obj) == extracted("manifest-of-foo", "foo")