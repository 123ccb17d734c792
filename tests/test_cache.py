"""Tests for the registry-indexed cache."""

import json

import pytest

from regcache.cache import DEFAULT_PREFIX, DEFAULT_REGISTRY, RegistryCache
from regcache.errors import (
    ConfigError,
    CorruptDirectory,
    EnumerationUnsupported,
    IdentifierCollision,
    InvalidKeyKind,
    InvalidRegistryName,
    SelectionConsumed,
    StorageFull,
)
from regcache.stores import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store):
    return RegistryCache(store)


def _value_keys(store):
    return [k for k in store.keys() if k.startswith(DEFAULT_PREFIX)]


# --- Round trips ---


def test_string_round_trip(cache):
    assert cache.set("greeting", "hello") is True
    assert cache.get("greeting") == "hello"


def test_number_round_trip(cache):
    cache.set("count", 5)
    assert cache.get("count") == "5"
    assert cache.get("count", as_json=True) == 5


def test_structure_round_trip(cache):
    value = {"name": "ann", "tags": ["a", "b"], "age": 31, "admin": False}
    cache.set("user", value)
    assert cache.get("user", as_json=True) == value


def test_none_is_stored_as_null(cache, store):
    assert cache.set("nothing", None) is True
    assert cache.get("nothing") == "null"
    assert cache.get("nothing", as_json=True) is None


def test_example_scenario(cache):
    cache.set("user", {"name": "ann"})
    assert cache.get("user", True) == {"name": "ann"}
    assert cache.get_all(True) == {"user": {"name": "ann"}}
    assert cache.clear() is True
    assert cache.get_all(True) is False


# --- Store layout ---


def test_store_layout(cache, store):
    cache.set("user", "ann")
    directory = json.loads(store.get(DEFAULT_REGISTRY))
    assert list(directory) == ["user"]
    assert store.get(DEFAULT_PREFIX + directory["user"]) == "ann"
    assert "user" not in store


# --- Misses ---


def test_misses_on_fresh_store(cache, store):
    assert cache.get("nope") is False
    assert cache.unset("nope") is False
    assert cache.get_all() is False
    assert cache.clear() is False
    assert len(store) == 0


def test_get_miss_in_used_registry(cache):
    cache.set("a", "1")
    assert cache.get("b") is False
    assert cache.unset("b") is False


def test_missing_value_is_not_stored(cache, store):
    assert cache.set("key") is False
    assert len(store) == 0


def test_empty_key_is_not_stored(cache, store):
    assert cache.set("", "value") is False
    assert len(store) == 0


# --- Updates and deletion ---


def test_update_reuses_identifier(cache, store):
    cache.set("k", "first")
    entries_before = len(store)
    identifier = cache.load_directory(DEFAULT_REGISTRY)["k"]

    cache.set("K", "second")
    assert len(store) == entries_before
    assert cache.load_directory(DEFAULT_REGISTRY)["k"] == identifier
    assert cache.get("k") == "second"


def test_unset_removes_both_layers(cache, store):
    cache.set("a", "1")
    cache.set("b", "2")
    identifier = cache.load_directory(DEFAULT_REGISTRY)["a"]

    assert cache.unset("a") is True
    assert store.get(DEFAULT_PREFIX + identifier) is None
    assert "a" not in cache.load_directory(DEFAULT_REGISTRY)
    assert cache.get("b") == "2"


def test_unset_last_key_removes_directory(cache, store):
    cache.set("only", "1")
    cache.unset("only")
    assert store.get(DEFAULT_REGISTRY) is None
    assert len(store) == 0


def test_clear_removes_registry_only(cache, store):
    cache.set("a", "1")
    cache.set("b", "2")
    cache.registry("other").set("a", "keep")

    assert cache.clear() is True
    assert cache.get_all() is False
    assert cache.registry("other").get("a") == "keep"
    assert len(_value_keys(store)) == 1


def test_has(cache):
    cache.set("a", "1")
    assert cache.has("A")
    assert not cache.has("b")
    assert not cache.registry("other").has("a")


# --- Registries ---


def test_registry_isolation(cache):
    cache.registry("A").set("k", "v1")
    cache.registry("B").set("k", "v2")
    assert cache.registry("a").get("k") == "v1"
    assert cache.registry("b").get("k") == "v2"
    assert cache.get("k") is False


def test_selection_applies_to_one_call(cache):
    assert cache.registry("A").set("x", 1) is True
    assert cache.get("x") is False
    assert cache.registry("a").get("x", True) == 1


def test_selection_cannot_be_reused(cache):
    selection = cache.registry("A")
    selection.set("x", 1)
    with pytest.raises(SelectionConsumed):
        selection.get("x")


def test_reselecting_replaces_pending_choice(cache):
    cache.registry("a").registry("b").set("k", "v")
    assert cache.registry("a").get("k") is False
    assert cache.registry("b").get("k") == "v"


def test_short_alias(cache):
    cache.r("sessions").set("token", "abc")
    assert cache.r("SESSIONS").get("token") == "abc"


def test_empty_registry_name_selects_default(cache):
    cache.registry("").set("k", "v")
    cache.registry(None).set("j", "w")
    assert cache.get_all() == {"k": "v", "j": "w"}


def test_explicit_registry_keyword(cache):
    cache.set("k", "v", registry="Users")
    assert cache.registry("users").get("k") == "v"
    assert cache.get("k", registry="USERS") == "v"


def test_registry_name_may_not_use_value_prefix(cache):
    with pytest.raises(InvalidRegistryName):
        cache.registry(DEFAULT_PREFIX + "abc")


def test_get_all_lists_every_key(cache):
    cache.set("one", 1)
    cache.set("Two", {"n": 2})
    assert cache.get_all(True) == {"one": 1, "two": {"n": 2}}
    assert cache.get_all() == {"one": "1", "two": '{"n": 2}'}


def test_registries_lists_directories(cache, store):
    cache.set("a", "1")
    cache.registry("users").set("b", "2")
    store.set("foreign", "plain text")
    store.set("foreign-json", '{"n": 1}')
    assert cache.registries() == [DEFAULT_REGISTRY, "users"]


class _NoEnumeration:
    def __init__(self):
        self._data = {}

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def remove(self, key):
        self._data.pop(key, None)


def test_registries_needs_enumeration():
    cache = RegistryCache(_NoEnumeration())
    cache.set("a", "1")
    assert cache.get("a") == "1"
    with pytest.raises(EnumerationUnsupported):
        cache.registries()


def test_custom_prefix_and_default_registry(store):
    cache = RegistryCache(store, prefix="v:", default_registry="App")
    cache.set("k", "v")
    directory = json.loads(store.get("app"))
    assert store.get("v:" + directory["k"]) == "v"


# --- Errors ---


def test_invalid_key_kind_raises_before_store_access(cache, store):
    with pytest.raises(InvalidKeyKind):
        cache.set({}, 1)
    with pytest.raises(InvalidKeyKind):
        cache.get(None)
    with pytest.raises(InvalidKeyKind):
        cache.unset([1])
    assert len(store) == 0


def test_numeric_keys(cache):
    cache.set(7, "seven")
    assert cache.get("7") == "seven"
    assert cache.get(7.0) == "seven"


def test_key_case_insensitivity(cache):
    cache.set("Key", 1)
    assert cache.get("key") == "1"
    assert cache.get("KEY", True) == 1


def test_mismatched_parse_flag_raises(cache):
    cache.set("s", "hello")
    with pytest.raises(json.JSONDecodeError):
        cache.get("s", as_json=True)


def test_corrupt_directory_raises(cache, store):
    store.set(DEFAULT_REGISTRY, "{not json")
    with pytest.raises(CorruptDirectory) as excinfo:
        cache.get("a")
    assert excinfo.value.registry == DEFAULT_REGISTRY
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_directory_of_wrong_shape_raises(cache, store):
    store.set(DEFAULT_REGISTRY, "[1, 2]")
    with pytest.raises(CorruptDirectory):
        cache.set("a", "1")


def test_storage_full_propagates():
    store = MemoryStore(quota=100)
    cache = RegistryCache(store)
    with pytest.raises(StorageFull):
        cache.set("big", "x" * 200)
    assert len(store) == 0


def test_orphaned_value_is_a_miss(cache, store):
    cache.set("a", "1")
    cache.set("b", "2")
    identifier = cache.load_directory(DEFAULT_REGISTRY)["a"]
    store.remove(DEFAULT_PREFIX + identifier)

    assert cache.get("a") is False
    assert cache.get_all() == {"b": "2"}


# --- Identifier minting ---


def test_colliding_identifier_is_regenerated(cache, monkeypatch):
    ids = iter(["dup_1", "dup_1", "fresh_2"])
    monkeypatch.setattr("regcache.cache.new_identifier", lambda: next(ids))

    cache.set("a", "1")
    cache.set("b", "2")
    assert cache.load_directory(DEFAULT_REGISTRY) == {"a": "dup_1", "b": "fresh_2"}


def test_identifier_in_use_by_store_is_skipped(cache, store, monkeypatch):
    store.set(DEFAULT_PREFIX + "taken_1", "someone else")
    ids = iter(["taken_1", "free_2"])
    monkeypatch.setattr("regcache.cache.new_identifier", lambda: next(ids))

    cache.registry("other").set("a", "1")
    assert store.get(DEFAULT_PREFIX + "taken_1") == "someone else"
    assert cache.registry("other").get("a") == "1"


def test_identifier_collision_gives_up(cache, monkeypatch):
    monkeypatch.setattr("regcache.cache.new_identifier", lambda: "same_1")
    cache.set("a", "1")
    with pytest.raises(IdentifierCollision):
        cache.set("b", "2")
    assert cache.get("a") == "1"


def test_numeric_registry_name(cache):
    cache.registry(2024).set("k", "v")
    assert cache.get("k", registry="2024") == "v"


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"prefix": ""}, ConfigError),
        ({"default_registry": ""}, ConfigError),
        ({"default_registry": "_CACHE_main"}, InvalidRegistryName),
        ({"prefix": "g", "default_registry": "global"}, InvalidRegistryName),
    ],
)
def test_constructor_rejects_overlapping_namespaces(store, kwargs, error):
    with pytest.raises(error):
        RegistryCache(store, **kwargs)
