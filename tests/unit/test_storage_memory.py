"""Unit tests for demoday_kv.storage.memory.InMemoryBackend."""
from __future__ import annotations

import pytest

from demoday_kv.errors import StorageQuotaExceededError
from demoday_kv.shared import SharedDocumentStore
from demoday_kv.storage.memory import InMemoryBackend


@pytest.fixture()
def backend() -> InMemoryBackend:
    return InMemoryBackend()


# ---------------------------------------------------------------------------
# save / load
# ---------------------------------------------------------------------------


class TestInMemoryBackendSaveLoad:
    def test_save_and_load(self, backend: InMemoryBackend) -> None:
        backend.save("k1", '{"key": "value"}')
        assert backend.load("k1") == '{"key": "value"}'

    def test_save_overwrites_existing(self, backend: InMemoryBackend) -> None:
        backend.save("k1", "original")
        backend.save("k1", "updated")
        assert backend.load("k1") == "updated"

    def test_load_missing_raises_key_error(self, backend: InMemoryBackend) -> None:
        with pytest.raises(KeyError, match="ghost"):
            backend.load("ghost")

    def test_get_missing_returns_none(self, backend: InMemoryBackend) -> None:
        assert backend.get("ghost") is None

    def test_get_present_returns_value(self, backend: InMemoryBackend) -> None:
        backend.save("k1", "v")
        assert backend.get("k1") == "v"


# ---------------------------------------------------------------------------
# exists / list / delete
# ---------------------------------------------------------------------------


class TestInMemoryBackendKeys:
    def test_exists_tracks_lifecycle(self, backend: InMemoryBackend) -> None:
        assert backend.exists("k1") is False
        backend.save("k1", "payload")
        assert backend.exists("k1") is True
        backend.delete("k1")
        assert backend.exists("k1") is False

    def test_list_in_insertion_order(self, backend: InMemoryBackend) -> None:
        backend.save("alpha", "a")
        backend.save("beta", "b")
        assert backend.list() == ["alpha", "beta"]

    def test_delete_missing_raises_key_error(self, backend: InMemoryBackend) -> None:
        with pytest.raises(KeyError):
            backend.delete("ghost")


# ---------------------------------------------------------------------------
# Extras
# ---------------------------------------------------------------------------


class TestInMemoryBackendExtras:
    def test_initial_data_is_copied(self) -> None:
        seed = {"a": "1"}
        backend = InMemoryBackend(initial_data=seed)
        backend.save("b", "2")
        assert "b" not in seed

    def test_len_counts_entries(self, backend: InMemoryBackend) -> None:
        backend.save("a", "1")
        backend.save("b", "2")
        assert len(backend) == 2
        backend.delete("a")
        assert len(backend) == 1

    def test_repr_shows_entry_count(self, backend: InMemoryBackend) -> None:
        backend.save("a", "1")
        assert "entries=1" in repr(backend)


# ---------------------------------------------------------------------------
# Quota
# ---------------------------------------------------------------------------


class TestInMemoryBackendQuota:
    def test_used_bytes_counts_keys_and_values(self, backend: InMemoryBackend) -> None:
        backend.save("judges", "[]")
        assert backend.used_bytes == 16

    def test_used_bytes_tracks_overwrite_and_delete(self, backend: InMemoryBackend) -> None:
        backend.save("k", "abc")
        backend.save("k", "a")
        assert backend.used_bytes == 4
        backend.delete("k")
        assert backend.used_bytes == 0

    def test_initial_data_counts_against_quota(self) -> None:
        backend = InMemoryBackend(initial_data={"k": "v"}, quota_bytes=4)
        assert backend.used_bytes == 4
        with pytest.raises(StorageQuotaExceededError):
            backend.save("x", "")

    def test_write_over_quota_keeps_previous_value(self) -> None:
        backend = InMemoryBackend(quota_bytes=8)
        backend.save("k", "abc")
        with pytest.raises(StorageQuotaExceededError, match="quota is 8"):
            backend.save("k", "abcd")
        assert backend.load("k") == "abc"
        assert backend.used_bytes == 8

    def test_quota_error_is_an_os_error(self) -> None:
        backend = InMemoryBackend(quota_bytes=0)
        with pytest.raises(OSError):
            backend.save("k", "v")

    def test_shrinking_write_fits_when_full(self) -> None:
        backend = InMemoryBackend(quota_bytes=8)
        backend.save("k", "abc")
        backend.save("k", "")
        assert backend.used_bytes == 2

    def test_negative_quota_rejected(self) -> None:
        with pytest.raises(ValueError):
            InMemoryBackend(quota_bytes=-1)

    def test_full_quota_drops_shared_document_write(self) -> None:
        backend = InMemoryBackend(quota_bytes=64)
        store = SharedDocumentStore(backend, "doc")
        store.set("a", 1)
        store.set("big", "x" * 100)
        assert store.read_document() == {"a": 1}
