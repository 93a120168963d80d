"""
Unit tests for PhotoCatalog.
"""

import json
from unittest.mock import patch

import pytest

from pfile.errors import PersistenceError, ValidationError
from pfile.services.catalog import PhotoCatalog
from pfile.services.local_store import PHOTOS_KEY, LocalStore
from tests.factories import make_record


class TestPhotoCatalog:
    """Test cases for PhotoCatalog."""

    def test_empty_catalog(self, local_store):
        catalog = PhotoCatalog(local_store)

        assert catalog.list() == []
        assert catalog.total_size() == 0
        assert len(catalog) == 0

    def test_add_assigns_missing_id(self, local_store):
        catalog = PhotoCatalog(local_store)

        stored = catalog.add(make_record(name="a.jpg"))

        assert stored.id
        assert catalog.find(stored.id) == stored

    def test_add_keeps_given_id(self, local_store):
        catalog = PhotoCatalog(local_store)

        stored = catalog.add(make_record(photo_id="fixed-id"))

        assert stored.id == "fixed-id"
        assert "fixed-id" in catalog

    def test_add_rejects_duplicate_id(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record(photo_id="dup"))

        with pytest.raises(ValidationError):
            catalog.add(make_record(photo_id="dup", name="other.jpg"))

        assert len(catalog) == 1

    def test_add_is_durable(self, local_store):
        """A fresh catalog over the same store sees the added record."""
        catalog = PhotoCatalog(local_store)
        stored = catalog.add(make_record(name="a.jpg", size=100, ciphertext="c2VjcmV0"))

        reloaded = PhotoCatalog(LocalStore(local_store.data_dir)).find(stored.id)

        assert reloaded is not None
        assert (reloaded.id, reloaded.name, reloaded.size, reloaded.ciphertext) == (
            stored.id,
            "a.jpg",
            100,
            "c2VjcmV0",
        )

    def test_persisted_blob_is_json_array(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record(photo_id="1", name="a.jpg"))

        blob = json.loads(local_store.get_item(PHOTOS_KEY))

        assert isinstance(blob, list)
        assert set(blob[0]) == {"id", "name", "size", "type", "encryptedData", "uploadDate", "thumbnail"}

    def test_list_keeps_insertion_order(self, local_store):
        catalog = PhotoCatalog(local_store)
        for name in ["c.jpg", "a.jpg", "b.jpg"]:
            catalog.add(make_record(name=name))

        assert [r.name for r in catalog.list()] == ["c.jpg", "a.jpg", "b.jpg"]
        assert [r.name for r in PhotoCatalog(local_store).list()] == ["c.jpg", "a.jpg", "b.jpg"]

    def test_list_returns_a_copy(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record())

        catalog.list().clear()

        assert len(catalog) == 1

    def test_remove_twice(self, local_store):
        catalog = PhotoCatalog(local_store)
        stored = catalog.add(make_record())

        assert catalog.remove(stored.id) is True
        assert catalog.find(stored.id) is None
        assert catalog.remove(stored.id) is False
        assert PhotoCatalog(local_store).find(stored.id) is None

    def test_remove_unknown_id(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record())

        assert catalog.remove("missing") is False
        assert len(catalog) == 1

    def test_filter_by_name(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record(name="vacation.jpg"))
        catalog.add(make_record(name="beach.png"))
        catalog.add(make_record(name="VACATION-2.JPG"))

        assert [r.name for r in catalog.filter_by_name("vac")] == ["vacation.jpg", "VACATION-2.JPG"]
        assert [r.name for r in catalog.filter_by_name("BEACH")] == ["beach.png"]
        assert catalog.filter_by_name("zzz") == []

    def test_filter_by_empty_term_returns_all_in_order(self, local_store):
        catalog = PhotoCatalog(local_store)
        for name in ["b.jpg", "a.jpg"]:
            catalog.add(make_record(name=name))

        assert [r.name for r in catalog.filter_by_name("")] == ["b.jpg", "a.jpg"]
        assert len(catalog) == 2

    def test_total_size_tracks_adds_and_removes(self, local_store):
        catalog = PhotoCatalog(local_store)
        first = catalog.add(make_record(size=100))
        catalog.add(make_record(size=250))

        assert catalog.total_size() == 350
        catalog.remove(first.id)
        assert catalog.total_size() == 250
        assert catalog.total_size() == sum(r.size for r in catalog.list())

    def test_failed_add_leaves_state_unchanged(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record(photo_id="1", size=10))

        with patch.object(local_store, "set_item", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                catalog.add(make_record(photo_id="2", size=20))

        assert [r.id for r in catalog.list()] == ["1"]
        assert catalog.total_size() == 10
        assert [r.id for r in PhotoCatalog(local_store).list()] == ["1"]

    def test_failed_remove_leaves_state_unchanged(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record(photo_id="1"))

        with patch.object(local_store, "set_item", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                catalog.remove("1")

        assert catalog.find("1") is not None
        assert PhotoCatalog(local_store).find("1") is not None

    @pytest.mark.parametrize("blob", ["not json", '{"id": 1}', '[{"name": "missing fields"}]'])
    def test_corrupt_blob_is_reported_and_kept(self, local_store, blob):
        local_store.set_item(PHOTOS_KEY, blob)

        with pytest.raises(PersistenceError) as exc_info:
            PhotoCatalog(local_store)

        assert exc_info.value.code == "catalog_corrupt"
        assert local_store.get_item(PHOTOS_KEY) == blob

    def test_reload_picks_up_external_changes(self, local_store):
        catalog = PhotoCatalog(local_store)
        other = PhotoCatalog(local_store)
        other.add(make_record(photo_id="x"))

        catalog.reload()

        assert catalog.find("x") is not None

    def test_iteration(self, local_store):
        catalog = PhotoCatalog(local_store)
        catalog.add(make_record(photo_id="1"))
        catalog.add(make_record(photo_id="2"))

        assert [r.id for r in catalog] == ["1", "2"]
