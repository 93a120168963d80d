"""
End-to-end tests of the upload, browse, delete and export flow.
"""

import asyncio
import io
import zipfile

import pytest

from pfile.errors import DecryptionError
from pfile.services.catalog import PhotoCatalog
from pfile.services.codec import Codec
from pfile.services.local_store import LocalStore
from pfile.services.photo_store import PhotoStore
from tests.factories import make_image_bytes

SIZES = {"a.jpg": 2_000_000, "b.png": 500_000, "c.jpg": 1_000_000}


def write_photos(directory):
    paths = []
    for name, size in SIZES.items():
        format_type = "PNG" if name.endswith(".png") else "JPEG"
        path = directory / name
        path.write_bytes(make_image_bytes((640, 480), format_type, pad_to=size))
        paths.append(path)
    return paths


class TestPhotoStoreFlow:
    """Upload three photos, delete one and export the rest."""

    def test_full_flow(self, tmp_path):
        upload_dir = tmp_path / "upload"
        upload_dir.mkdir()
        paths = write_photos(upload_dir)
        data_dir = tmp_path / "data"
        store = PhotoStore(LocalStore(data_dir))

        summary = asyncio.run(store.add_files(paths))

        assert summary["successful"] == 3
        assert [p.name for p in store.list_photos()] == ["a.jpg", "b.png", "c.jpg"]
        assert store.catalog.total_size() == 3_500_000

        b_record = store.list_photos()[1]
        assert store.delete_photo(b_record.id) is True
        assert [p.name for p in store.list_photos()] == ["a.jpg", "c.jpg"]
        assert store.catalog.total_size() == 3_000_000

        result = store.export_all()
        with zipfile.ZipFile(io.BytesIO(result.archive)) as archive:
            assert sorted(archive.namelist()) == ["a.jpg", "c.jpg"]
            for name in ["a.jpg", "c.jpg"]:
                assert archive.read(name) == (upload_dir / name).read_bytes()

        # Everything survives a restart
        reopened = PhotoStore(LocalStore(data_dir))
        assert [p.name for p in reopened.list_photos()] == ["a.jpg", "c.jpg"]
        assert reopened.read_photo(reopened.list_photos()[0].id) == (upload_dir / "a.jpg").read_bytes()

    def test_stored_catalog_never_contains_plaintext(self, tmp_path):
        upload_dir = tmp_path / "upload"
        upload_dir.mkdir()
        marker = b"PFILE-PLAINTEXT-MARKER"
        image_path = upload_dir / "secret.png"
        image_path.write_bytes(make_image_bytes(format_type="PNG") + marker)
        data_dir = tmp_path / "data"

        asyncio.run(PhotoStore(LocalStore(data_dir)).add_files([image_path]))

        for stored_file in data_dir.iterdir():
            assert marker not in stored_file.read_bytes()

    def test_other_key_cannot_read_catalog(self, tmp_path):
        upload_dir = tmp_path / "upload"
        upload_dir.mkdir()
        paths = write_photos(upload_dir)
        store = PhotoStore(LocalStore(tmp_path / "data"))
        asyncio.run(store.add_files(paths[:1]))
        other = PhotoStore(LocalStore(tmp_path / "other"))

        record = PhotoCatalog(store.store).list()[0]

        assert Codec().decrypt(record.ciphertext, store.key_manager.active_key()) == paths[0].read_bytes()
        with pytest.raises(DecryptionError):
            Codec().decrypt(record.ciphertext, other.key_manager.active_key())
