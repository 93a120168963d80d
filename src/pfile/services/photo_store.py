"""
Photo store: the session context object for pfile.

PhotoStore wires the key manager, codec, thumbnail deriver, catalog,
exporter and preferences around one LocalStore, and exposes the operations
the UI and CLI use. Nothing here is a module-level singleton; callers build
a PhotoStore (see create_photo_store) and pass it where it is needed.

Upload pipeline, one file at a time:
    read bytes -> derive thumbnail -> encrypt -> catalog add
File reads and thumbnail derivation run in worker threads and are awaited;
encryption and the catalog read-modify-write never straddle an await.
"""

import asyncio
import mimetypes
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from pfile.errors import (
    DecryptionError,
    KeyUnavailableError,
    PFileError,
    UnsupportedImageError,
    ValidationError,
)
from ..config import get_data_dir, get_max_file_size, get_storage_capacity
from ..logging_config import get_logger, log_performance
from ..models.key import KeyBundle
from ..models.photo import PhotoRecord, StorageUsage
from .catalog import PhotoCatalog
from .codec import Codec, get_codec
from .exporter import ArchiveExporter, ExportResult
from .key_manager import KeyManager
from .local_store import LocalStore
from .preferences import Preferences
from .thumbnail import ThumbnailDeriver

logger = get_logger(__name__)

ProgressCallback = Callable[..., None]


def guess_mime_type(filename: str) -> str:
    """Media type from the file name, 'application/octet-stream' when unknown."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"


def is_image_file(filename: str) -> bool:
    """True when the file name maps to an image/* media type."""
    return guess_mime_type(filename).startswith("image/")


async def read_file(path: str | Path) -> bytes:
    """Read a file's bytes without blocking the event loop."""
    return await asyncio.to_thread(Path(path).read_bytes)


class PhotoStore:
    """Encrypted photo store for one user and one data directory."""

    def __init__(
        self,
        store: LocalStore,
        codec: Codec | None = None,
        deriver: ThumbnailDeriver | None = None,
        capacity_bytes: int | None = None,
        max_file_size: int | None = None,
    ) -> None:
        """
        Initialize the photo store.

        Args:
            store: Durable storage for catalog, key and preferences
            codec: Codec instance (defaults to the shared AES-256 codec)
            deriver: Thumbnail deriver (defaults to configured size and quality)
            capacity_bytes: Total capacity for usage display (STORAGE_CAPACITY_BYTES)
            max_file_size: Largest accepted upload in bytes (MAX_FILE_SIZE)

        Raises:
            PersistenceError: If the stored catalog cannot be loaded
        """
        self.store = store
        self.codec = codec or get_codec()
        self.deriver = deriver or ThumbnailDeriver()
        self.key_manager = KeyManager(store)
        self.preferences = Preferences(store)
        self.catalog = PhotoCatalog(store)
        self.exporter = ArchiveExporter(self.codec)
        self.capacity_bytes = capacity_bytes or get_storage_capacity()
        self.max_file_size = max_file_size or get_max_file_size()

        # Generate and persist the key up front rather than on first upload
        self.key_manager.active_key()

        logger.info(
            "photo_store_initialized",
            data_dir=str(store.data_dir),
            photos_count=len(self.catalog),
            ephemeral_key=self.key_manager.is_ephemeral,
        )

    # Upload

    async def add_photo(self, name: str, data: bytes, mime_type: str | None = None) -> PhotoRecord:
        """
        Encrypt one image and add it to the catalog.

        Args:
            name: Original file name
            data: Original file bytes
            mime_type: Media type (guessed from the name when omitted)

        Returns:
            PhotoRecord: The stored record

        Raises:
            UnsupportedImageError: If the file is not an image or cannot be decoded
            ValidationError: If the file exceeds the size limit
            PersistenceError: If the catalog could not be written
        """
        mime_type = mime_type or guess_mime_type(name)
        if not mime_type.startswith("image/"):
            raise UnsupportedImageError(
                f"File '{name}' is not an image ({mime_type})",
                code="not_an_image",
                details={"filename": name, "mime_type": mime_type},
            )
        if len(data) > self.max_file_size:
            raise ValidationError(
                f"File '{name}' is too large ({len(data)} bytes). Maximum size: {self.max_file_size} bytes",
                code="file_too_large",
                user_message=f"'{name}' is too large to store.",
                details={"filename": name, "file_size": len(data), "max_size": self.max_file_size},
            )

        thumbnail = await asyncio.to_thread(self.deriver.derive, data, name)

        ciphertext = self.codec.encrypt(
            data, self.key_manager.active_key(), method=self.preferences.get_encryption_method()
        )
        record = PhotoRecord.create_new(
            name=name,
            size=len(data),
            mime_type=mime_type,
            ciphertext=ciphertext,
            thumbnail=thumbnail,
        )
        return self.catalog.add(record)

    async def add_file(self, path: str | Path) -> PhotoRecord:
        """Read a file from disk and store it under its base name."""
        path = Path(path)
        if not is_image_file(path.name):
            raise UnsupportedImageError(
                f"File '{path.name}' is not an image",
                code="not_an_image",
                details={"filename": path.name, "mime_type": guess_mime_type(path.name)},
            )
        data = await read_file(path)
        return await self.add_photo(path.name, data)

    async def add_files(
        self, paths: Iterable[str | Path], progress_callback: ProgressCallback | None = None
    ) -> dict[str, Any]:
        """
        Store a batch of files strictly one after another.

        Non-image files are filtered out before processing. A failing file is
        reported in the results and the batch continues with the next one.

        Args:
            paths: Files to upload
            progress_callback: Called with current_file, completed, total and stage keywords

        Returns:
            dict: total, successful, failed, skipped (non-image names), results (per file) and message
        """
        start_time = time.perf_counter()
        paths = [Path(p) for p in paths]
        image_paths = [p for p in paths if is_image_file(p.name)]
        skipped = [p.name for p in paths if not is_image_file(p.name)]

        summary: dict[str, Any] = {
            "total": len(image_paths),
            "successful": 0,
            "failed": 0,
            "skipped": skipped,
            "results": [],
        }

        if not image_paths:
            summary["message"] = "Please select image files only."
            logger.warning("batch_upload_no_images", skipped_count=len(skipped))
            return summary

        for index, path in enumerate(image_paths):
            if progress_callback:
                progress_callback(
                    current_file=path.name, completed=index, total=len(image_paths), stage="processing"
                )

            try:
                record = await self.add_file(path)
                result = {"success": True, "filename": path.name, "photo_id": record.id}
                summary["successful"] += 1
            except (PFileError, OSError) as e:
                logger.error("upload_processing_failed", filename=path.name, error=str(e))
                result = {
                    "success": False,
                    "filename": path.name,
                    "error": getattr(e, "user_message", str(e)),
                }
                summary["failed"] += 1
            summary["results"].append(result)

            if progress_callback:
                progress_callback(
                    current_file=path.name,
                    completed=index + 1,
                    total=len(image_paths),
                    stage="completed" if result["success"] else "failed",
                )

        summary["message"] = f"{summary['successful']} photo(s) uploaded successfully!"
        log_performance(
            "batch_upload",
            time.perf_counter() - start_time,
            total=summary["total"],
            successful=summary["successful"],
            failed=summary["failed"],
        )
        return summary

    # Reading

    def get_photo(self, photo_id: str) -> PhotoRecord:
        """
        Get a record by id.

        Raises:
            ValidationError: If no record has this id
        """
        record = self.catalog.find(photo_id)
        if record is None:
            raise ValidationError(
                f"Photo '{photo_id}' not found",
                code="photo_not_found",
                user_message="The photo no longer exists.",
                details={"photo_id": photo_id},
            )
        return record

    def read_photo(self, photo_id: str) -> bytes:
        """
        Decrypt a photo's original bytes.

        Raises:
            ValidationError: If no record has this id
            DecryptionError: If the active key cannot decrypt the record
            KeyUnavailableError: If decryption failed while running on a session-only key
        """
        record = self.get_photo(photo_id)
        try:
            return self.codec.decrypt(record.ciphertext, self.key_manager.active_key())
        except DecryptionError as e:
            if self.key_manager.is_ephemeral:
                raise KeyUnavailableError(
                    f"Photo '{record.name}' was stored under a key that is not available in this session",
                    details={"photo_id": photo_id},
                    original_exception=e,
                ) from e
            raise

    def download_photo(self, photo_id: str) -> tuple[str, str, bytes]:
        """Get (name, mime_type, original bytes) for saving a photo."""
        record = self.get_photo(photo_id)
        return record.name, record.mime_type, self.read_photo(photo_id)

    def list_photos(self) -> list[PhotoRecord]:
        return self.catalog.list()

    def search(self, term: str) -> list[PhotoRecord]:
        return self.catalog.filter_by_name(term)

    def delete_photo(self, photo_id: str) -> bool:
        """Delete a photo; returns False if the id is unknown."""
        return self.catalog.remove(photo_id)

    def storage_usage(self) -> StorageUsage:
        return StorageUsage(used_bytes=self.catalog.total_size(), capacity_bytes=self.capacity_bytes)

    # Export and keys

    def export_all(self) -> ExportResult:
        """Zip every decryptable original; see ArchiveExporter.export_all."""
        return self.exporter.export_all(self.catalog, self.key_manager.active_key())

    def key_bundle(self) -> KeyBundle:
        """Current key bundle for display; does not record an export."""
        return self.key_manager.key_bundle(method=self.preferences.get_encryption_method())

    def export_key(self) -> KeyBundle:
        return self.key_manager.export_key(method=self.preferences.get_encryption_method())

    def import_key(self, bundle: KeyBundle | str | bytes, force: bool = False) -> KeyBundle:
        """
        Restore an exported key as the active key.

        Unless `force` is set, the key must decrypt the first catalog record
        before it replaces the current one.

        Raises:
            ValidationError: If the bundle is malformed or does not match the catalog
            PersistenceError: If the key could not be stored
        """
        bundle = self.key_manager.load_bundle(bundle)
        records = self.catalog.list()
        if records and not force:
            try:
                self.codec.decrypt(records[0].ciphertext, bundle.key)
            except DecryptionError as e:
                raise ValidationError(
                    "Imported key does not decrypt the stored photos",
                    code="key_does_not_match",
                    user_message="This key does not match your stored photos.",
                    details={"photo_id": records[0].id},
                    original_exception=e,
                ) from e

        self.key_manager.import_key(bundle)
        self.preferences.set_encryption_method(bundle.method)
        return bundle

    def set_encryption_method(self, method: str) -> str:
        """Choose the method for new uploads; existing photos keep decrypting."""
        return self.preferences.set_encryption_method(method)


def create_photo_store(data_dir: str | Path | None = None) -> PhotoStore:
    """
    Build a PhotoStore over `data_dir` (PFILE_DATA_DIR when omitted).
    """
    return PhotoStore(LocalStore(data_dir or get_data_dir()))
