"""
Photo catalog for pfile.

The catalog is the ordered collection of PhotoRecords. It is persisted as a
single JSON array under one LocalStore key, loaded wholesale at startup and
rewritten wholesale after every mutation.

The in-memory list is authoritative and the stored blob is its durable
mirror. Each mutation builds the next list, writes it, and only then swaps
it in, so a failed write leaves both the in-memory state and the stored blob
exactly as they were before the call and surfaces PersistenceError.
"""

import json
import time
from collections.abc import Iterator

from pfile.errors import PersistenceError, ValidationError
from ..logging_config import get_logger, log_performance, log_user_action
from ..models.photo import PhotoRecord, generate_photo_id
from .local_store import PHOTOS_KEY, LocalStore

logger = get_logger(__name__)


class PhotoCatalog:
    """
    Persisted, insertion-ordered collection of photo records.

    Attributes:
        store: LocalStore holding the serialized catalog
        storage_key: Namespace key of the catalog blob
    """

    def __init__(self, store: LocalStore, storage_key: str = PHOTOS_KEY) -> None:
        self.store = store
        self.storage_key = storage_key
        self._records: list[PhotoRecord] = []
        self.reload()

    def reload(self) -> None:
        """
        Replace the in-memory catalog with the stored blob.

        Raises:
            PersistenceError: If the blob cannot be read or is not a valid catalog
        """
        blob = self.store.get_item(self.storage_key)
        if blob is None or not blob.strip():
            self._records = []
            logger.debug("catalog_empty", storage_key=self.storage_key)
            return

        try:
            entries = json.loads(blob)
            if not isinstance(entries, list):
                raise ValueError("catalog blob is not a JSON array")
            records = [PhotoRecord.from_dict(entry) for entry in entries]
        except (ValueError, KeyError, TypeError) as e:
            # Leave the blob untouched so it can be repaired by hand
            raise PersistenceError(
                f"Stored catalog is corrupt: {e}",
                code="catalog_corrupt",
                user_message="Your photo library could not be loaded from local storage.",
                details={"storage_key": self.storage_key},
                original_exception=e,
            ) from e

        self._records = records
        logger.info("catalog_loaded", photos_count=len(records), total_size=self.total_size())

    def _persist(self, records: list[PhotoRecord]) -> None:
        start_time = time.perf_counter()
        blob = json.dumps([record.to_dict() for record in records])
        self.store.set_item(self.storage_key, blob)
        log_performance(
            "catalog_persisted", time.perf_counter() - start_time, photos_count=len(records), blob_size=len(blob)
        )

    def add(self, record: PhotoRecord) -> PhotoRecord:
        """
        Append a record and persist the full catalog.

        A record without an id is given a fresh one. After return the record
        is durable; a reload of the catalog includes it.

        Args:
            record: Record to store

        Returns:
            PhotoRecord: The stored record (with its assigned id)

        Raises:
            ValidationError: If the id is already present
            PersistenceError: If the catalog could not be written; nothing is added
        """
        if not record.id:
            record = record.with_id(self._unique_id())
        elif self.find(record.id) is not None:
            raise ValidationError(
                f"Photo id '{record.id}' already exists in the catalog",
                code="duplicate_photo_id",
                details={"photo_id": record.id},
            )

        self._persist([*self._records, record])
        self._records.append(record)

        log_user_action("photo_added", photo_id=record.id, name=record.name, size=record.size)
        return record

    def _unique_id(self) -> str:
        photo_id = generate_photo_id()
        while self.find(photo_id) is not None:
            photo_id = generate_photo_id()
        return photo_id

    def remove(self, photo_id: str) -> bool:
        """
        Remove the record with `photo_id` and persist the catalog.

        Returns:
            True if a record was removed, False if the id is unknown

        Raises:
            PersistenceError: If the catalog could not be written; nothing is removed
        """
        remaining = [record for record in self._records if record.id != photo_id]
        if len(remaining) == len(self._records):
            logger.warning("photo_not_found_for_removal", photo_id=photo_id)
            return False

        self._persist(remaining)
        self._records = remaining

        log_user_action("photo_removed", photo_id=photo_id)
        return True

    def find(self, photo_id: str) -> PhotoRecord | None:
        """Look up a record by id."""
        for record in self._records:
            if record.id == photo_id:
                return record
        return None

    def filter_by_name(self, term: str) -> list[PhotoRecord]:
        """
        Case-insensitive substring search on record names.

        An empty term returns every record; order follows insertion.
        """
        needle = (term or "").lower()
        if not needle:
            return self.list()
        return [record for record in self._records if needle in record.name.lower()]

    def total_size(self) -> int:
        """Sum of original file sizes across all records, in bytes."""
        return sum(record.size for record in self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PhotoRecord]:
        return iter(list(self._records))

    def __contains__(self, photo_id: object) -> bool:
        return isinstance(photo_id, str) and self.find(photo_id) is not None

    # Defined last: the method name shadows the builtin inside the class body
    def list(self) -> list[PhotoRecord]:
        """Get all records in insertion order (a copy of the catalog)."""
        return list(self._records)
