"""Archive export of decrypted originals."""

import io
import time
import zipfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import PurePath

from pfile.errors import DecryptionError, ValidationError
from ..logging_config import get_logger, log_performance, log_user_action
from .catalog import PhotoCatalog
from .codec import Codec

logger = get_logger(__name__)


@dataclass
class ExportResult:
    """Archive bytes plus a summary of what went into it."""

    archive: bytes
    filename: str
    exported_count: int
    failed_count: int = 0
    failed_ids: list[str] = field(default_factory=list)
    entry_names: list[str] = field(default_factory=list)


def archive_filename(today: date | None = None) -> str:
    """Download name for an export, e.g. 'pfile-photos-2024-05-01.zip'."""
    return f"pfile-photos-{(today or date.today()).isoformat()}.zip"


def _unique_entry_name(name: str, used: set[str]) -> str:
    """Return `name`, or 'stem (n).ext' if an earlier entry already took it."""
    safe_name = PurePath(name.replace("\\", "/")).name or "photo"
    if safe_name not in used:
        return safe_name
    path = PurePath(safe_name)
    counter = 2
    while f"{path.stem} ({counter}){path.suffix}" in used:
        counter += 1
    return f"{path.stem} ({counter}){path.suffix}"


class ArchiveExporter:
    """Bundles every decryptable original in a catalog into one zip archive."""

    def __init__(self, codec: Codec) -> None:
        self.codec = codec

    def export_all(self, catalog: PhotoCatalog, key: str, today: date | None = None) -> ExportResult:
        """
        Decrypt every record with `key` and pack the originals by name.

        Records that fail to decrypt are skipped and counted; the catalog is
        never modified.

        Args:
            catalog: Catalog to export
            key: Encryption key for the records
            today: Date used in the archive name (defaults to today)

        Returns:
            ExportResult: Archive bytes, download name and counts

        Raises:
            ValidationError: If the catalog is empty
        """
        start_time = time.perf_counter()
        records = catalog.list()
        if not records:
            raise ValidationError(
                "No photos to export",
                code="nothing_to_export",
                user_message="No photos to export",
            )

        result = ExportResult(archive=b"", filename=archive_filename(today), exported_count=0)
        used_names: set[str] = set()
        buffer = io.BytesIO()

        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for record in records:
                try:
                    original = self.codec.decrypt(record.ciphertext, key)
                except DecryptionError:
                    result.failed_count += 1
                    result.failed_ids.append(record.id)
                    continue

                entry_name = _unique_entry_name(record.name, used_names)
                used_names.add(entry_name)
                archive.writestr(entry_name, original)
                result.entry_names.append(entry_name)
                result.exported_count += 1

        result.archive = buffer.getvalue()

        log_performance(
            "export_all",
            time.perf_counter() - start_time,
            exported_count=result.exported_count,
            failed_count=result.failed_count,
            archive_size=len(result.archive),
        )
        log_user_action(
            "archive_exported",
            filename=result.filename,
            exported_count=result.exported_count,
            failed_count=result.failed_count,
        )
        return result
