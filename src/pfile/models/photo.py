"""
Photo record model for pfile.

This module contains the PhotoRecord dataclass that represents one
encrypted photo in the catalog, and StorageUsage for quota display.
"""

import secrets
import time
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any


def generate_photo_id() -> str:
    """
    Generate a photo id from the current time in milliseconds plus randomness.

    The millisecond prefix keeps ids roughly ordered by creation; the random
    suffix keeps ids created within the same millisecond distinct.
    """
    return f"{int(time.time() * 1000):013d}-{secrets.token_hex(4)}"


@dataclass(frozen=True)
class PhotoRecord:
    """
    Represents one stored photo in the pfile catalog.

    The original image only exists as `ciphertext`; `thumbnail` is a
    low-resolution JPEG data URL kept in the clear for gallery display.
    `size` is the byte length of the original file, not of the ciphertext.
    """

    id: str
    name: str
    size: int
    mime_type: str
    ciphertext: str
    thumbnail: str
    created_at: datetime

    @classmethod
    def create_new(
        cls,
        name: str,
        size: int,
        mime_type: str,
        ciphertext: str,
        thumbnail: str,
        created_at: datetime | None = None,
    ) -> "PhotoRecord":
        """
        Create a new PhotoRecord with a generated id and current timestamp.

        Args:
            name: Original file name
            size: Byte length of the original file
            mime_type: Original media type (e.g. 'image/jpeg')
            ciphertext: Codec output for the full-resolution image
            thumbnail: Preview image as a data URL
            created_at: Upload time (defaults to now)

        Returns:
            New PhotoRecord instance
        """
        return cls(
            id=generate_photo_id(),
            name=name,
            size=size,
            mime_type=mime_type,
            ciphertext=ciphertext,
            thumbnail=thumbnail,
            created_at=created_at or datetime.now(UTC),
        )

    def with_id(self, photo_id: str) -> "PhotoRecord":
        """Return a copy of this record carrying `photo_id`."""
        return replace(self, id=photo_id)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert PhotoRecord to its persisted catalog form.

        Returns:
            Dictionary with the catalog field names
            (id, name, size, type, encryptedData, uploadDate, thumbnail)
        """
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "type": self.mime_type,
            "encryptedData": self.ciphertext,
            "uploadDate": self.created_at.isoformat(),
            "thumbnail": self.thumbnail,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhotoRecord":
        """
        Create PhotoRecord from its persisted catalog form.

        Numeric ids written by older catalogs are kept as their string form.

        Raises:
            KeyError: If a required field is missing
            ValueError: If uploadDate is not an ISO-8601 timestamp
        """
        upload_date = data["uploadDate"]
        if isinstance(upload_date, str):
            upload_date = datetime.fromisoformat(upload_date)

        return cls(
            id=str(data["id"]),
            name=data["name"],
            size=int(data["size"]),
            mime_type=data.get("type") or "application/octet-stream",
            ciphertext=data["encryptedData"],
            thumbnail=data.get("thumbnail") or "",
            created_at=upload_date,
        )

    def validate(self) -> bool:
        """
        Validate the PhotoRecord instance.

        Returns:
            True if valid, False otherwise
        """
        if not self.id or not self.name:
            return False

        if self.size < 0:
            return False

        if not self.ciphertext:
            return False

        if not self.mime_type.startswith("image/"):
            return False

        return True

    def get_display_date(self) -> str:
        """Get the upload date formatted for the gallery caption."""
        return self.created_at.strftime("%Y-%m-%d")


@dataclass(frozen=True)
class StorageUsage:
    """Used bytes measured against the fixed total capacity."""

    used_bytes: int
    capacity_bytes: int

    @property
    def used_gb(self) -> float:
        return self.used_bytes / (1024 * 1024 * 1024)

    @property
    def capacity_gb(self) -> float:
        return self.capacity_bytes / (1024 * 1024 * 1024)

    @property
    def percentage(self) -> float:
        """Usage as a percentage, clamped to 0-100."""
        if self.capacity_bytes <= 0:
            return 0.0
        percentage = (self.used_bytes / self.capacity_bytes) * 100
        return max(0.0, min(100.0, percentage))

    def label(self) -> str:
        """Human-readable usage, e.g. '1.2 GB of 6 GB used'."""
        return f"{self.used_gb:.1f} GB of {self.capacity_gb:g} GB used"
