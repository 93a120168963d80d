"""
Models module for pfile.

This module contains data models:
- PhotoRecord: One encrypted photo in the catalog
- StorageUsage: Used bytes against the fixed capacity
- KeyBundle: Exported encryption key document
"""

from .key import KEY_EXPORT_FILENAME, KeyBundle
from .photo import PhotoRecord, StorageUsage, generate_photo_id

__all__ = [
    "PhotoRecord",
    "StorageUsage",
    "generate_photo_id",
    "KeyBundle",
    "KEY_EXPORT_FILENAME",
]
