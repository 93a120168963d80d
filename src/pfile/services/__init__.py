"""
Services module for pfile.

This module contains the service classes behind the photo store:
- LocalStore: Namespace-keyed durable storage
- KeyManager: Active encryption key lifecycle
- Codec: Authenticated encryption of photo payloads
- ThumbnailDeriver: Gallery preview generation
- PhotoCatalog: Persisted, ordered photo records
- ArchiveExporter: Zip export of decrypted originals
- PhotoStore: Session context wiring all of the above
"""

from .catalog import PhotoCatalog
from .codec import Codec, get_codec
from .exporter import ArchiveExporter, ExportResult
from .key_manager import KeyManager, generate_key
from .local_store import LocalStore
from .photo_store import PhotoStore, create_photo_store
from .preferences import Preferences
from .thumbnail import ThumbnailDeriver

__all__ = [
    "ArchiveExporter",
    "Codec",
    "ExportResult",
    "KeyManager",
    "LocalStore",
    "PhotoCatalog",
    "PhotoStore",
    "Preferences",
    "ThumbnailDeriver",
    "create_photo_store",
    "generate_key",
    "get_codec",
]
