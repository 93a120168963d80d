"""
pfile - Privacy-focused local photo storage

A local application for keeping a personal photo collection encrypted at rest:
- Per-photo AES-256 encryption with a single session key
- Thumbnail generation for gallery display
- Catalog persistence with search and storage accounting
- Archive export of decrypted originals and key export/import
"""

__version__ = "0.1.0"
__author__ = "pfile"
__description__ = "Privacy-focused local photo storage with client-side encryption"
