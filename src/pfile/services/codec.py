"""Encryption codec for pfile.

All photo bytes pass through Codec on their way into and out of the
catalog. Ciphertext is authenticated (AES-256-GCM by default, or
ChaCha20-Poly1305), so a wrong key or a damaged payload is reported as
DecryptionError instead of yielding garbage.

Text layout (base64 of):
    version (1 byte) | method id (1 byte) | nonce (12 bytes) | ciphertext + tag
The two header bytes are bound to the payload as associated data.
"""

import base64
import binascii
import os
import time

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from pfile.errors import DecryptionError, EncryptionError, ValidationError
from ..logging_config import get_logger, log_performance

logger = get_logger(__name__)

FORMAT_VERSION = 1
KEY_SIZE_BYTES = 32
NONCE_SIZE = 12
TAG_SIZE = 16
HEADER_SIZE = 2


def parse_key(key: str) -> bytes:
    """
    Decode a printable encryption key into its 32 raw bytes.

    Raises:
        ValueError: If the key is not 64 hexadecimal characters
    """
    try:
        raw = bytes.fromhex(key.strip())
    except (ValueError, AttributeError) as e:
        raise ValueError("Encryption key must be a hexadecimal string") from e
    if len(raw) != KEY_SIZE_BYTES:
        raise ValueError(f"Encryption key must be {KEY_SIZE_BYTES * 8} bits, got {len(raw) * 8}")
    return raw


class Codec:
    """Stateless authenticated encryption of photo payloads."""

    # Method name -> (header id, AEAD class)
    METHODS = {
        "aes256": (1, AESGCM),
        "chacha20": (2, ChaCha20Poly1305),
    }
    DEFAULT_METHOD = "aes256"

    def __init__(self, method: str = DEFAULT_METHOD) -> None:
        self.method = self.validate_method(method)

    @classmethod
    def validate_method(cls, method: str) -> str:
        """
        Normalize and check an encryption method name.

        Raises:
            ValidationError: If the method is not supported
        """
        normalized = (method or "").lower()
        if normalized not in cls.METHODS:
            raise ValidationError(
                f"Unsupported encryption method '{method}'",
                code="unsupported_encryption_method",
                details={"method": method, "supported_methods": list(cls.METHODS)},
            )
        return normalized

    @classmethod
    def _method_by_id(cls, method_id: int) -> str | None:
        for name, (header_id, _) in cls.METHODS.items():
            if header_id == method_id:
                return name
        return None

    def encrypt(self, plaintext: bytes | str, key: str, method: str | None = None) -> str:
        """
        Encrypt a payload with `key`.

        Args:
            plaintext: Raw bytes, or text which is encoded as UTF-8
            key: Active encryption key (64 hex characters)
            method: Override the codec's default method

        Returns:
            str: Base64 ciphertext text, different on every call

        Raises:
            EncryptionError: If the key is unusable
            ValidationError: If the method is not supported
        """
        start_time = time.perf_counter()
        method_name = self.validate_method(method) if method else self.method
        method_id, aead_class = self.METHODS[method_name]

        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")

        try:
            raw_key = parse_key(key)
        except ValueError as e:
            raise EncryptionError(
                f"Invalid encryption key: {e}",
                code="invalid_key",
                details={"method": method_name},
                original_exception=e,
            ) from e

        header = bytes([FORMAT_VERSION, method_id])
        nonce = os.urandom(NONCE_SIZE)
        sealed = aead_class(raw_key).encrypt(nonce, plaintext, header)
        ciphertext = base64.b64encode(header + nonce + sealed).decode("ascii")

        log_performance(
            "encrypt",
            time.perf_counter() - start_time,
            method=method_name,
            plaintext_size=len(plaintext),
            ciphertext_size=len(ciphertext),
        )
        return ciphertext

    def decrypt(self, ciphertext: str, key: str) -> bytes:
        """
        Decrypt a payload produced by `encrypt`.

        Args:
            ciphertext: Base64 ciphertext text
            key: Encryption key the payload was sealed with

        Returns:
            bytes: The original plaintext

        Raises:
            DecryptionError: If the key does not match or the ciphertext is malformed or truncated
        """
        start_time = time.perf_counter()

        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise DecryptionError(
                "Ciphertext is not valid base64",
                code="malformed_ciphertext",
                original_exception=e,
            ) from e

        if len(raw) < HEADER_SIZE + NONCE_SIZE + TAG_SIZE:
            raise DecryptionError(
                "Ciphertext is truncated",
                code="truncated_ciphertext",
                details={"ciphertext_size": len(raw)},
            )

        version, method_id = raw[0], raw[1]
        method_name = self._method_by_id(method_id)
        if version != FORMAT_VERSION or method_name is None:
            raise DecryptionError(
                "Ciphertext header is not recognized",
                code="malformed_ciphertext",
                details={"version": version, "method_id": method_id},
            )

        try:
            raw_key = parse_key(key)
        except ValueError as e:
            raise DecryptionError(
                f"Invalid encryption key: {e}",
                code="invalid_key",
                details={"method": method_name},
                original_exception=e,
            ) from e

        header = raw[:HEADER_SIZE]
        nonce = raw[HEADER_SIZE : HEADER_SIZE + NONCE_SIZE]
        sealed = raw[HEADER_SIZE + NONCE_SIZE :]
        aead_class = self.METHODS[method_name][1]

        try:
            plaintext = aead_class(raw_key).decrypt(nonce, sealed, header)
        except InvalidTag as e:
            raise DecryptionError(
                "Ciphertext failed authentication: wrong key or corrupted data",
                code="key_mismatch",
                details={"method": method_name},
                original_exception=e,
            ) from e

        log_performance(
            "decrypt", time.perf_counter() - start_time, method=method_name, plaintext_size=len(plaintext)
        )
        return plaintext


_codec = Codec()


def get_codec() -> Codec:
    """Get the default (AES-256) codec instance."""
    return _codec
