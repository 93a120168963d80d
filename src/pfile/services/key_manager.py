"""Encryption key lifecycle for pfile."""

import secrets

from pfile.errors import PersistenceError, ValidationError
from ..logging_config import get_logger, log_security_event, log_user_action
from ..models.key import KeyBundle
from .codec import KEY_SIZE_BYTES, Codec, parse_key
from .local_store import ENCRYPTION_KEY_KEY, LocalStore

logger = get_logger(__name__)


def generate_key() -> str:
    """Generate a fresh 256-bit key as 64 hex characters from the OS CSPRNG."""
    return secrets.token_hex(KEY_SIZE_BYTES)


class KeyManager:
    """
    Owns the single active encryption key of a session.

    The key is loaded from local storage on first use, or generated and
    persisted immediately if none exists. It is never rotated automatically.
    When storage cannot provide or keep the key, a process-lifetime key is
    used instead and `is_ephemeral` is set; photos encrypted with it become
    unreadable after a restart unless the key is exported.
    """

    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self._key: str | None = None
        self.is_ephemeral = False

    def active_key(self) -> str:
        """
        Get the active key, loading or generating it on first use.

        Returns:
            str: The active encryption key
        """
        if self._key is not None:
            return self._key

        try:
            stored = self.store.get_item(ENCRYPTION_KEY_KEY)
        except PersistenceError as e:
            self._fall_back_to_ephemeral_key("storage_unreadable", e)
            return self._key  # type: ignore[return-value]

        if stored is not None:
            try:
                parse_key(stored)
            except ValueError as e:
                # Never overwrite an unreadable stored key; it may still be recoverable
                self._fall_back_to_ephemeral_key("stored_key_invalid", e)
                return self._key  # type: ignore[return-value]
            self._key = stored.strip()
            logger.debug("encryption_key_loaded")
            return self._key

        key = generate_key()
        try:
            self.store.set_item(ENCRYPTION_KEY_KEY, key, private=True)
        except PersistenceError as e:
            self._key = key
            self.is_ephemeral = True
            log_security_event("encryption_key_not_persisted", error=str(e))
            return key

        self._key = key
        log_security_event("encryption_key_generated")
        return key

    def _fall_back_to_ephemeral_key(self, reason: str, cause: Exception) -> None:
        logger.warning("encryption_key_unavailable", reason=reason, error=str(cause))
        log_security_event("ephemeral_key_in_use", reason=reason)
        self._key = generate_key()
        self.is_ephemeral = True

    def key_bundle(self, method: str = Codec.DEFAULT_METHOD) -> KeyBundle:
        """Build the {key, method, exportDate, warning} payload without recording an export."""
        return KeyBundle(key=self.active_key(), method=method)

    def export_key(self, method: str = Codec.DEFAULT_METHOD) -> KeyBundle:
        """
        Produce the offline copy of the active key.

        Args:
            method: Encryption method currently selected

        Returns:
            KeyBundle: {key, method, exportDate, warning} payload for download
        """
        bundle = self.key_bundle(method)
        log_user_action("encryption_key_exported", method=method, ephemeral=self.is_ephemeral)
        return bundle

    def load_bundle(self, bundle: KeyBundle | str | bytes) -> KeyBundle:
        """
        Parse and validate an exported key bundle without activating it.

        Args:
            bundle: KeyBundle or the exported JSON document

        Returns:
            KeyBundle: The validated bundle

        Raises:
            ValidationError: If the bundle, its key or its method is malformed
        """
        if not isinstance(bundle, KeyBundle):
            try:
                bundle = KeyBundle.from_json(bundle)
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise ValidationError(
                    f"Invalid key file: {e}",
                    code="invalid_key_bundle",
                    user_message="The selected file is not a valid pfile encryption key.",
                    original_exception=e,
                ) from e

        try:
            parse_key(bundle.key)
        except ValueError as e:
            raise ValidationError(
                f"Invalid key in bundle: {e}",
                code="invalid_key_bundle",
                user_message="The selected file is not a valid pfile encryption key.",
                original_exception=e,
            ) from e
        Codec.validate_method(bundle.method)
        return bundle

    def import_key(self, bundle: KeyBundle | str | bytes) -> KeyBundle:
        """
        Replace the active key with one restored from an exported bundle.

        Raises:
            ValidationError: If the bundle is malformed
            PersistenceError: If the key could not be stored; the active key is unchanged
        """
        bundle = self.load_bundle(bundle)
        key = bundle.key.strip()
        self.store.set_item(ENCRYPTION_KEY_KEY, key, private=True)
        self._key = key
        self.is_ephemeral = False
        log_security_event("encryption_key_imported", method=bundle.method)
        return bundle
