"""
Unit tests for KeyManager.
"""

import json
from unittest.mock import patch

import pytest

from pfile.errors import PersistenceError, ValidationError
from pfile.models.key import KEY_WARNING, KeyBundle
from pfile.services.key_manager import KeyManager, generate_key
from pfile.services.local_store import ENCRYPTION_KEY_KEY, LocalStore


class TestKeyManager:
    """Test cases for KeyManager."""

    def test_generate_key_has_256_bits(self):
        key = generate_key()

        assert len(key) == 64
        assert len(bytes.fromhex(key)) == 32
        assert generate_key() != key

    def test_first_use_generates_and_persists(self, local_store):
        manager = KeyManager(local_store)

        key = manager.active_key()

        assert local_store.get_item(ENCRYPTION_KEY_KEY) == key
        assert manager.is_ephemeral is False

    def test_key_is_stable_across_sessions(self, local_store):
        first = KeyManager(local_store).active_key()

        second = KeyManager(LocalStore(local_store.data_dir)).active_key()

        assert first == second

    def test_key_is_not_regenerated_within_session(self, local_store):
        manager = KeyManager(local_store)

        assert manager.active_key() == manager.active_key()

    def test_unpersistable_key_is_ephemeral(self, local_store):
        manager = KeyManager(local_store)

        with patch.object(local_store, "set_item", side_effect=PersistenceError("read-only")):
            key = manager.active_key()

        assert manager.is_ephemeral is True
        assert len(key) == 64
        assert local_store.get_item(ENCRYPTION_KEY_KEY) is None

    def test_unreadable_storage_falls_back_to_ephemeral_key(self, local_store):
        manager = KeyManager(local_store)

        with patch.object(local_store, "get_item", side_effect=PersistenceError("no access")):
            key = manager.active_key()

        assert manager.is_ephemeral is True
        assert len(key) == 64

    def test_invalid_stored_key_is_not_overwritten(self, local_store):
        local_store.set_item(ENCRYPTION_KEY_KEY, "garbage")
        manager = KeyManager(local_store)

        key = manager.active_key()

        assert key != "garbage"
        assert manager.is_ephemeral is True
        assert local_store.get_item(ENCRYPTION_KEY_KEY) == "garbage"

    def test_export_key(self, local_store):
        manager = KeyManager(local_store)

        bundle = manager.export_key(method="aes256")

        assert bundle.key == manager.active_key()
        assert bundle.method == "aes256"
        assert bundle.warning == KEY_WARNING

    def test_export_has_no_side_effects(self, local_store):
        manager = KeyManager(local_store)
        key = manager.active_key()

        manager.export_key()

        assert local_store.get_item(ENCRYPTION_KEY_KEY) == key

    def test_key_bundle_is_not_recorded_as_export(self, local_store):
        manager = KeyManager(local_store)

        with patch("pfile.services.key_manager.log_user_action") as mock_log_action:
            bundle = manager.key_bundle(method="chacha20")

        assert bundle.key == manager.active_key()
        assert bundle.method == "chacha20"
        mock_log_action.assert_not_called()

    def test_export_key_is_recorded(self, local_store):
        manager = KeyManager(local_store)

        with patch("pfile.services.key_manager.log_user_action") as mock_log_action:
            manager.export_key()

        mock_log_action.assert_called_once()
        assert mock_log_action.call_args[0][0] == "encryption_key_exported"

    def test_import_key_from_json(self, local_store):
        manager = KeyManager(local_store)
        manager.active_key()
        new_key = generate_key()

        manager.import_key(json.dumps({"key": new_key, "method": "aes256"}))

        assert manager.active_key() == new_key
        assert KeyManager(LocalStore(local_store.data_dir)).active_key() == new_key

    def test_import_key_clears_ephemeral_flag(self, local_store):
        manager = KeyManager(local_store)
        with patch.object(local_store, "set_item", side_effect=PersistenceError("read-only")):
            manager.active_key()

        manager.import_key(KeyBundle(key=generate_key(), method="aes256"))

        assert manager.is_ephemeral is False

    @pytest.mark.parametrize(
        "document",
        ["not json", "[]", '{"method": "aes256"}', '{"key": "abc"}', json.dumps({"key": "ab" * 32, "method": "des"})],
    )
    def test_import_rejects_invalid_bundles(self, local_store, document):
        manager = KeyManager(local_store)
        key = manager.active_key()

        with pytest.raises(ValidationError):
            manager.import_key(document)

        assert manager.active_key() == key

    def test_import_keeps_key_when_storage_fails(self, local_store):
        manager = KeyManager(local_store)
        key = manager.active_key()

        with patch.object(local_store, "set_item", side_effect=PersistenceError("read-only")):
            with pytest.raises(PersistenceError):
                manager.import_key(KeyBundle(key=generate_key(), method="aes256"))

        assert manager.active_key() == key
