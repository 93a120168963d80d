"""
Unit tests for the pfile error hierarchy.
"""

from unittest.mock import patch

import pytest

from pfile.errors import (
    DecryptionError,
    ErrorCategory,
    ErrorSeverity,
    KeyUnavailable,
    KeyUnavailableError,
    PersistenceError,
    PFileError,
    UnsupportedImageError,
    ValidationError,
)


class TestPFileError:
    """Test cases for PFileError and subclasses."""

    def test_defaults(self):
        error = PFileError("boom")

        assert str(error) == "boom"
        assert error.category == ErrorCategory.UNKNOWN
        assert error.severity == ErrorSeverity.MEDIUM
        assert error.code == "unknown_error"
        assert error.user_message == "An unexpected error occurred."
        assert error.details == {}

    @pytest.mark.parametrize(
        "error_class,category,code",
        [
            (UnsupportedImageError, ErrorCategory.IMAGE_PROCESSING, "unsupported_image"),
            (DecryptionError, ErrorCategory.CRYPTO, "decryption_failed"),
            (KeyUnavailableError, ErrorCategory.CRYPTO, "key_unavailable"),
            (PersistenceError, ErrorCategory.STORAGE, "persistence_failed"),
            (ValidationError, ErrorCategory.VALIDATION, "validation_failed"),
        ],
    )
    def test_subclass_defaults(self, error_class, category, code):
        error = error_class("failed")

        assert isinstance(error, PFileError)
        assert error.category == category
        assert error.code == code
        assert error.user_message

    def test_unsupported_image_user_message(self):
        assert UnsupportedImageError("x").user_message == "Please select image files only."

    def test_persistence_error_suggests_retry(self):
        assert PersistenceError("disk full").retry_suggested is True

    def test_key_unavailable_alias(self):
        assert KeyUnavailable is KeyUnavailableError

    def test_error_info(self):
        cause = ValueError("bad")
        error = ValidationError("invalid", code="custom", details={"field": "name"}, original_exception=cause)

        info = error.get_error_info().to_dict()

        assert info["category"] == "validation"
        assert info["code"] == "custom"
        assert info["details"] == {"field": "name"}
        assert info["message"] == "invalid"
        assert error.original_exception is cause

    def test_errors_log_on_construction(self):
        with patch("pfile.errors.log_error") as mock_log_error:
            error = PersistenceError("disk full", details={"storage_key": "pfile_photos"})

        mock_log_error.assert_called_once()
        logged_error, context = mock_log_error.call_args[0]
        assert logged_error is error
        assert context["storage_key"] == "pfile_photos"
        assert context["category"] == "storage"

    def test_crypto_errors_are_security_events(self):
        with patch("pfile.errors.log_security_event") as mock_security_event:
            DecryptionError("wrong key", code="key_mismatch")
            ValidationError("not crypto")

        mock_security_event.assert_called_once()
        assert mock_security_event.call_args[0][0] == "key_mismatch"
