"""User preferences persisted next to the catalog."""

import json
from typing import Any

from pfile.errors import ValidationError
from ..config import get_default_encryption_method
from ..logging_config import get_logger, log_user_action
from .codec import Codec
from .local_store import (
    ACCENT_COLOR_KEY,
    ENCRYPTION_METHOD_KEY,
    SETTINGS_KEY,
    THEME_KEY,
    LocalStore,
)

logger = get_logger(__name__)

THEMES = ("light", "dark")
DEFAULT_SETTINGS: dict[str, bool] = {
    "autoDelete": False,
}


class Preferences:
    """Theme, accent color, toggle settings and the chosen encryption method."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def get_settings(self) -> dict[str, Any]:
        """Saved settings merged over the defaults; unreadable JSON falls back to defaults."""
        settings: dict[str, Any] = dict(DEFAULT_SETTINGS)
        blob = self.store.get_item(SETTINGS_KEY)
        if blob:
            try:
                saved = json.loads(blob)
            except ValueError:
                logger.warning("settings_blob_invalid", storage_key=SETTINGS_KEY)
                saved = {}
            if isinstance(saved, dict):
                settings.update(saved)
        return settings

    def update_setting(self, key: str, value: Any) -> dict[str, Any]:
        """Set one setting and persist the whole settings object."""
        settings = self.get_settings()
        settings[key] = value
        self.store.set_item(SETTINGS_KEY, json.dumps(settings))
        log_user_action("setting_updated", setting=key)
        return settings

    def get_theme(self) -> str:
        theme = self.store.get_item(THEME_KEY)
        return theme if theme in THEMES else "light"

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValidationError(f"Unknown theme '{theme}'", code="invalid_theme", details={"themes": THEMES})
        self.store.set_item(THEME_KEY, theme)

    def toggle_theme(self) -> str:
        theme = "dark" if self.get_theme() == "light" else "light"
        self.set_theme(theme)
        return theme

    def get_accent_color(self) -> str | None:
        return self.store.get_item(ACCENT_COLOR_KEY)

    def set_accent_color(self, color: str) -> None:
        self.store.set_item(ACCENT_COLOR_KEY, color)

    def get_encryption_method(self) -> str:
        """Method used for new uploads; stored value, else PFILE_ENCRYPTION_METHOD."""
        method = self.store.get_item(ENCRYPTION_METHOD_KEY) or get_default_encryption_method()
        try:
            return Codec.validate_method(method)
        except ValidationError:
            return Codec.DEFAULT_METHOD

    def set_encryption_method(self, method: str) -> str:
        """
        Select the method for future encryptions; existing records keep theirs.

        Raises:
            ValidationError: If the method is not supported
        """
        method = Codec.validate_method(method)
        self.store.set_item(ENCRYPTION_METHOD_KEY, method)
        log_user_action("encryption_method_changed", method=method)
        return method
