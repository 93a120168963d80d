"""Key export bundle model for pfile."""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

KEY_WARNING = "Keep this key safe! Without it, you cannot decrypt your photos."
KEY_EXPORT_FILENAME = "pfile-encryption-key.json"


@dataclass(frozen=True)
class KeyBundle:
    """
    Offline copy of the active encryption key.

    Serialized as {key, method, exportDate, warning}; the same document is
    accepted back by KeyManager.import_key.
    """

    key: str
    method: str
    exported_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    warning: str = KEY_WARNING

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "method": self.method,
            "exportDate": self.exported_at.isoformat(),
            "warning": self.warning,
        }

    def to_json(self) -> str:
        """Pretty-printed JSON document offered as a download."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeyBundle":
        """
        Rebuild a bundle from an exported document.

        Raises:
            KeyError: If the key field is missing
            ValueError: If exportDate is not an ISO-8601 timestamp
        """
        exported_at = data.get("exportDate")
        return cls(
            key=data["key"],
            method=data.get("method") or "aes256",
            exported_at=datetime.fromisoformat(exported_at) if exported_at else datetime.now(UTC),
            warning=data.get("warning") or KEY_WARNING,
        )

    @classmethod
    def from_json(cls, document: str | bytes) -> "KeyBundle":
        """Parse an exported key file."""
        return cls.from_dict(json.loads(document))
