"""Install/uninstall request parsing and validation."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from common.errors import ValidationError


@dataclass
class PackageRequest:
    """Caller request naming a package and, optionally, a version, app id and config."""

    name: str
    version: str = ""
    app_id: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    uninstall_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "PackageRequest":
        if not isinstance(data, dict):
            raise ValidationError("body", "request must be a JSON object")
        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise ValidationError("config", "must be an object")
        options = data.get("uninstallOptions") or {}
        if not isinstance(options, dict):
            raise ValidationError("uninstallOptions", "must be an object")
        request = cls(
            name=str(data.get("name") or "").strip(),
            version=str(data.get("version") or "").strip(),
            app_id=str(data.get("id") or "").strip(),
            config=config,
            uninstall_options=options,
        )
        request.validate()
        return request

    @classmethod
    def from_json(cls, body: Union[str, bytes, None]) -> "PackageRequest":
        """Parse a JSON request body.

        Raises:
            ValidationError: Malformed JSON (field ``body``) or missing name.
        """
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        try:
            data = json.loads(body or "")
        except ValueError as exc:
            raise ValidationError("body", f"could not parse request: {exc}") from exc
        return cls.from_dict(data)

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("name", "package name is required")

    @property
    def version_or_none(self) -> Optional[str]:
        return self.version or None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.version:
            data["version"] = self.version
        if self.app_id:
            data["id"] = self.app_id
        if self.config:
            data["config"] = self.config
        if self.uninstall_options:
            data["uninstallOptions"] = self.uninstall_options
        return data
