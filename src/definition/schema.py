"""Package configuration schema (``config.json``) and default extraction."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from common.errors import SchemaError

from .values import transform_value

logger = logging.getLogger(__name__)


@dataclass
class ConfigSchemaGroup:
    """One node of a JSON-schema style configuration tree."""

    type: str = ""
    description: str = ""
    additional_properties: bool = False
    properties: Dict[str, "ConfigSchemaGroup"] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    minimum: Any = None
    default: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigSchemaGroup":
        if not isinstance(data, dict):
            raise SchemaError(f"Schema group must be an object, got {type(data).__name__}")
        properties = data.get("properties") or {}
        if not isinstance(properties, dict):
            raise SchemaError("Schema properties must be an object")
        return cls(
            type=str(data.get("type") or ""),
            description=str(data.get("description") or ""),
            additional_properties=bool(data.get("additionalProperties", False)),
            properties={name: cls.from_dict(group) for name, group in properties.items()},
            required=list(data.get("required") or []),
            minimum=data.get("minimum"),
            default=data.get("default"),
        )

    def default_config(self) -> Dict[str, Any]:
        """Defaults declared under this group.

        A property contributes its transformed default when it has one,
        otherwise its nested defaults when it is an object; else nothing.
        """
        defaults: Dict[str, Any] = {}
        for name, group in self.properties.items():
            if group.default is not None:
                defaults[name] = transform_value(group.default, group.type)
            elif group.type == "object":
                defaults[name] = group.default_config()
        return defaults


def parse_schema(blob: Union[bytes, str, None]) -> ConfigSchemaGroup:
    """Parse a ``config.json`` blob; an empty blob is an empty schema."""
    if not blob:
        return ConfigSchemaGroup()
    try:
        data = json.loads(blob)
    except ValueError as exc:
        logger.error("Could not unmarshal configuration schema: %s", exc)
        raise SchemaError(f"Could not unmarshal configuration schema: {exc}", operation="config_schema") from exc
    return ConfigSchemaGroup.from_dict(data)

