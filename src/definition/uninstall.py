"""Uninstall instructions rendered from a package's ``uninstall.json``."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from common.errors import SchemaError


@dataclass
class ZookeeperNode:
    """A coordination-service subtree to remove on uninstall."""

    path: str
    always: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZookeeperNode":
        return cls(path=str(data.get("path") or ""), always=data.get("always") is True)


@dataclass
class UninstallSpec:
    zookeeper_deletes: List[ZookeeperNode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UninstallSpec":
        if not isinstance(data, dict):
            raise SchemaError("Uninstall spec must be an object", operation="uninstall_spec")
        zookeeper = data.get("zookeeper") or {}
        if not isinstance(zookeeper, dict):
            raise SchemaError("Uninstall zookeeper section must be an object", operation="uninstall_spec")
        deletes = zookeeper.get("delete") or []
        return cls(zookeeper_deletes=[ZookeeperNode.from_dict(d) for d in deletes if isinstance(d, dict)])

    @classmethod
    def from_json(cls, text: Union[str, bytes, None]) -> "UninstallSpec":
        """Parse rendered uninstall JSON; blank input is an empty spec."""
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        if not text or not text.strip():
            return cls()
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise SchemaError(f"Could not unmarshal uninstall json: {exc}", operation="uninstall_spec") from exc
        return cls.from_dict(data)

    def always_deletes(self) -> List[ZookeeperNode]:
        """Delete entries flagged to run unconditionally."""
        return [node for node in self.zookeeper_deletes if node.always and node.path]
