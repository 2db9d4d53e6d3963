"""Catalog data models: repositories, index entries, packages and their versions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from common.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repository:
    """A catalog layer. Index 0 is the base repository."""
    name: str
    index: int

    @property
    def is_base(self) -> bool:
        return self.index == 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "index": self.index}


@dataclass
class PackageVersion:
    """One released version of a package and its release index."""
    version: str
    index: str
    supported: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "index": self.index, "supported": self.supported}


def by_recency(versions: Iterable[PackageVersion]) -> List[PackageVersion]:
    """Most recent first.

    Release indexes compare as strings, so ``"9"`` sorts ahead of ``"10"``.
    """
    return sorted(versions, key=lambda v: (v.index, v.version), reverse=True)


@dataclass
class PackageIndexEntry:
    """A raw entry from the base repository's ``index.json``."""
    name: str
    description: str = ""
    framework: bool = False
    current_version: str = ""
    tags: List[str] = field(default_factory=list)
    versions: Dict[str, str] = field(default_factory=dict)  # version -> release index

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageIndexEntry":
        fields = {str(key).lower(): value for key, value in data.items()}
        versions = fields.get("versions") or {}
        if not isinstance(versions, dict):
            raise UpstreamError("Package index versions must be an object", operation="package_index")
        return cls(
            name=str(fields.get("name") or ""),
            description=str(fields.get("description") or ""),
            framework=fields.get("framework") is True,
            current_version=str(fields.get("currentversion") or ""),
            tags=[str(tag) for tag in (fields.get("tags") or [])],
            versions={str(version): str(index) for version, index in versions.items()},
        )

    def to_package(self) -> "Package":
        """Convert to a Package with every version unsupported."""
        return Package(
            name=self.name,
            description=self.description,
            framework=self.framework,
            current_version=self.current_version,
            tags=list(self.tags),
            versions={
                version: PackageVersion(version=version, index=index)
                for version, index in self.versions.items()
            },
        )


def parse_package_index(blob: Union[bytes, str]) -> List[PackageIndexEntry]:
    """Parse ``index.json``: a bare list of entries or ``{"packages": [...]}``.

    Raises:
        UpstreamError: The document is not valid JSON or has the wrong shape.
    """
    try:
        data = json.loads(blob)
    except ValueError as exc:
        logger.error("Could not unmarshal package index: %s", exc)
        raise UpstreamError(f"Could not unmarshal package index: {exc}", operation="package_index") from exc

    if isinstance(data, dict):
        fields = {str(key).lower(): value for key, value in data.items()}
        data = fields.get("packages") or []
    if not isinstance(data, list):
        raise UpstreamError("Package index must be a list of packages", operation="package_index")
    return [PackageIndexEntry.from_dict(entry) for entry in data if isinstance(entry, dict)]


@dataclass
class Package:
    """A catalog package with per-version support computed across layers."""
    name: str
    description: str = ""
    framework: bool = False
    current_version: str = ""
    tags: List[str] = field(default_factory=list)
    versions: Dict[str, PackageVersion] = field(default_factory=dict)

    @property
    def supported(self) -> bool:
        return any(v.supported for v in self.versions.values())

    def supported_versions(self) -> List[PackageVersion]:
        return [v for v in self.versions.values() if v.supported]

    def get_package_version(self, version: Optional[str]) -> Optional[PackageVersion]:
        """Exact version lookup; trimmed and case-insensitive."""
        wanted = (version or "").strip().lower()
        if not wanted:
            return None
        for candidate, pkg_version in self.versions.items():
            if candidate.strip().lower() == wanted:
                return pkg_version
        return None

    def find_latest_package_version(self) -> Optional[PackageVersion]:
        ordered = by_recency(self.versions.values())
        return ordered[0] if ordered else None

    def find_latest_supported_package_version(self) -> Optional[PackageVersion]:
        ordered = by_recency(self.supported_versions())
        return ordered[0] if ordered else None

    def find_package_version(self, requested: Optional[str] = None) -> Optional[PackageVersion]:
        """Resolve the version to install.

        Tries, in order: the requested version, the current version, the
        latest supported version and the latest version overall.
        """
        return (
            self.get_package_version(requested)
            or self.get_package_version(self.current_version)
            or self.find_latest_supported_package_version()
            or self.find_latest_package_version()
        )

    def recompute_current_version(self) -> None:
        """Point ``current_version`` at a supported version when there is one.

        The index suggestion is kept when it is still supported or when no
        version is supported at all.
        """
        current = self.get_package_version(self.current_version)
        if current is not None and current.supported:
            return
        latest = self.find_latest_supported_package_version()
        if latest is not None:
            self.current_version = latest.version

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "framework": self.framework,
            "currentVersion": self.current_version,
            "supported": self.supported,
            "tags": list(self.tags),
            "versions": {version: v.to_dict() for version, v in self.versions.items()},
        }
