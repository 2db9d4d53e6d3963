"""Catalog resolver: packages, supported versions and package definitions."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from constants import ArtifactType, Constants
from common.errors import NotFoundError
from common.logging_utils import Timer, extra_context
from definition.package_definition import PackageDefinition

from . import keys
from .models import Package, Repository, parse_package_index
from .overlay import ArtifactOverlay
from .repository import base_repository, layer_repositories, list_repositories

logger = logging.getLogger(__name__)


class CatalogResolver:
    """Reads the layered catalog from the key-value store.

    Nothing is cached: every call re-reads the store.
    """

    def __init__(self, kv, repository_root: str = Constants.REPOSITORY_ROOT):
        self.kv = kv
        self.root = repository_root.rstrip("/")

    def repositories(self) -> List[Repository]:
        return list_repositories(self.kv, self.root)

    def base_repository(self) -> Optional[Repository]:
        return base_repository(self.repositories())

    def layer_repositories(self) -> List[Repository]:
        return layer_repositories(self.repositories())

    def _supported_keys(self, repository: Repository) -> set:
        prefix = keys.packages_key(self.root, repository.index) + "/"
        return set(self.kv.keys(prefix))

    def list_packages(self) -> List[Package]:
        """Packages of the base index with support computed across layers.

        A version is supported when any layer holds its support marker.
        """
        repositories = self.repositories()
        base = base_repository(repositories)
        if base is None:
            logger.warning("No base repository under %s", self.root)
            return []

        blob = self.kv.get(keys.index_key(self.root, base.index))
        if not blob:
            logger.warning("Base repository %s has no package index", base.name)
            return []

        with Timer() as timer:
            packages = [entry.to_package() for entry in parse_package_index(blob)]
            for layer in layer_repositories(repositories):
                present = self._supported_keys(layer)
                for package in packages:
                    for version in package.versions.values():
                        marker = keys.support_marker_key(self.root, layer.index, package.name, version.index)
                        if marker in present:
                            version.supported = True

            for package in packages:
                package.recompute_current_version()

        logger.debug(
            "Listed packages",
            extra=extra_context(
                event="list_packages",
                count=len(packages),
                repositories=len(repositories),
                duration_ms=timer.duration_ms(),
            ),
        )
        return packages

    def get_package(self, name: str) -> Optional[Package]:
        """Trimmed, case-insensitive package lookup; None when absent."""
        wanted = (name or "").strip().lower()
        for package in self.list_packages():
            if package.name.strip().lower() == wanted:
                return package
        return None

    def _fetch_version_artifacts(self, package: Package, release_index: str):
        listings: Dict[int, Dict[str, bytes]] = {}

        def fetch(repository: Repository, kind: ArtifactType) -> Optional[bytes]:
            if repository.index not in listings:
                prefix = keys.package_version_key(self.root, repository.index, package.name, release_index) + "/"
                listings[repository.index] = dict(self.kv.list(prefix))
            key = keys.artifact_key(self.root, repository.index, package.name, release_index, kind)
            return listings[repository.index].get(key)

        return fetch

    def get_package_definition(
        self,
        name: str,
        version: Optional[str] = None,
        user_config: Optional[Dict[str, Any]] = None,
        platform_config: Optional[Dict[str, Any]] = None,
    ) -> PackageDefinition:
        """Resolve ``name``/``version`` into a PackageDefinition.

        Raises:
            NotFoundError: Unknown package, or no installable version.
        """
        package = self.get_package(name)
        if package is None:
            raise NotFoundError(f"Package {name} not found")

        pkg_version = package.find_package_version(version)
        if pkg_version is None:
            raise NotFoundError(f"Package {name} has no installable version")
        if version and pkg_version.version != version.strip():
            logger.info("Version %s of %s not found; using %s", version, package.name, pkg_version.version)

        overlay = ArtifactOverlay(self.repositories())
        overlay.collect(self._fetch_version_artifacts(package, pkg_version.index))

        definition = PackageDefinition(
            name=package.name,
            version=pkg_version.version,
            release_index=pkg_version.index,
            framework=package.framework,
            artifacts=overlay.artifacts(),
            sources=overlay.sources(),
            user_config=dict(user_config or {}),
            platform_config=dict(platform_config or {}),
        )
        definition.framework_name = definition.configured_framework_name()
        logger.debug(
            "Resolved package definition",
            extra=extra_context(
                event="resolve_package",
                package=definition.name,
                version=definition.version,
                release_index=definition.release_index,
                framework_name=definition.framework_name or None,
            ),
        )
        return definition
