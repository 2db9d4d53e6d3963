"""Install and uninstall orchestration across the scheduler, resource manager and coordination service.

Everything up to the scheduler mutation fails hard. Once an app has been
destroyed, framework teardown and coordination-service cleanup are
best-effort: failures are logged and reported in the UninstallResult.
"""
from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from constants import Constants, Labels
from backends.marathon import App
from backends.mesos import Framework
from catalog.models import Package, Repository
from catalog.resolver import CatalogResolver
from common.errors import ConflictError, NotFoundError, UpstreamError
from common.logging_utils import Timer, extra_context
from definition.uninstall import UninstallSpec

from .cleanup import CleanupResult, delete_tree
from .labels import add_provenance_labels, filter_by_id, filter_by_package_name, framework_name_of
from .request import PackageRequest

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    """What an uninstall did after the app was destroyed."""

    app_id: str
    package: str = ""
    framework_name: str = ""
    framework: Optional[Framework] = None
    cleanup: CleanupResult = field(default_factory=CleanupResult)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.cleanup.ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.app_id,
            "package": self.package,
            "frameworkName": self.framework_name,
            "framework": self.framework.to_dict() if self.framework else None,
            "cleanup": self.cleanup.to_dict(),
            "errors": list(self.errors),
        }


class PackageInstaller:
    """Drives installs and uninstalls of catalog packages."""

    def __init__(
        self,
        kv,
        marathon,
        mesos,
        zookeeper,
        platform_config: Optional[Dict[str, Any]] = None,
        repository_root: str = Constants.REPOSITORY_ROOT,
    ):
        self.kv = kv
        self.marathon = marathon
        self.mesos = mesos
        self.zookeeper = zookeeper
        self.platform_config = dict(platform_config or {})
        self.catalog = CatalogResolver(kv, repository_root)

    # Catalog queries

    def packages(self) -> List[Package]:
        return self.catalog.list_packages()

    def package(self, name: str) -> Package:
        package = self.catalog.get_package(name)
        if package is None:
            raise NotFoundError(f"Package {name} not found")
        return package

    def repositories(self) -> List[Repository]:
        return self.catalog.repositories()

    # Install

    def install_package(self, request: PackageRequest) -> str:
        """Install the requested package; returns the scheduler's response.

        Raises:
            ValidationError: Invalid request.
            NotFoundError: Unknown package or version.
            ConflictError: The app is already installed.
            UpstreamError: Catalog, template or scheduler failure.
        """
        request.validate()
        definition = self.catalog.get_package_definition(
            request.name, request.version_or_none, request.config, self.platform_config
        )
        if not definition.is_valid():
            raise UpstreamError(
                f"Package {definition.name} {definition.version} is missing required artifacts",
                operation="install",
                target=definition.name,
            )

        app = App.from_json(definition.marathon_app_json())
        add_provenance_labels(app, definition)

        with Timer() as timer:
            response = self.marathon.create_app(app)
        logger.info(
            "Installed %s %s as %s",
            definition.name,
            definition.version,
            app.id,
            extra=extra_context(
                event="install",
                package=definition.name,
                version=definition.version,
                app_id=app.id,
                duration_ms=timer.duration_ms(),
            ),
        )
        return response

    # Uninstall

    def find_installed(self, request: PackageRequest) -> List[App]:
        """Installed apps for the request's package, narrowed by app id when given."""
        apps = filter_by_package_name(self.marathon.apps(), request.name)
        if request.app_id:
            apps = filter_by_id(apps, request.app_id)
        return apps

    def uninstall_package(self, request: PackageRequest) -> UninstallResult:
        """Uninstall the single installed app matching ``request``.

        Raises:
            NotFoundError: No installed app matches.
            ConflictError: Several apps match and no app id was given.
        """
        request.validate()
        apps = self.find_installed(request)
        if not apps:
            raise NotFoundError(f"Package {request.name} is not installed")
        if len(apps) > 1:
            ids = ", ".join(app.id for app in apps)
            raise ConflictError(
                f"Multiple {request.name} packages are installed ({ids}); specify an app id"
            )
        return self.uninstall_app(apps[0])

    def uninstall_app(self, app: App) -> UninstallResult:
        """Destroy ``app`` then tear down its framework and coordination-service state."""
        self.marathon.destroy_app(app.id)
        logger.info("Destroyed app %s", app.id)

        result = UninstallResult(
            app_id=app.id,
            package=app.label(Labels.PACKAGE_NAME),
            framework_name=framework_name_of(app),
        )
        if result.framework_name:
            # a framework that may still be running keeps its coordination state
            try:
                result.framework = self.mesos.shutdown_framework_by_name(result.framework_name)
            except (ConflictError, UpstreamError) as exc:
                logger.error("Could not shut down framework %s: %s", result.framework_name, exc)
                result.errors.append(str(exc))
                return result

        self._cleanup(app, result)
        return result

    def _uninstall_spec(self, app: App) -> UninstallSpec:
        if app.has_label(Labels.PACKAGE_UNINSTALL):
            encoded = app.label(Labels.PACKAGE_UNINSTALL)
            try:
                decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as exc:
                raise UpstreamError(
                    f"Could not decode uninstall label on {app.id}: {exc}", operation="uninstall_spec"
                ) from exc
            return UninstallSpec.from_json(decoded)

        name = app.label(Labels.PACKAGE_NAME)
        version = app.label(Labels.PACKAGE_VERSION)
        logger.debug("No uninstall label on %s; recomputing from %s %s", app.id, name, version)
        definition = self.catalog.get_package_definition(name, version, {}, self.platform_config)
        return definition.uninstall_spec()

    def _cleanup(self, app: App, result: UninstallResult) -> None:
        try:
            spec = self._uninstall_spec(app)
        except (UpstreamError, NotFoundError) as exc:
            logger.error("Could not determine uninstall steps for %s: %s", app.id, exc)
            result.errors.append(str(exc))
            return

        nodes = spec.always_deletes()
        if not nodes:
            return
        try:
            with self.zookeeper as zookeeper:
                for node in nodes:
                    logger.info("Deleting zookeeper tree %s", node.path)
                    result.cleanup.extend(delete_tree(zookeeper, node.path))
        except UpstreamError as exc:
            logger.error("Coordination-service cleanup for %s failed: %s", app.id, exc)
            result.errors.append(str(exc))

    # Frameworks

    def frameworks(self, completed: bool = False) -> List[Framework]:
        if completed:
            return self.mesos.completed_frameworks()
        return self.mesos.frameworks()

    def shutdown_framework(self, framework_id: str) -> None:
        known = {fw.id for fw in self.mesos.state().all_frameworks()}
        if framework_id not in known:
            raise NotFoundError(f"Framework {framework_id} not found")
        self.mesos.shutdown(framework_id)
        logger.info("Shut down framework %s", framework_id)
