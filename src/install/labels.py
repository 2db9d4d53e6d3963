"""Provenance labels written onto installed apps and lookups over them."""
from __future__ import annotations

import base64
import logging
from typing import Iterable, List

from constants import Constants, Labels
from backends.marathon import App
from definition.package_definition import PackageDefinition

logger = logging.getLogger(__name__)


def add_provenance_labels(app: App, definition: PackageDefinition) -> App:
    """Label ``app`` with where it came from and how to uninstall it."""
    labels = app.labels
    labels[Labels.PACKAGE_NAME] = definition.name
    labels[Labels.PACKAGE_VERSION] = definition.version
    labels[Labels.PACKAGE_INDEX] = definition.release_index
    labels[Labels.PACKAGE_IS_FRAMEWORK] = "true" if definition.framework else "false"

    # an existing DCOS framework label wins over the configured name
    framework_name = app.label(Labels.DCOS_PACKAGE_FRAMEWORK_NAME) or definition.framework_name
    if framework_name:
        labels[Labels.PACKAGE_FRAMEWORK_NAME] = framework_name

    uninstall = definition.uninstall_json()
    labels[Labels.PACKAGE_UNINSTALL] = base64.b64encode(uninstall.encode("utf-8")).decode("ascii")

    external = definition.load_balancer() == Constants.LOAD_BALANCER_EXTERNAL
    labels[Labels.LOAD_BALANCER_ENABLE] = "true" if external else "false"
    return app


def framework_name_of(app: App) -> str:
    return app.label(Labels.PACKAGE_FRAMEWORK_NAME) or app.label(Labels.DCOS_PACKAGE_FRAMEWORK_NAME)


def filter_packages(apps: Iterable[App]) -> List[App]:
    """Apps carrying a package-name label."""
    return [app for app in apps if app.label(Labels.PACKAGE_NAME)]


def filter_by_package_name(apps: Iterable[App], name: str) -> List[App]:
    """Apps installed from package ``name``, in their original order."""
    return [app for app in apps if app.label(Labels.PACKAGE_NAME) == name]


def filter_by_id(apps: Iterable[App], app_id: str) -> List[App]:
    """Apps whose id equals ``app_id``; the leading ``/`` is optional on both sides."""
    wanted = app_id.strip().lstrip("/")
    return [app for app in apps if app.id.lstrip("/") == wanted]
