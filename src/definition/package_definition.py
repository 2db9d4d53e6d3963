"""Request-scoped package definition: raw artifacts plus the config derived from them."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import ArtifactType, Constants
from common.errors import SchemaError
from common.logging_utils import is_debug_enabled

from .schema import ConfigSchemaGroup, parse_schema
from .template import render
from .uninstall import UninstallSpec
from .values import lookup, lookup_dotted, merge_config

logger = logging.getLogger(__name__)

REQUIRED_ARTIFACTS = (ArtifactType.CONFIG, ArtifactType.MARATHON, ArtifactType.PACKAGE)


@dataclass
class PackageDefinition:
    """Everything needed to install one version of a package.

    ``artifacts`` holds the winning blob per artifact type and ``sources``
    names the repository each one came from.
    """

    name: str
    version: str
    release_index: str
    framework: bool = False
    framework_name: str = ""
    artifacts: Dict[ArtifactType, bytes] = field(default_factory=dict)
    sources: Dict[ArtifactType, str] = field(default_factory=dict)
    user_config: Dict[str, Any] = field(default_factory=dict)
    platform_config: Dict[str, Any] = field(default_factory=dict)

    def artifact(self, kind: ArtifactType) -> bytes:
        return self.artifacts.get(kind) or b""

    def is_valid(self) -> bool:
        """True when the config, marathon and package artifacts are all present."""
        return all(self.artifact(kind) for kind in REQUIRED_ARTIFACTS)

    def config_schema(self) -> ConfigSchemaGroup:
        return parse_schema(self.artifact(ArtifactType.CONFIG))

    def default_config(self) -> Dict[str, Any]:
        return self.config_schema().default_config()

    def options(self) -> Dict[str, Any]:
        """Rendered options template with user then platform config merged over it.

        Without an options template the result is empty; user config is
        only honoured through the template.
        """
        template = self.artifact(ArtifactType.OPTIONS)
        if not template:
            return {}

        rendered = render(template, self.platform_config)
        try:
            options = json.loads(rendered) if rendered.strip() else {}
        except ValueError as exc:
            logger.error("Could not unmarshal options for %s-%s: %s", self.name, self.version, exc)
            raise SchemaError(f"Could not unmarshal options json: {exc}", operation="options") from exc
        if not isinstance(options, dict):
            raise SchemaError("Options json must be an object", operation="options")

        options = merge_config(options, self.user_config)
        return merge_config(options, self.platform_config)

    def merged_config(self) -> Dict[str, Any]:
        """Schema defaults with the options merged on top."""
        merged = merge_config(self.default_config(), self.options())
        if is_debug_enabled(logger):
            logger.debug("Merged config for %s-%s: %s", self.name, self.version, json.dumps(merged))
        return merged

    def configured_framework_name(self, config: Optional[Dict[str, Any]] = None) -> str:
        """``<name>.framework-name`` from the merged config when it is a string."""
        config = self.merged_config() if config is None else config
        value = lookup(config, [self.name, Constants.FRAMEWORK_NAME_KEY])
        return value if isinstance(value, str) else ""

    def marathon_app_json(self) -> str:
        return render(self.artifact(ArtifactType.MARATHON), self.merged_config())

    def uninstall_json(self) -> str:
        return render(self.artifact(ArtifactType.UNINSTALL), self.merged_config())

    def uninstall_spec(self) -> UninstallSpec:
        return UninstallSpec.from_json(self.uninstall_json())

    def load_balancer(self) -> str:
        """Configured load balancer mode, lower-cased; ``off`` when unset."""
        value = lookup_dotted(self.merged_config(), Constants.LOAD_BALANCER_KEY)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
        return Constants.LOAD_BALANCER_DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "index": self.release_index,
            "framework": self.framework,
            "frameworkName": self.framework_name,
            "sources": {kind.value: repo for kind, repo in self.sources.items()},
        }
