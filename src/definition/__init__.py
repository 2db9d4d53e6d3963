"""Config resolution and manifest rendering for a single package version."""
from .package_definition import PackageDefinition
from .schema import ConfigSchemaGroup, parse_schema
from .template import Template, render
from .uninstall import UninstallSpec, ZookeeperNode
from .values import ValueKind, kind_of, merge_config, transform_value

__all__ = [
    "ConfigSchemaGroup",
    "PackageDefinition",
    "Template",
    "UninstallSpec",
    "ValueKind",
    "ZookeeperNode",
    "kind_of",
    "merge_config",
    "parse_schema",
    "render",
    "transform_value",
]
