"""Key-value paths used by repository layers.

Layout::

    <root>/<index>/name
    <root>/<index>/repo/meta/index.json
    <root>/<index>/repo/packages/<Letter>/<name>/<releaseIndex>/<file>
"""
from __future__ import annotations

from typing import Union

from constants import ArtifactType, Constants


def _join(*parts: object) -> str:
    return "/".join(str(part).strip("/") for part in parts if str(part).strip("/"))


def name_key(root: str, index: int) -> str:
    return _join(root, index, Constants.REPOSITORY_NAME_KEY)


def index_key(root: str, index: int) -> str:
    return _join(root, index, Constants.PACKAGE_INDEX_KEY)


def packages_key(root: str, index: int) -> str:
    return _join(root, index, Constants.PACKAGES_KEY)


def letter_bucket(name: str) -> str:
    """Single-letter shard directory for ``name``."""
    return name[:1].upper()


def package_version_key(root: str, index: int, name: str, release_index: str) -> str:
    return _join(packages_key(root, index), letter_bucket(name), name, release_index)


def artifact_key(
    root: str,
    index: int,
    name: str,
    release_index: str,
    artifact: Union[ArtifactType, str],
) -> str:
    filename = artifact.value if isinstance(artifact, ArtifactType) else artifact
    return _join(package_version_key(root, index, name, release_index), filename)


def support_marker_key(root: str, index: int, name: str, release_index: str) -> str:
    """A layer supports a release when it holds this key."""
    return artifact_key(root, index, name, release_index, Constants.SUPPORT_MARKER)
