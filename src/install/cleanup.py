"""Best-effort removal of coordination-service subtrees left behind by frameworks."""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, List

from constants import Constants
from common.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    deleted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def extend(self, other: "CleanupResult") -> None:
        self.deleted.extend(other.deleted)
        self.failed.update(other.failed)

    def to_dict(self) -> Dict[str, object]:
        return {"deleted": list(self.deleted), "failed": dict(self.failed)}


def normalize_path(path: str) -> str:
    """Strip an optional ``zk:`` prefix and make the path absolute."""
    path = path.strip()
    if path.startswith(Constants.ZOOKEEPER_PATH_PREFIX):
        path = path[len(Constants.ZOOKEEPER_PATH_PREFIX):]
    path = "/" + path.strip("/")
    return posixpath.normpath(path)


def _descendants(client, path: str, result: CleanupResult) -> List[str]:
    """Pre-order listing of every node below ``path``."""
    nodes: List[str] = []
    try:
        children = sorted(client.children(path))
    except UpstreamError as exc:
        logger.error("Could not list children of %s: %s", path, exc)
        result.failed[path] = str(exc)
        return nodes
    for child in children:
        child_path = posixpath.join(path, child)
        nodes.append(child_path)
        nodes.extend(_descendants(client, child_path, result))
    return nodes


def delete_tree(client, path: str) -> CleanupResult:
    """Delete ``path`` and everything below it, children before parents.

    Failures are logged and recorded; remaining nodes are still attempted.
    """
    root = normalize_path(path)
    result = CleanupResult()
    if root == "/":
        logger.error("Refusing to delete the coordination-service root")
        result.failed[root] = "refusing to delete root"
        return result

    # reversed pre-order puts every descendant ahead of its ancestors
    for node in list(reversed(_descendants(client, root, result))) + [root]:
        if node in result.failed:
            continue
        try:
            client.delete(node)
        except UpstreamError as exc:
            logger.error("Could not delete %s: %s", node, exc)
            result.failed[node] = str(exc)
        else:
            result.deleted.append(node)
    return result
