"""Discovery of repository layers stored under the repository root."""
from __future__ import annotations

import logging
from typing import List, Optional

from constants import Constants

from . import keys
from .models import Repository

logger = logging.getLogger(__name__)


def _child_index(root: str, key: str) -> Optional[int]:
    relative = key[len(root):] if key.startswith(root) else key
    segment = relative.strip("/").split("/", 1)[0]
    try:
        return int(segment)
    except ValueError:
        logger.warning("Ignoring repository entry %r: not an integer index", segment)
        return None


def list_repositories(kv, root: str = Constants.REPOSITORY_ROOT) -> List[Repository]:
    """All repositories under ``root`` in ascending index order.

    An index directory without a ``name`` key is logged and skipped.
    """
    prefix = root.rstrip("/") + "/"
    indexes = set()
    for key in kv.keys(prefix, separator="/"):
        index = _child_index(prefix, key)
        if index is not None:
            indexes.add(index)

    repositories = []
    for index in sorted(indexes):
        raw_name = kv.get(keys.name_key(root, index))
        name = raw_name.decode("utf-8").strip() if raw_name else ""
        if not name:
            logger.warning("Repository %d has no name; skipping", index)
            continue
        repositories.append(Repository(name=name, index=index))
    logger.debug("Found %d repositories under %s", len(repositories), root)
    return repositories


def base_repository(repositories: List[Repository]) -> Optional[Repository]:
    for repository in repositories:
        if repository.is_base:
            return repository
    return None


def layer_repositories(repositories: List[Repository]) -> List[Repository]:
    return sorted((r for r in repositories if not r.is_base), key=lambda r: r.index)
