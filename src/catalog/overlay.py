"""Per-artifact-type overlay of repository layers.

Sources are visited in ascending index order and each non-empty artifact
replaces whatever an earlier source supplied for that type, so every type
independently comes from the highest layer that defines it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from constants import ArtifactType

from .models import Repository

logger = logging.getLogger(__name__)

# (repository, artifact type) -> blob or None
Fetch = Callable[[Repository, ArtifactType], Optional[bytes]]


@dataclass(frozen=True)
class OverlayEntry:
    repository: Repository
    blob: bytes


class ArtifactOverlay:
    """Accumulates the winning artifact of each type across ordered sources."""

    def __init__(self, repositories: Iterable[Repository]):
        self.repositories: List[Repository] = sorted(repositories, key=lambda r: r.index)
        self.entries: Dict[ArtifactType, OverlayEntry] = {}

    def apply(self, repository: Repository, fetch: Fetch) -> None:
        for kind in ArtifactType:
            blob = fetch(repository, kind)
            if blob:
                if kind in self.entries:
                    logger.debug(
                        "%s overridden by %s (was %s)",
                        kind.value,
                        repository.name,
                        self.entries[kind].repository.name,
                    )
                self.entries[kind] = OverlayEntry(repository, blob)

    def collect(self, fetch: Fetch) -> Dict[ArtifactType, OverlayEntry]:
        for repository in self.repositories:
            self.apply(repository, fetch)
        return self.entries

    def artifacts(self) -> Dict[ArtifactType, bytes]:
        return {kind: entry.blob for kind, entry in self.entries.items()}

    def sources(self) -> Dict[ArtifactType, str]:
        return {kind: entry.repository.name for kind, entry in self.entries.items()}
