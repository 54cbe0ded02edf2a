"""Memoised view of a repository for one resolution run."""
from __future__ import annotations

import bisect
import logging
from typing import Dict, List, Tuple

from compositebuild.registry.base import RepositoryBackend
from compositebuild.registry.pom import load_manifest
from compositebuild.versioning.models import DependencyTriple

logger = logging.getLogger(__name__)


class RepositoryIndex:
    """Caches known versions and POM dependencies per coordinate.

    Repository contents are treated as immutable for the lifetime of the
    index, so nothing is ever invalidated. Build a new index per run.
    """

    def __init__(self, backend: RepositoryBackend):
        self.backend = backend
        self._versions: Dict[str, List[str]] = {}
        self._manifests: Dict[str, Tuple[DependencyTriple, ...]] = {}

    def versions(self, group_id: str, artifact_id: str) -> Tuple[str, ...]:
        """Sorted known versions of ``group_id:artifact_id``."""
        key = f"{group_id}:{artifact_id}"
        if key not in self._versions:
            self._versions[key] = sorted(set(self.backend.list_versions(group_id, artifact_id)))
            logger.debug("%s: %d known versions", key, len(self._versions[key]))
        return tuple(self._versions[key])

    def version_exists(self, group_id: str, artifact_id: str, version: str) -> bool:
        """Check the cached listing first, then ask the backend directly.

        Search listings can lag behind; a direct hit is remembered.
        """
        key = f"{group_id}:{artifact_id}"
        known = self._versions.get(key)
        if known is not None and version in known:
            return True
        if self.backend.has_version(group_id, artifact_id, version):
            if known is not None:
                bisect.insort(known, version)
            logger.info("Found version missing from listing: %s:%s", key, version)
            return True
        return False

    def manifest(self, group_id: str, artifact_id: str, version: str) -> Tuple[DependencyTriple, ...]:
        """Dependencies declared in the POM of one published version."""
        key = f"{group_id}:{artifact_id}:{version}"
        if key not in self._manifests:
            self._manifests[key] = tuple(load_manifest(self.backend, group_id, artifact_id, version))
        return self._manifests[key]
