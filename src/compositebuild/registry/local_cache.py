"""Offline repository backed by the Gradle module cache.

Layout: ``<cache>/<group>/<artifact>/<version>/<sha1>/<file>``.
"""
from __future__ import annotations

import logging
import os
from typing import List, Optional

from compositebuild.common.errors import RepositoryAccessError
from compositebuild.constants import Constants
from compositebuild.registry.base import RepositoryBackend

logger = logging.getLogger(__name__)


class LocalCacheRepository(RepositoryBackend):
    """Reads versions and POMs from a local cache directory."""

    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = os.path.expanduser(cache_dir or Constants.GRADLE_MODULE_CACHE)

    def describe(self) -> str:
        return self.cache_dir

    def _list_dirs(self, path: str, coordinate: str) -> List[str]:
        try:
            return sorted(entry.name for entry in os.scandir(path) if entry.is_dir())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise RepositoryAccessError(self.cache_dir, coordinate, str(e)) from e

    def list_versions(self, group_id: str, artifact_id: str) -> List[str]:
        return self._list_dirs(os.path.join(self.cache_dir, group_id, artifact_id), f"{group_id}:{artifact_id}")

    def has_version(self, group_id: str, artifact_id: str, version: str) -> bool:
        return os.path.isdir(os.path.join(self.cache_dir, group_id, artifact_id, version))

    def fetch_manifest(self, group_id: str, artifact_id: str, version: str) -> Optional[str]:
        coordinate = f"{group_id}:{artifact_id}:{version}"
        version_path = os.path.join(self.cache_dir, group_id, artifact_id, version)
        logger.info("Hitting local cache for POM: %s", version_path)
        for hash_dir in self._list_dirs(version_path, coordinate):
            folder = os.path.join(version_path, hash_dir)
            try:
                file_names = sorted(os.listdir(folder))
            except OSError as e:
                raise RepositoryAccessError(self.cache_dir, coordinate, str(e)) from e
            for file_name in file_names:
                if not file_name.endswith(".pom"):
                    continue
                try:
                    with open(os.path.join(folder, file_name), encoding="utf-8") as handle:
                        return handle.read()
                except OSError as e:
                    raise RepositoryAccessError(self.cache_dir, coordinate, str(e)) from e
        return None
