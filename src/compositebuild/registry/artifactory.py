"""Artifactory backed repository using the GAVC search REST API."""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

import requests

from compositebuild.common.errors import RepositoryAccessError
from compositebuild.common.http_client import get_json, robust_get
from compositebuild.common.logging_utils import extra_context, is_debug_enabled, safe_url
from compositebuild.constants import Constants
from compositebuild.registry.base import RepositoryBackend

logger = logging.getLogger(__name__)

_JAR_PATH = re.compile(r".*\d\.jar$")
_POM_PATH = re.compile(r".*\d\.pom$")


def item_path_to_version(item_path: str, artifact_id: str) -> str:
    """``us/ihmc/euclid/SNAPSHOT-7/euclid-SNAPSHOT-7.jar`` -> ``SNAPSHOT-7``."""
    file_name = item_path.rsplit("/", 1)[-1]
    without_jar = file_name.split(".jar")[0]
    return without_jar[len(artifact_id) + 1:]


def snapshot_repositories(open_source: bool) -> List[str]:
    """Repositories searched for snapshots."""
    if open_source:
        return list(Constants.SNAPSHOT_REPOSITORIES)
    return list(Constants.PROPRIETARY_SNAPSHOT_REPOSITORIES)


class ArtifactoryRepository(RepositoryBackend):
    """Queries an Artifactory instance for snapshot versions and POMs.

    Args:
        base_url: Artifactory root, e.g. ``https://artifactory.example/artifactory``.
        repositories: Repository keys searched, in order.
        username: Optional user for basic auth.
        password: Optional password for basic auth.
        timeout: Transport timeout in seconds.
        retries: Attempts per request.
    """

    def __init__(
        self,
        base_url: str = Constants.ARTIFACTORY_URL,
        repositories: Optional[Sequence[str]] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.repositories = list(repositories or Constants.SNAPSHOT_REPOSITORIES)
        self.timeout = timeout
        self.retries = retries
        self.session = session or requests.Session()
        if username and password:
            self.session.auth = (username, password)

    def describe(self) -> str:
        return f"{safe_url(self.base_url)} ({', '.join(self.repositories)})"

    def _check_status(self, status_code: int, body: object, repository: str, coordinate: str) -> None:
        if status_code in (401, 403):
            raise RepositoryAccessError(f"{self.base_url}/{repository}", coordinate, f"HTTP {status_code}")
        if status_code == 0:
            raise RepositoryAccessError(f"{self.base_url}/{repository}", coordinate, str(body))
        if status_code >= 400 and status_code != 404:
            raise RepositoryAccessError(f"{self.base_url}/{repository}", coordinate, f"HTTP {status_code}")

    def search(self, repository: str, group_id: str, artifact_id: str, version: Optional[str] = None) -> List[str]:
        """Return item paths (relative to ``repository``) matching the coordinate."""
        params = {"g": group_id, "a": artifact_id, "repos": repository}
        if version is not None:
            params["v"] = version
        coordinate = ":".join(part for part in (group_id, artifact_id, version) if part)
        url = f"{self.base_url}/api/search/gavc"
        if is_debug_enabled(logger):
            logger.debug(
                "Artifactory GAVC search",
                extra=extra_context(
                    event="function_entry", component="artifactory", action="search",
                    target=coordinate, repository=repository
                )
            )

        status_code, _, data = get_json(
            url,
            session=self.session,
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
            retries=self.retries,
        )
        self._check_status(status_code, data, repository, coordinate)
        if status_code != 200 or not isinstance(data, dict):
            return []

        marker = f"/api/storage/{repository}/"
        paths = []
        for result in data.get("results", []):
            uri = result.get("uri", "") if isinstance(result, dict) else ""
            if marker in uri:
                paths.append(uri.split(marker, 1)[1])
        return paths

    def list_versions(self, group_id: str, artifact_id: str) -> List[str]:
        versions = []
        for repository in self.repositories:
            for item_path in self.search(repository, group_id, artifact_id):
                if _JAR_PATH.match(item_path):
                    versions.append(item_path_to_version(item_path, artifact_id))
        return versions

    def has_version(self, group_id: str, artifact_id: str, version: str) -> bool:
        return any(self.search(repository, group_id, artifact_id, version) for repository in self.repositories)

    def fetch_manifest(self, group_id: str, artifact_id: str, version: str) -> Optional[str]:
        coordinate = f"{group_id}:{artifact_id}:{version}"
        for repository in self.repositories:
            for item_path in self.search(repository, group_id, artifact_id, version):
                if not _POM_PATH.match(item_path):
                    continue
                url = f"{self.base_url}/{repository}/{item_path}"
                logger.info("Hitting Artifactory for POM: %s", item_path)
                status_code, _, text = robust_get(
                    url, session=self.session, timeout=self.timeout, retries=self.retries
                )
                self._check_status(status_code, text, repository, coordinate)
                if status_code == 200:
                    return text
        return None
