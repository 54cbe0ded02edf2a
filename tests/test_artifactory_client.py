"""Tests for the Artifactory and local cache repository backends."""

from unittest.mock import patch

import pytest
import requests

from compositebuild.common.errors import RepositoryAccessError
from compositebuild.common.http_client import get_json, robust_get
from compositebuild.registry.artifactory import (
    ArtifactoryRepository,
    item_path_to_version,
    snapshot_repositories,
)
from compositebuild.registry.local_cache import LocalCacheRepository

BASE = "https://artifactory.example/artifactory"


def _search_result(repository, *paths):
    return {"results": [{"uri": f"{BASE}/api/storage/{repository}/{path}"} for path in paths]}


class TestHelpers:
    """Path and repository helpers."""

    def test_item_path_to_version(self):
        path = "us/ihmc/euclid/SNAPSHOT-develop-7/euclid-SNAPSHOT-develop-7.jar"
        assert item_path_to_version(path, "euclid") == "SNAPSHOT-develop-7"

    def test_snapshot_repositories(self):
        assert snapshot_repositories(True) == ["snapshots"]
        assert snapshot_repositories(False) == ["snapshots", "proprietary-snapshots"]


class TestArtifactoryRepository:
    """GAVC search backed backend."""

    @patch("compositebuild.registry.artifactory.get_json")
    def test_list_versions_from_jars(self, mock_get_json):
        mock_get_json.return_value = (200, {}, _search_result(
            "snapshots",
            "us/ihmc/euclid/SNAPSHOT-7/euclid-SNAPSHOT-7.jar",
            "us/ihmc/euclid/SNAPSHOT-7/euclid-SNAPSHOT-7.pom",
            "us/ihmc/euclid/SNAPSHOT-7/euclid-SNAPSHOT-7-sources.jar",
            "us/ihmc/euclid/SNAPSHOT-8/euclid-SNAPSHOT-8.jar",
        ))
        repo = ArtifactoryRepository(BASE, ["snapshots"])
        assert repo.list_versions("us.ihmc", "euclid") == ["SNAPSHOT-7", "SNAPSHOT-8"]
        _, kwargs = mock_get_json.call_args
        assert kwargs["params"] == {"g": "us.ihmc", "a": "euclid", "repos": "snapshots"}

    @patch("compositebuild.registry.artifactory.get_json")
    def test_searches_every_repository(self, mock_get_json):
        mock_get_json.side_effect = [
            (200, {}, _search_result("snapshots", "g/a/SNAPSHOT-1/a-SNAPSHOT-1.jar")),
            (200, {}, _search_result("proprietary-snapshots", "g/a/SNAPSHOT-2/a-SNAPSHOT-2.jar")),
        ]
        repo = ArtifactoryRepository(BASE, snapshot_repositories(False))
        assert repo.list_versions("g", "a") == ["SNAPSHOT-1", "SNAPSHOT-2"]

    @patch("compositebuild.registry.artifactory.get_json")
    def test_has_version(self, mock_get_json):
        mock_get_json.return_value = (200, {}, _search_result("snapshots", "g/a/SNAPSHOT-1/a-SNAPSHOT-1.jar"))
        repo = ArtifactoryRepository(BASE, ["snapshots"])
        assert repo.has_version("g", "a", "SNAPSHOT-1")
        _, kwargs = mock_get_json.call_args
        assert kwargs["params"]["v"] == "SNAPSHOT-1"

    @patch("compositebuild.registry.artifactory.get_json")
    def test_not_found_is_empty(self, mock_get_json):
        mock_get_json.return_value = (404, {}, None)
        repo = ArtifactoryRepository(BASE, ["snapshots"])
        assert repo.list_versions("g", "a") == []
        assert not repo.has_version("g", "a", "SNAPSHOT-1")

    @pytest.mark.parametrize("status", [401, 403, 500, 0])
    @patch("compositebuild.registry.artifactory.get_json")
    def test_access_failures_raise(self, mock_get_json, status):
        mock_get_json.return_value = (status, {}, None)
        repo = ArtifactoryRepository(BASE, ["snapshots"])
        with pytest.raises(RepositoryAccessError) as exc:
            repo.list_versions("g", "a")
        assert "Problem authenticating or retrieving item from repository" in str(exc.value)

    @patch("compositebuild.registry.artifactory.robust_get")
    @patch("compositebuild.registry.artifactory.get_json")
    def test_fetch_manifest(self, mock_get_json, mock_robust_get):
        mock_get_json.return_value = (200, {}, _search_result(
            "snapshots",
            "g/a/SNAPSHOT-1/a-SNAPSHOT-1.jar",
            "g/a/SNAPSHOT-1/a-SNAPSHOT-1.pom",
        ))
        mock_robust_get.return_value = (200, {}, "<project/>")
        repo = ArtifactoryRepository(BASE, ["snapshots"])
        assert repo.fetch_manifest("g", "a", "SNAPSHOT-1") == "<project/>"
        args, _ = mock_robust_get.call_args
        assert args[0] == f"{BASE}/snapshots/g/a/SNAPSHOT-1/a-SNAPSHOT-1.pom"

    @patch("compositebuild.registry.artifactory.get_json")
    def test_fetch_manifest_without_pom(self, mock_get_json):
        mock_get_json.return_value = (200, {}, _search_result("snapshots", "g/a/SNAPSHOT-1/a-SNAPSHOT-1.jar"))
        repo = ArtifactoryRepository(BASE, ["snapshots"])
        assert repo.fetch_manifest("g", "a", "SNAPSHOT-1") is None

    def test_credentials_on_session(self):
        repo = ArtifactoryRepository(BASE, username="builder", password="secret")
        assert repo.session.auth == ("builder", "secret")
        assert "secret" not in repo.describe()


class TestLocalCacheRepository:
    """Offline Gradle cache backend."""

    def _populate(self, tmp_path):
        version_dir = tmp_path / "us.ihmc" / "euclid" / "SNAPSHOT-3" / "0a1b2c"
        version_dir.mkdir(parents=True)
        (version_dir / "euclid-SNAPSHOT-3.pom").write_text("<project/>", encoding="utf-8")
        (tmp_path / "us.ihmc" / "euclid" / "SNAPSHOT-1").mkdir()
        return LocalCacheRepository(str(tmp_path))

    def test_list_versions(self, tmp_path):
        repo = self._populate(tmp_path)
        assert repo.list_versions("us.ihmc", "euclid") == ["SNAPSHOT-1", "SNAPSHOT-3"]
        assert repo.list_versions("us.ihmc", "missing") == []

    def test_has_version(self, tmp_path):
        repo = self._populate(tmp_path)
        assert repo.has_version("us.ihmc", "euclid", "SNAPSHOT-3")
        assert not repo.has_version("us.ihmc", "euclid", "SNAPSHOT-2")

    def test_fetch_manifest(self, tmp_path):
        repo = self._populate(tmp_path)
        assert repo.fetch_manifest("us.ihmc", "euclid", "SNAPSHOT-3") == "<project/>"
        assert repo.fetch_manifest("us.ihmc", "euclid", "SNAPSHOT-1") is None


class TestHttpClient:
    """Retry behaviour of the shared transport."""

    @patch("compositebuild.common.http_client.time.sleep")
    @patch("compositebuild.common.http_client.requests.get")
    def test_retries_server_errors(self, mock_get, mock_sleep):
        failing = type("Response", (), {"status_code": 503, "headers": {}, "text": ""})()
        ok = type("Response", (), {"status_code": 200, "headers": {"X": "1"}, "text": '{"results": []}'})()
        mock_get.side_effect = [failing, ok]
        status, headers, data = get_json("https://example.test/api", retries=3)
        assert status == 200
        assert data == {"results": []}
        assert mock_sleep.call_count == 1

    @patch("compositebuild.common.http_client.time.sleep")
    @patch("compositebuild.common.http_client.requests.get")
    def test_transport_failure_is_status_zero(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.ConnectionError("refused")
        status, _, body = robust_get("https://example.test/api", retries=2)
        assert status == 0
        assert "refused" in body
        assert mock_get.call_count == 2

    @patch("compositebuild.common.http_client.requests.get")
    def test_client_errors_not_retried(self, mock_get):
        missing = type("Response", (), {"status_code": 404, "headers": {}, "text": "missing"})()
        mock_get.return_value = missing
        assert robust_get("https://example.test/api", retries=3)[0] == 404
        assert mock_get.call_count == 1
