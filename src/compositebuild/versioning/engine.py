"""Snapshot version resolution with POM validation and backtracking.

A floating token is turned into a concrete published version. For
"latest" requests the highest build number is tried first; a candidate
whose POM references a snapshot that was never published is rejected and
the next highest is tried until one validates or none are left.

Validation is one layer deep: the versions a candidate's POM
references must exist, but their own POMs are not checked.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional

from ..common.errors import RepositoryAccessError
from ..constants import Constants
from .models import (
    DependencyTriple,
    ResolutionStatus,
    TokenKind,
    VersionCandidate,
    VersionResolution,
    latest_not_found,
    match_not_found,
)
from .parser import classify_token, is_floating_version

if TYPE_CHECKING:
    from ..registry.index import RepositoryIndex

logger = logging.getLogger(__name__)

MAINLINE_BRANCHES = ("develop", "master", "main")


def build_ordinal(version: str, prefix: str) -> Optional[int]:
    """Build number of a ``<prefix>-<number>`` version, or None for any other shape."""
    match = re.fullmatch(re.escape(prefix) + r"-(\d+)", version, re.ASCII)
    if match is None:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class CIContext:
    """Continuous integration variables steering snapshot resolution.

    Attributes:
        enabled: Resolve every snapshot through the CI chain.
        build_number: Integration number of the running build.
        branch_name: Branch being built; mainline branches do not count as branch builds.
        is_child_build: Build was triggered by a parent build and must match its version.
    """
    enabled: bool = False
    build_number: Optional[str] = None
    branch_name: Optional[str] = None
    is_child_build: bool = False

    @property
    def is_branch_build(self) -> bool:
        return bool(self.branch_name) and self.branch_name not in MAINLINE_BRANCHES

    def child_version(self) -> str:
        """``SNAPSHOT[-<branch>]-<build number>``."""
        version = Constants.SNAPSHOT_PREFIX
        if self.is_branch_build:
            version += f"-{self.branch_name}"
        return f"{version}-{self.build_number}"


class VersionResolutionEngine:
    """Resolves declared versions against one ``RepositoryIndex``.

    Args:
        index: Repository index owned by this run.
        snapshot_mode: When False, SNAPSHOT tokens pass through unchanged.
        ci: CI variables; disabled by default.
        included_artifacts: Artifact names built from source in the composite.
        publish_version: Version reported for included artifacts.
    """

    def __init__(
        self,
        index: "RepositoryIndex",
        snapshot_mode: bool = True,
        ci: Optional[CIContext] = None,
        included_artifacts: Iterable[str] = (),
        publish_version: Optional[str] = None,
    ):
        self.index = index
        self.snapshot_mode = snapshot_mode
        self.ci = ci or CIContext()
        self.included_artifacts = frozenset(included_artifacts)
        self.publish_version = publish_version

    def resolve(self, group_id: str, artifact_id: str, declared: str) -> VersionResolution:
        """Resolve one declared dependency.

        Repository failures are reported as a REPOSITORY_ERROR result.
        """
        try:
            result = self._resolve(group_id, artifact_id, declared)
        except RepositoryAccessError as e:
            logger.error("Resolving %s:%s:%s failed: %s", group_id, artifact_id, declared, e)
            return VersionResolution.repository_error(group_id, artifact_id, declared, str(e))

        if result.ok:
            logger.info("Passing version to Gradle: %s:%s:%s", group_id, artifact_id, result.version)
        else:
            logger.warning("No version for %s:%s:%s (%s)", group_id, artifact_id, declared, result.detail)
        return result

    def resolve_all(self, dependencies: Iterable[DependencyTriple]) -> List[VersionResolution]:
        """Resolve in order, stopping after the first repository error."""
        results = []
        for dependency in dependencies:
            result = self.resolve(*dependency)
            results.append(result)
            if result.status == ResolutionStatus.REPOSITORY_ERROR:
                break
        return results

    def _resolve(self, group_id: str, artifact_id: str, declared: str) -> VersionResolution:
        token = classify_token(declared, self.snapshot_mode)

        if token.kind == TokenKind.FIXED:
            return VersionResolution.resolved(group_id, artifact_id, declared, token.raw)

        if artifact_id in self.included_artifacts and self.publish_version:
            return VersionResolution.resolved(group_id, artifact_id, declared, self.publish_version)

        if token.kind == TokenKind.SOURCE:
            return VersionResolution.not_found(
                group_id, artifact_id, declared,
                f"{group_id}:{artifact_id}'s version is set to \"{declared}\" and is not included in the build. "
                f"Please put {artifact_id} in your composite build or use a release.",
            )

        if self.ci.enabled:
            return self._resolve_ci(group_id, artifact_id, declared)
        if token.kind == TokenKind.LATEST:
            return self.latest_validated_version(group_id, artifact_id, token.matcher, declared)
        return self.match_version(group_id, artifact_id, token.matcher, declared)

    def _resolve_ci(self, group_id: str, artifact_id: str, declared: str) -> VersionResolution:
        if self.ci.is_child_build:
            result = self.match_version(group_id, artifact_id, self.ci.child_version(), declared)
            if result.ok:
                return result
        if self.ci.is_branch_build:
            prefix = f"{Constants.SNAPSHOT_PREFIX}-{self.ci.branch_name}"
            result = self.latest_validated_version(group_id, artifact_id, prefix, declared)
            if result.ok:
                return result
        return self.latest_validated_version(group_id, artifact_id, Constants.SNAPSHOT_PREFIX, declared)

    def match_version(self, group_id: str, artifact_id: str, suffix: str, requested: Optional[str] = None) -> VersionResolution:
        """First known version (sorted order) that ends with ``suffix``."""
        requested = requested or suffix
        versions = self.index.versions(group_id, artifact_id)
        for version in versions:
            if version.endswith(suffix):
                return VersionResolution.resolved(
                    group_id, artifact_id, requested, version, candidate_count=len(versions)
                )
        return VersionResolution.not_found(
            group_id, artifact_id, requested, match_not_found(suffix), candidate_count=len(versions)
        )

    def candidates(self, group_id: str, artifact_id: str, prefix: str) -> List[VersionCandidate]:
        """Versions shaped ``<prefix>-<number>``, highest build number first."""
        pool = []
        for version in self.index.versions(group_id, artifact_id):
            ordinal = build_ordinal(version, prefix)
            if ordinal is None:
                continue
            pool.append(VersionCandidate(version, ordinal))
        pool.sort(key=lambda candidate: (-candidate.ordinal, candidate.version))
        return pool

    def highest_build_number_version(self, group_id: str, artifact_id: str, prefix: str) -> Optional[str]:
        pool = self.candidates(group_id, artifact_id, prefix)
        return pool[0].version if pool else None

    def latest_validated_version(self, group_id: str, artifact_id: str, prefix: str, requested: Optional[str] = None) -> VersionResolution:
        """Highest build number whose POM validates, backtracking on failure."""
        requested = requested or prefix
        pool = self.candidates(group_id, artifact_id, prefix)
        candidate_count = len(pool)
        rejected: List[str] = []

        while pool:
            candidate = pool.pop(0)
            if self.validate(group_id, artifact_id, candidate.version):
                return VersionResolution.resolved(
                    group_id, artifact_id, requested, candidate.version,
                    candidate_count=candidate_count, rejected=tuple(rejected),
                )
            logger.info("Failed POM check: %s:%s:%s", group_id, artifact_id, candidate.version)
            rejected.append(candidate.version)
            if pool:
                logger.info("Rolling back to: %s:%s:%s", group_id, artifact_id, pool[0].version)

        return VersionResolution.not_found(
            group_id, artifact_id, requested, latest_not_found(prefix),
            candidate_count=candidate_count, rejected=tuple(rejected),
        )

    def validate(self, group_id: str, artifact_id: str, version: str) -> bool:
        """The version exists and every snapshot its POM references exists."""
        if not self.index.version_exists(group_id, artifact_id, version):
            logger.info("Version doesn't exist: %s:%s:%s", group_id, artifact_id, version)
            return False
        for dependency in self.index.manifest(group_id, artifact_id, version):
            if not is_floating_version(dependency.version):
                continue
            if not self.index.version_exists(dependency.group_id, dependency.artifact_id, dependency.version):
                logger.info("Version doesn't exist: %s (required by %s:%s:%s)", dependency, group_id, artifact_id, version)
                return False
        return True
