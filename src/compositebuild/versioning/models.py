"""Data models for dependency coordinates and version resolution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from ..constants import Constants


class DependencyTriple(NamedTuple):
    """A declared or published dependency: ``group:artifact:version``."""
    group_id: str
    artifact_id: str
    version: str

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


class TokenKind(Enum):
    """How a declared version token is turned into a concrete version."""
    FIXED = "fixed"
    EXACT_SUFFIX = "exact_suffix"
    LATEST = "latest"
    SOURCE = "source"


@dataclass(frozen=True)
class VersionToken:
    """Classified version token.

    ``matcher`` is the suffix to match for EXACT_SUFFIX and the prefix for
    LATEST; for FIXED and SOURCE it is the raw token.
    """
    raw: str
    kind: TokenKind
    matcher: str


class VersionCandidate(NamedTuple):
    """A published version and the build number taken from its last segment."""
    version: str
    ordinal: int


class ResolutionStatus(Enum):
    """Outcome of resolving one coordinate."""
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    REPOSITORY_ERROR = "repository_error"


@dataclass
class VersionResolution:
    """Resolution outcome; ``version`` is only ever set when resolved."""
    group_id: str
    artifact_id: str
    requested: str
    status: ResolutionStatus
    version: Optional[str] = None
    detail: Optional[str] = None
    candidate_count: int = 0
    rejected: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def resolved(cls, group_id: str, artifact_id: str, requested: str, version: str, **kwargs) -> "VersionResolution":
        return cls(group_id, artifact_id, requested, ResolutionStatus.RESOLVED, version=version, **kwargs)

    @classmethod
    def not_found(cls, group_id: str, artifact_id: str, requested: str, detail: str, **kwargs) -> "VersionResolution":
        return cls(group_id, artifact_id, requested, ResolutionStatus.NOT_FOUND, detail=detail, **kwargs)

    @classmethod
    def repository_error(cls, group_id: str, artifact_id: str, requested: str, detail: str) -> "VersionResolution":
        return cls(group_id, artifact_id, requested, ResolutionStatus.REPOSITORY_ERROR, detail=detail)

    @property
    def ok(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    @property
    def coordinate(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    def to_dict(self) -> dict:
        return {
            "coordinate": self.coordinate,
            "requested": self.requested,
            "status": self.status.value,
            "version": self.version,
            "detail": self.detail,
            "candidate_count": self.candidate_count,
            "rejected": list(self.rejected),
        }


def match_not_found(matcher: str) -> str:
    """Legacy not-found marker text for an exact-suffix request."""
    return f"{Constants.MATCH_NOT_FOUND}-{matcher}"


def latest_not_found(matcher: str) -> str:
    """Legacy not-found marker text for a latest request."""
    return f"{Constants.LATEST_NOT_FOUND}-{matcher}"
