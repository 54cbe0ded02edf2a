"""Abstract repository backend."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional


class RepositoryBackend(ABC):
    """Source of published versions and POM manifests.

    Implementations raise ``RepositoryAccessError`` when the repository is
    unreachable or rejects the credentials; "nothing published" is an
    empty result, not an error.
    """

    @abstractmethod
    def list_versions(self, group_id: str, artifact_id: str) -> List[str]:
        """Return every published version of ``group_id:artifact_id``."""

    @abstractmethod
    def has_version(self, group_id: str, artifact_id: str, version: str) -> bool:
        """Query for one specific version."""

    @abstractmethod
    def fetch_manifest(self, group_id: str, artifact_id: str, version: str) -> Optional[str]:
        """Return the POM text of a published version, or None."""

    @abstractmethod
    def describe(self) -> str:
        """Human readable name for log and error messages."""
