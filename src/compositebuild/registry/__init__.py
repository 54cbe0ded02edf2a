"""Repository backends and the per-run repository index."""

from .artifactory import ArtifactoryRepository
from .base import RepositoryBackend
from .index import RepositoryIndex
from .local_cache import LocalCacheRepository

__all__ = [
    "ArtifactoryRepository",
    "LocalCacheRepository",
    "RepositoryBackend",
    "RepositoryIndex",
]
